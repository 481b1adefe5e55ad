"""Services package: business logic behind the API routers."""
