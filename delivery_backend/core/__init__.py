"""Core building blocks shared across services and routers."""
