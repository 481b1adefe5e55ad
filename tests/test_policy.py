"""
Unit tests for the order authorization policy.
The policy is pure, so plain namespaces stand in for orders.
"""

from types import SimpleNamespace
from uuid import uuid4

import pytest

from delivery_backend.core.errors import AuthorizationDenied
from delivery_backend.models import DeliveryStatus, PaymentStatus, UserRole
from delivery_backend.services import policy
from delivery_backend.services.policy import Actor


@pytest.fixture
def customer():
    return Actor(id=uuid4(), role=UserRole.CUSTOMER)


@pytest.fixture
def driver():
    return Actor(id=uuid4(), role=UserRole.DRIVER)


@pytest.fixture
def admin():
    return Actor(id=uuid4(), role=UserRole.ADMIN)


@pytest.fixture
def order(customer, driver):
    return SimpleNamespace(
        id=uuid4(),
        customer_id=customer.id,
        driver_id=driver.id,
        delivery_status=DeliveryStatus.ASSIGNED,
        payment_status=PaymentStatus.PENDING,
    )


class TestCreateAndRead:
    
    def test_customers_and_admins_create(self, customer, admin):
        policy.authorize_create(customer)
        policy.authorize_create(admin)
    
    def test_drivers_cannot_create(self, driver):
        with pytest.raises(AuthorizationDenied):
            policy.authorize_create(driver)
    
    def test_owner_assigned_driver_and_admin_read(self, order, customer, driver, admin):
        policy.authorize_read(customer, order)
        policy.authorize_read(driver, order)
        policy.authorize_read(admin, order)
    
    def test_strangers_cannot_read(self, order):
        with pytest.raises(AuthorizationDenied):
            policy.authorize_read(Actor(id=uuid4(), role=UserRole.CUSTOMER), order)
        with pytest.raises(AuthorizationDenied):
            policy.authorize_read(Actor(id=uuid4(), role=UserRole.DRIVER), order)


class TestFieldFiltering:
    """Per-role allow-lists for partial updates."""
    
    def test_customer_forbidden_fields_are_dropped(self, customer):
        changes = {
            "package_description": "Fragile glassware",
            "delivery_status": DeliveryStatus.DELIVERED,
            "payment_status": PaymentStatus.PAID,
            "driver_id": uuid4(),
        }
        assert policy.filter_changes(customer, changes) == {
            "package_description": "Fragile glassware",
        }
    
    def test_customer_forbidden_fields_rejected_when_strict(self, customer):
        with pytest.raises(AuthorizationDenied) as exc:
            policy.filter_changes(customer, {"payment_status": PaymentStatus.PAID}, strict=True)
        assert "payment_status" in exc.value.message
    
    def test_admin_keeps_everything(self, admin):
        changes = {"price": 10, "payment_status": PaymentStatus.PAID, "driver_id": uuid4()}
        assert policy.filter_changes(admin, changes) == changes
    
    def test_driver_cannot_use_general_update(self, driver, order):
        with pytest.raises(AuthorizationDenied):
            policy.authorize_update(driver, order)
    
    def test_customer_cannot_update_foreign_order(self, order):
        with pytest.raises(AuthorizationDenied):
            policy.authorize_update(Actor(id=uuid4(), role=UserRole.CUSTOMER), order)


class TestStatusUpdates:
    
    def test_assigned_driver_may_progress(self, driver, order):
        for status in (DeliveryStatus.PICKED, DeliveryStatus.IN_TRANSIT, DeliveryStatus.DELIVERED):
            policy.authorize_status_update(driver, order, status, None)
    
    @pytest.mark.parametrize("status", list(DeliveryStatus))
    def test_other_driver_always_denied(self, order, status):
        stranger = Actor(id=uuid4(), role=UserRole.DRIVER)
        with pytest.raises(AuthorizationDenied):
            policy.authorize_status_update(stranger, order, status, None)
    
    @pytest.mark.parametrize("status", [
        DeliveryStatus.PENDING,
        DeliveryStatus.ASSIGNED,
        DeliveryStatus.CANCELLED,
    ])
    def test_driver_cannot_set_non_driver_statuses(self, driver, order, status):
        with pytest.raises(AuthorizationDenied):
            policy.authorize_status_update(driver, order, status, None)
    
    def test_driver_cannot_touch_payment(self, driver, order):
        with pytest.raises(AuthorizationDenied):
            policy.authorize_status_update(driver, order, None, PaymentStatus.PAID)
    
    def test_customer_cannot_update_status(self, customer, order):
        with pytest.raises(AuthorizationDenied):
            policy.authorize_status_update(customer, order, DeliveryStatus.PICKED, None)
    
    def test_admin_may_set_anything(self, admin, order):
        policy.authorize_status_update(admin, order, DeliveryStatus.PENDING, PaymentStatus.FAILED)


class TestAssignCancelAndListing:
    
    def test_only_admin_assigns(self, customer, driver, admin):
        policy.authorize_assignment(admin)
        for actor in (customer, driver):
            with pytest.raises(AuthorizationDenied):
                policy.authorize_assignment(actor)
    
    def test_cancel_rules(self, order, customer, driver, admin):
        policy.authorize_cancel(customer, order)
        policy.authorize_cancel(admin, order)
        with pytest.raises(AuthorizationDenied):
            policy.authorize_cancel(driver, order)
        with pytest.raises(AuthorizationDenied):
            policy.authorize_cancel(Actor(id=uuid4(), role=UserRole.CUSTOMER), order)
    
    def test_available_listing(self, customer, driver, admin):
        policy.authorize_available_listing(driver)
        policy.authorize_available_listing(admin)
        with pytest.raises(AuthorizationDenied):
            policy.authorize_available_listing(customer)
    
    def test_listing_scope(self, customer, driver, admin):
        requested = uuid4()
        assert policy.listing_scope(customer, customer_id=requested) == {"customer_id": customer.id}
        assert policy.listing_scope(driver, driver_id=requested) == {"driver_id": driver.id}
        assert policy.listing_scope(admin, customer_id=requested) == {"customer_id": requested}
        assert policy.listing_scope(admin) == {}
