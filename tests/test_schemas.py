"""
Tests for request schema validation.
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from delivery_backend.schemas.order import OrderCreate, OrderUpdate
from delivery_backend.schemas.user import PasswordChangeRequest, UserRegister, UserUpdate
from tests.fixtures.test_data import generate_order, generate_user


class TestOrderCreate:
    
    def test_valid_payload(self):
        order = OrderCreate(**generate_order(price="25"))
        assert order.price == Decimal("25.00")
        assert str(order.price) == "25.00"
    
    @pytest.mark.parametrize("field,value", [
        ("pickup_lat", 90.5),
        ("dropoff_lat", -91),
        ("pickup_lng", 180.1),
        ("dropoff_lng", -181),
        ("price", "0"),
        ("price", "100000"),
        ("pickup_address", "abc"),
        ("package_description", "x" * 1001),
    ])
    def test_out_of_range_rejected(self, field, value):
        with pytest.raises(ValidationError):
            OrderCreate(**generate_order(**{field: value}))
    
    def test_addresses_are_stripped(self):
        order = OrderCreate(**generate_order(pickup_address="   12 Main Street   "))
        assert order.pickup_address == "12 Main Street"
    
    def test_update_tracks_only_sent_fields(self):
        update = OrderUpdate(price="12.5")
        assert update.model_dump(exclude_unset=True) == {"price": Decimal("12.50")}
    
    @pytest.mark.parametrize("field", [
        "pickup_address",
        "pickup_lat",
        "pickup_lng",
        "dropoff_address",
        "dropoff_lat",
        "dropoff_lng",
        "package_description",
        "price",
        "delivery_status",
        "payment_status",
    ])
    def test_update_rejects_explicit_null(self, field):
        with pytest.raises(ValidationError):
            OrderUpdate(**{field: None})
    
    def test_update_allows_null_driver(self):
        update = OrderUpdate(driver_id=None)
        assert update.model_dump(exclude_unset=True) == {"driver_id": None}


class TestUserRegister:
    
    def test_driver_requires_vehicle_and_license(self):
        data = generate_user(role="driver")
        data.pop("license_number")
        with pytest.raises(ValidationError):
            UserRegister(**data)
    
    def test_customer_driver_fields_are_cleared(self):
        user = UserRegister(**generate_user(role="customer", vehicle_number="AB-1234"))
        assert user.vehicle_number is None
    
    @pytest.mark.parametrize("password", ["short", "alllowercase1", "ALLUPPER1", "NoDigitsHere"])
    def test_weak_passwords_rejected(self, password):
        with pytest.raises(ValidationError):
            UserRegister(**generate_user(password=password))
    
    def test_email_is_lowercased(self):
        user = UserRegister(**generate_user(email="Jane.Doe@Example.COM"))
        assert user.email == "jane.doe@example.com"
    
    def test_invalid_phone_rejected(self):
        with pytest.raises(ValidationError):
            UserRegister(**generate_user(phone="0123"))


def test_password_confirmation_must_match():
    with pytest.raises(ValidationError):
        PasswordChangeRequest(
            current_password="Secret123",
            new_password="Better456",
            confirm_password="Better457",
        )


@pytest.mark.parametrize("field", ["full_name", "email", "phone", "status"])
def test_user_update_rejects_explicit_null(field):
    with pytest.raises(ValidationError):
        UserUpdate(**{field: None})


def test_user_update_allows_clearing_address():
    assert UserUpdate(address=None).model_dump(exclude_unset=True) == {"address": None}
