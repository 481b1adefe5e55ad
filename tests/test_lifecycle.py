"""
Unit tests for the order lifecycle rules.
"""

import pytest

from delivery_backend.core.errors import InvalidState
from delivery_backend.models import DeliveryStatus
from delivery_backend.services import lifecycle


class TestTerminalStates:
    """Delivered and cancelled admit no further transitions."""
    
    def test_terminal_states(self):
        assert lifecycle.is_terminal(DeliveryStatus.DELIVERED)
        assert lifecycle.is_terminal(DeliveryStatus.CANCELLED)
        assert not lifecycle.is_terminal(DeliveryStatus.IN_TRANSIT)
    
    @pytest.mark.parametrize("status", [DeliveryStatus.DELIVERED, DeliveryStatus.CANCELLED])
    def test_cannot_cancel_terminal(self, status):
        with pytest.raises(InvalidState):
            lifecycle.ensure_cancellable(status)
    
    @pytest.mark.parametrize("status", [
        DeliveryStatus.PENDING,
        DeliveryStatus.ASSIGNED,
        DeliveryStatus.PICKED,
        DeliveryStatus.IN_TRANSIT,
    ])
    def test_non_terminal_can_be_cancelled(self, status):
        lifecycle.ensure_cancellable(status)


class TestForwardPath:
    """Tests for the forward path helpers."""
    
    def test_next_state_walks_the_path(self):
        status = DeliveryStatus.PENDING
        visited = [status]
        while lifecycle.next_state(status) is not None:
            status = lifecycle.next_state(status)
            visited.append(status)
        assert tuple(visited) == lifecycle.FORWARD_PATH
    
    def test_cancelled_has_no_next_state(self):
        assert lifecycle.next_state(DeliveryStatus.CANCELLED) is None
    
    def test_only_pending_is_editable_and_assignable(self):
        lifecycle.ensure_editable(DeliveryStatus.PENDING)
        lifecycle.ensure_assignable(DeliveryStatus.PENDING)
        with pytest.raises(InvalidState):
            lifecycle.ensure_editable(DeliveryStatus.ASSIGNED)
        with pytest.raises(InvalidState):
            lifecycle.ensure_assignable(DeliveryStatus.ASSIGNED)


class TestDriverTransitions:
    """Driver progressions are permissive unless forward_only is set."""
    
    def test_skipping_states_allowed_by_default(self):
        lifecycle.ensure_driver_transition(DeliveryStatus.ASSIGNED, DeliveryStatus.DELIVERED)
    
    def test_skipping_states_rejected_when_forward_only(self):
        with pytest.raises(InvalidState):
            lifecycle.ensure_driver_transition(
                DeliveryStatus.ASSIGNED, DeliveryStatus.DELIVERED, forward_only=True
            )
    
    def test_single_step_allowed_when_forward_only(self):
        lifecycle.ensure_driver_transition(
            DeliveryStatus.PICKED, DeliveryStatus.IN_TRANSIT, forward_only=True
        )
    
    def test_terminal_order_rejected(self):
        with pytest.raises(InvalidState):
            lifecycle.ensure_driver_transition(DeliveryStatus.CANCELLED, DeliveryStatus.PICKED)


class TestAdminTransitions:
    """Admins may jump anywhere except out of a terminal state."""
    
    def test_backwards_move_allowed(self):
        lifecycle.ensure_admin_transition(
            DeliveryStatus.IN_TRANSIT, DeliveryStatus.ASSIGNED, has_driver=True
        )
    
    def test_leaving_terminal_rejected(self):
        with pytest.raises(InvalidState):
            lifecycle.ensure_admin_transition(
                DeliveryStatus.DELIVERED, DeliveryStatus.IN_TRANSIT, has_driver=True
            )
    
    def test_same_status_is_a_no_op(self):
        lifecycle.ensure_admin_transition(
            DeliveryStatus.CANCELLED, DeliveryStatus.CANCELLED, has_driver=False
        )
    
    def test_driver_required_past_pending(self):
        with pytest.raises(InvalidState):
            lifecycle.ensure_admin_transition(
                DeliveryStatus.PENDING, DeliveryStatus.PICKED, has_driver=False
            )
    
    def test_cancel_without_driver(self):
        lifecycle.ensure_admin_transition(
            DeliveryStatus.PENDING, DeliveryStatus.CANCELLED, has_driver=False
        )
    
    @pytest.mark.parametrize("current", [DeliveryStatus.PENDING, DeliveryStatus.ASSIGNED])
    def test_pending_with_driver_rejected(self, current):
        with pytest.raises(InvalidState):
            lifecycle.ensure_admin_transition(current, DeliveryStatus.PENDING, has_driver=True)
    
    def test_back_to_pending_without_driver(self):
        lifecycle.ensure_admin_transition(
            DeliveryStatus.ASSIGNED, DeliveryStatus.PENDING, has_driver=False
        )
