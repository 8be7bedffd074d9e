"""
Order State Machine - keeps status transition rules out of the Order model.

Transitions are driven by the adjacency table in ``constants.ORDER_TRANSITIONS``
plus one guard: only delivery orders may go out for delivery.
"""

from __future__ import annotations

from tavola_shared.constants import ORDER_TRANSITIONS, OrderStatus, OrderType
from tavola_shared.error_catalog import ServiceError
from tavola_shared.validation import can_transition


class OrderStateError(ServiceError):
    """Error raised when a state transition is invalid."""

    def __init__(self, message: str, current_status: str, target_status: str):
        super().__init__(
            "INVALID_TRANSITION",
            message,
            {"from_status": current_status, "to_status": target_status},
        )
        self.current_status = current_status
        self.target_status = target_status


class OrderStateMachine:
    """
    State machine for order status transitions.

    Responsibilities:
    - Validate allowed transitions
    - Enforce the order-type guard on out_for_delivery
    """

    def __init__(self, transitions=None):
        self._transitions = transitions or ORDER_TRANSITIONS

    def allowed_targets(self, current_status: str) -> set[str]:
        try:
            targets = self._transitions[OrderStatus(current_status)]
        except (ValueError, KeyError):
            return set()
        return {target.value for target in targets}

    def can_transition(self, current_status: str, target_status: str, order_type: str) -> bool:
        try:
            self.validate_transition(current_status, target_status, order_type)
        except OrderStateError:
            return False
        return True

    def validate_transition(self, current_status: str, target_status: str, order_type: str) -> None:
        """
        Raise OrderStateError unless ``current_status -> target_status`` is allowed.
        """
        if not can_transition(self._transitions, current_status, target_status):
            raise OrderStateError(
                f"Invalid status transition from '{current_status}' to '{target_status}'",
                current_status,
                target_status,
            )

        if target_status == OrderStatus.OUT_FOR_DELIVERY and order_type != OrderType.DELIVERY:
            raise OrderStateError(
                "Only delivery orders can be set to 'out_for_delivery'",
                current_status,
                target_status,
            )


order_state_machine = OrderStateMachine()
