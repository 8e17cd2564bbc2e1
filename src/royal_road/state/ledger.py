"""
Resource ledger: the only way balances move.

credit() and debit() are the sole mutation primitives for rice, honor
and koku. Balances can never go negative: debit refuses, credit never
subtracts.
"""

import math

from ..errors import InvalidAmountError
from .event_bus import EventBus, ResourceChanged
from .schema import ResourceKind, ResourceState


# Changes smaller than this don't notify (suppresses per-tick chatter)
DEFAULT_CHANGE_EPSILON = 1e-3
DEFAULT_RESOURCE_CAP = 1e15


class ResourceLedger:
    """
    Wraps a ResourceState and publishes balance changes.

    Credits notify only when the balance moved by more than epsilon.
    Debits always notify.
    """

    def __init__(
        self,
        state: ResourceState,
        bus: EventBus,
        epsilon: float = DEFAULT_CHANGE_EPSILON,
        cap: float = DEFAULT_RESOURCE_CAP,
    ):
        self._state = state
        self._bus = bus
        self.epsilon = epsilon
        self.cap = cap

    @property
    def state(self) -> ResourceState:
        return self._state

    def bind(self, state: ResourceState) -> None:
        """Point the ledger at a new state (load/reset). Does not notify."""
        self._state = state

    def balance(self, kind: ResourceKind) -> float:
        return self._state.balance(kind)

    def can_afford(self, kind: ResourceKind, amount: float) -> bool:
        return self._state.balance(kind) >= amount

    def credit(self, kind: ResourceKind, amount: float) -> float:
        """
        Add to a balance and its total-earned counter.

        No-op for amount <= 0. Raises InvalidAmountError for NaN/inf.
        Returns the amount actually credited (less than requested only
        when the cap is hit).
        """
        if not math.isfinite(amount):
            raise InvalidAmountError(amount, f"{kind.value} credit")
        if amount <= 0:
            return 0.0

        old = self._state.balance(kind)
        new = min(old + amount, self.cap) if old < self.cap else old
        if new == old:
            return 0.0

        self._state.set_balance(kind, new)

        if abs(new - old) > self.epsilon:
            self._bus.emit(ResourceChanged(resource=kind, old=old, new=new))

        return new - old

    def debit(self, kind: ResourceKind, amount: float) -> bool:
        """
        Spend from a balance.

        Returns False with no mutation if the amount is not a positive
        finite number or the balance is short. Never touches total-earned.
        """
        if not math.isfinite(amount) or amount <= 0:
            return False

        old = self._state.balance(kind)
        if old < amount:
            return False

        new = self._state.set_balance(kind, old - amount)
        self._bus.emit(ResourceChanged(resource=kind, old=old, new=new))
        return True
