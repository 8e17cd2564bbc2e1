"""
Exception taxonomy for the progression engine.

Every error is recoverable by the caller: a rejected intent simply has
no effect on engine state.
"""


class RoyalRoadError(Exception):
    """Base class for all engine errors."""
    pass


class InvalidAmountError(RoyalRoadError):
    """A resource amount was NaN, infinite, or negative where not allowed."""
    def __init__(self, amount: float, context: str = "amount"):
        self.amount = amount
        self.context = context
        super().__init__(f"Invalid {context}: {amount!r}")


# -----------------------------------------------------------------------------
# Purchases
# -----------------------------------------------------------------------------

class PurchaseError(RoyalRoadError):
    """A purchase was rejected. Nothing was debited."""
    def __init__(self, item_id: str, message: str):
        self.item_id = item_id
        super().__init__(message)


class UnknownUpgradeError(PurchaseError):
    def __init__(self, item_id: str):
        super().__init__(item_id, f"Unknown upgrade: {item_id}")


class MaxLevelReachedError(PurchaseError):
    def __init__(self, item_id: str, max_level: int):
        self.max_level = max_level
        super().__init__(item_id, f"{item_id} is already at max level {max_level}")


class InsufficientFundsError(PurchaseError):
    def __init__(self, item_id: str, cost: float, balance: float):
        self.cost = cost
        self.balance = balance
        super().__init__(
            item_id,
            f"Cannot afford {item_id}: costs {cost:.2f}, have {balance:.2f}",
        )


class UpgradeLockedError(PurchaseError):
    def __init__(self, item_id: str, reason: str = ""):
        self.reason = reason
        detail = f" ({reason})" if reason else ""
        super().__init__(item_id, f"{item_id} is not unlocked yet{detail}")


# -----------------------------------------------------------------------------
# Ascension
# -----------------------------------------------------------------------------

class AscensionError(RoyalRoadError):
    """Class ascension was rejected. Class and honor are unchanged."""
    pass


class AlreadyAtMaxClassError(AscensionError):
    def __init__(self):
        super().__init__("Already at the highest class.")


class RequirementsNotMetError(AscensionError):
    def __init__(
        self,
        honor: float,
        honor_required: float,
        rice_per_second: float,
        rate_required: float,
    ):
        self.honor = honor
        self.honor_required = honor_required
        self.rice_per_second = rice_per_second
        self.rate_required = rate_required
        super().__init__(
            f"Requirements not met: honor {honor:.1f}/{honor_required:.1f}, "
            f"rice/s {rice_per_second:.1f}/{rate_required:.1f}"
        )


# -----------------------------------------------------------------------------
# Persistence
# -----------------------------------------------------------------------------

class PersistenceError(RoyalRoadError):
    """Save data could not be read, decoded, or written."""
    pass
