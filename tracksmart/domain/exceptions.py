"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ProfileNotFoundError(DomainException):
    """No spending profile stored for the user"""

    pass


class InvalidTransactionDataError(DomainException):
    """Purchase or cart data is malformed or invalid"""

    pass


class LedgerConflictError(DomainException):
    """Coupon ledger changed between read and conditional write"""

    def __init__(self, user_id: str, expected_version: int | None, actual_version: int | None):
        self.user_id = user_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Coupon ledger conflict for {user_id!r}: expected version {expected_version!r}, "
            f"got {actual_version!r}"
        )


class CouponContentionError(DomainException):
    """Coupon update kept conflicting after all retries"""

    pass
