"""
Domain exceptions.

Domain exceptions represent business rule violations
and domain-specific error conditions.

Lifecycle outcomes of a verification (banned, expired, gated, mismatch)
are NOT exceptions; they are values of keys.domain.lifecycle.Outcome.
"""


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    def __init__(self, message: str, code: str = None):
        """
        Initialize domain exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class KeyException(DomainException):
    """Base exception for key-related errors."""

    pass


class KeyNotFoundError(KeyException):
    """Raised when an administrative operation targets a missing key."""

    def __init__(self, message: str = "key not found"):
        super().__init__(message, code="KEY_NOT_FOUND")


class KeyAlreadyExistsError(KeyException):
    """Raised when a unique insert collides with an existing key."""

    def __init__(self, message: str = "key already exists"):
        super().__init__(message, code="KEY_ALREADY_EXISTS")


class InvalidKeyError(KeyException):
    """Raised when a key string is malformed."""

    def __init__(self, message: str = "invalid key"):
        super().__init__(message, code="INVALID_KEY")


class InvalidGateTokenError(KeyException):
    """Raised when a gate callback carries a bad or expired token."""

    def __init__(self, message: str = "invalid gate token"):
        super().__init__(message, code="INVALID_GATE_TOKEN")


class KeyIntegrityError(KeyException):
    """
    Raised when a stored record violates the binding invariant.

    hwid and activated_at must be both set or both null. A record
    breaking this means the conditional bind was bypassed upstream.
    """

    def __init__(self, message: str = "key integrity error"):
        super().__init__(message, code="KEY_INTEGRITY_ERROR")


class StoreException(DomainException):
    """Base exception for transient record store errors."""

    pass


class StoreUnavailableError(StoreException):
    """Raised when the record store cannot be read or written."""

    def __init__(self, message: str = "record store unavailable"):
        super().__init__(message, code="STORE_UNAVAILABLE")


class BindConflictError(StoreException):
    """
    Raised when a lost bind race cannot be resolved from the re-read record.

    This happens when the record was reset to unbound between the
    losing bind and the re-read. Callers should try again.
    """

    def __init__(self, message: str = "concurrent binding conflict"):
        super().__init__(message, code="BIND_CONFLICT")
