class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when a caller cannot be identified."""


class InvalidCredentials(AuthenticationError):
    """Unknown email or wrong password; both share one message."""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message)


class AccountSuspended(AuthenticationError):
    def __init__(self, message: str = "Your account has been suspended"):
        super().__init__(message)


class AccountInactive(AuthenticationError):
    def __init__(self, message: str = "Your account is inactive"):
        super().__init__(message)


class SessionExpired(AuthenticationError):
    def __init__(self, message: str = "Session expired, please sign in again"):
        super().__init__(message)


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""


class ConflictError(DomainError):
    """Raised when an operation conflicts with the current state."""


class InsufficientBalance(ValidationError):
    def __init__(self, requested, available):
        super().__init__(f"Insufficient leave balance: requested {requested}, available {available}")
        self.requested = requested
        self.available = available


class AlreadyDecided(ConflictError):
    def __init__(self, message: str = "Request has already been decided"):
        super().__init__(message)


class InvalidTransition(ConflictError):
    """Raised when a state machine rejects an event."""


class AttendanceStateError(ConflictError):
    """Attendance event does not match the current clock state."""


class NoActiveSession(AttendanceStateError):
    def __init__(self, message: str = "You are not clocked in"):
        super().__init__(message)


class AlreadyClockedIn(AttendanceStateError):
    def __init__(self, message: str = "You have already clocked in today"):
        super().__init__(message)


class RecordLocked(AttendanceStateError):
    def __init__(self, message: str = "Attendance record is locked"):
        super().__init__(message)
