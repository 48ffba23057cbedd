"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Scheduled transfer request rejected at creation time"""

    pass


class MissingRecipientError(ValidationError):
    """Recipient name or account number not provided"""

    pass


class InvalidAmountError(ValidationError):
    """Transfer amount is not a positive number"""

    pass


class MissingScheduledDateError(ValidationError):
    """Scheduled date not provided"""

    pass


class InvalidSourceAccountError(ValidationError):
    """Source account cannot fund transfers"""

    pass


class ScheduledDateInPastError(ValidationError):
    """Scheduled date is not in the future"""

    pass


class InvalidEndDateError(ValidationError):
    """End date falls before the scheduled date"""

    pass


class ExecutionError(DomainException):
    """Scheduled transfer failed while running"""

    pass


class InsufficientFundsError(ExecutionError):
    """Source account balance is below the transfer amount"""

    pass


class InvalidRecipientError(ExecutionError):
    """Recipient details are no longer usable at run time"""

    pass


class InvalidTransitionError(DomainException):
    """Status change not allowed from the transfer's current status"""

    pass


class TransferNotFoundError(DomainException):
    """No scheduled transfer with the given id"""

    pass


class AccountNotFoundError(DomainException):
    """No account for the given user"""

    pass


class AccountExistsError(DomainException):
    """An account is already provisioned for the user"""

    pass
