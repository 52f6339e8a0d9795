"""Failures raised by the booking core.

Everything except BookingInvariantError is recoverable: the caller keeps the
flow it had before the failing call and may retry or correct its input.
"""


class BookingFlowError(Exception):
    """Base class for recoverable booking flow failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FieldValidationError(BookingFlowError):
    """One or more user-supplied fields are malformed.

    ``errors`` maps a dotted field path (``passengers.0.email``) to a message.
    """

    def __init__(self, errors: dict[str, str], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = dict(errors)


class AvailabilityConflict(BookingFlowError):
    """The chosen fare bucket cannot seat the whole party."""


class SeatsExhausted(AvailabilityConflict):
    """Seats ran out between selection and persistence."""


class UnknownOffer(BookingFlowError):
    """The offer id is not among the current candidates or the catalog."""


class InvalidTransition(BookingFlowError):
    """The requested step is not reachable from the current flow state."""

    def __init__(self, step: str, action: str):
        super().__init__(f"Cannot {action} while {step}")
        self.step = step
        self.action = action


class CollaboratorError(BookingFlowError):
    """A remote dependency (catalog, storage, payment) failed."""


class CatalogUnavailable(CollaboratorError):
    pass


class StorageUnavailable(CollaboratorError):
    pass


class BookingInvariantError(AssertionError):
    """A booking was about to be assembled from inconsistent state.

    This is a programming error, never a user-facing condition.
    """
