"""Domain exceptions for the Stickerbook service.

Every exception maps to an HTTP status and a stable ``code`` so that clients
can tell business-rule outcomes apart without parsing messages.
"""


class StickerbookError(Exception):
    """Base exception for Stickerbook."""

    status_code = 400
    code = "error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message()
        super().__init__(self.message)

    @classmethod
    def default_message(cls) -> str:
        return cls.__doc__.strip().splitlines()[0] if cls.__doc__ else cls.__name__


class NotAuthenticatedError(StickerbookError):
    """Not signed in or session expired."""

    status_code = 401
    code = "not_authenticated"


class ForbiddenError(StickerbookError):
    """Not allowed to act on this record."""

    status_code = 403
    code = "forbidden"


class ProfileIncompleteError(ForbiddenError):
    """Profile has not been completed yet."""

    code = "profile_incomplete"


class NotFoundError(StickerbookError):
    """Record not found."""

    status_code = 404
    code = "not_found"

    def __init__(self, entity: str | None = None, entity_id: str | None = None) -> None:
        self.entity = entity
        self.entity_id = entity_id
        if entity and entity_id:
            message = f"{entity} not found: {entity_id}"
        elif entity:
            message = f"{entity} not found"
        else:
            message = None
        super().__init__(message)


class ConflictError(StickerbookError):
    """Conflicts with an existing record."""

    status_code = 409
    code = "conflict"


class DuplicateError(ConflictError):
    """A matching record already exists."""

    code = "duplicate"


class InvalidInputError(StickerbookError):
    """Invalid input."""

    status_code = 400
    code = "invalid_input"


class SelfReferenceError(InvalidInputError):
    """Cannot target your own profile."""

    code = "self_reference"


class InvalidOfferError(InvalidInputError):
    """Trade offer is empty or malformed."""

    code = "invalid_offer"


class InsufficientInventoryError(StickerbookError):
    """Not enough stickers to complete this action."""

    status_code = 409
    code = "insufficient_inventory"

    def __init__(
        self,
        message: str | None = None,
        identity_id: str | None = None,
        sticker_id: str | None = None,
    ) -> None:
        self.identity_id = identity_id
        self.sticker_id = sticker_id
        super().__init__(message)


class AlreadyResolvedError(StickerbookError):
    """This request has already been answered."""

    status_code = 409
    code = "already_resolved"


class NoStickersAvailableError(StickerbookError):
    """No stickers are available in the catalogue."""

    status_code = 404
    code = "no_stickers_available"


class TransientError(StickerbookError):
    """The store is temporarily unavailable, please retry."""

    status_code = 503
    code = "transient"
