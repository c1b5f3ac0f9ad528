class AppError(Exception):
    """Base app error."""


class ValidationError(AppError):
    pass


class NotFoundError(AppError):
    pass


class InsufficientStockError(AppError):
    pass


class DuplicateIdError(AppError):
    pass


class ConfirmationError(AppError):
    """Typed confirmation phrase did not match; nothing was cleared."""


class AiUnavailableError(AppError):
    pass


class CatalogParseError(AppError):
    """AI catalog reply is not a JSON array of product objects."""
