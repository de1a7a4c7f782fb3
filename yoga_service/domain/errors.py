class YogaError(Exception):
    """Базовая ошибка сервиса: несёт HTTP-статус и стабильный код."""
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str | None = None):
        self.message = message or self.__class__.__doc__ or self.code
        super().__init__(self.message)


class Unauthenticated(YogaError):
    """Invalid authorization"""
    status_code = 401
    code = "unauthenticated"


class Forbidden(YogaError):
    """Forbidden access"""
    status_code = 403
    code = "forbidden"


class Unauthorized(YogaError):
    """Unauthorized access"""
    status_code = 401
    code = "unauthorized"


class TokenInvalid(YogaError):
    """Invalid token"""
    status_code = 403
    code = "token_invalid"


class NotFound(YogaError):
    """Not found"""
    status_code = 404
    code = "not_found"


class AlreadyExists(YogaError):
    """Already exists"""
    status_code = 409
    code = "already_exists"


class InvalidRequest(YogaError):
    """Invalid request"""
    status_code = 400
    code = "invalid_request"


class ClassNotFound(YogaError):
    """Class not found"""
    status_code = 409
    code = "class_not_found"

    def __init__(self, missing_ids=()):
        self.missing_ids = tuple(missing_ids)
        super().__init__(f"Classes not found: {list(self.missing_ids)}" if self.missing_ids else None)


class CapacityError(YogaError):
    """No seats available"""
    status_code = 409
    code = "capacity_exceeded"

    def __init__(self, class_id: int | None = None):
        self.class_id = class_id
        super().__init__(f"No seats available for class {class_id}" if class_id is not None else None)


class DuplicateTransaction(YogaError):
    """Transaction already recorded"""
    status_code = 409
    code = "duplicate_transaction"


class PaymentProviderError(YogaError):
    """Payment provider error"""
    status_code = 502
    code = "payment_provider_error"


class StoreUnavailable(YogaError):
    """Store unavailable, retry later"""
    status_code = 503
    code = "store_unavailable"
