class ServiceError(Exception):
    """Base for failures the HTTP layer turns into a status code."""

    status_code = 500
    default_detail = "Internal server error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(ServiceError):
    status_code = 400
    default_detail = "Missing or invalid fields"


class Unauthorized(ServiceError):
    status_code = 401
    default_detail = "Authentication required"


class Forbidden(ServiceError):
    status_code = 403
    default_detail = "Not allowed"


class NotFound(ServiceError):
    status_code = 404
    default_detail = "Not found"


class StoreFailure(ServiceError):
    status_code = 500
    default_detail = "Storage unavailable"
