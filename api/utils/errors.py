"""
Typed service failures.

Services raise these; the HTTP layer maps ``status_code`` to the response.
All of them are recoverable by the caller.
"""


class ServiceError(Exception):
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(ServiceError):
    """Malformed input: empty label/text, inconsistent range, bad parent."""
    status_code = 400


class PermissionDeniedError(ServiceError):
    """Caller lacks the capability, or the visibility gate refuses access."""
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    """Write rejected as a whole: duplicate order, or a rolled-back cascade."""
    status_code = 409
