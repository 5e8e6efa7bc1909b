class FitCircleException(Exception):
    """Base exception for the application"""
    kind = "internal"
    status_code = 500
    code = None

    def __init__(self, message: str = "Something went wrong"):
        super().__init__(message)
        self.message = message


class AuthenticationError(FitCircleException):
    """Caller identity could not be resolved"""
    kind = "unauthenticated"
    status_code = 401


class AuthorizationError(FitCircleException):
    """Caller lacks the membership, ownership or friendship required"""
    kind = "forbidden"
    status_code = 403


class NotFriendsError(AuthorizationError):
    code = "not_friends"


class ValidationError(FitCircleException):
    """Input violates a field constraint"""
    kind = "validation_error"
    status_code = 400


class SelfRequestError(ValidationError):
    code = "self_request"


class NotFoundError(FitCircleException):
    """Resource not found or not visible to the caller"""
    kind = "not_found"
    status_code = 404


class ConflictError(FitCircleException):
    """Action would break a uniqueness or state invariant"""
    kind = "conflict"
    status_code = 409


class AlreadyFriendsError(ConflictError):
    code = "already_friends"


class DuplicatePendingError(ConflictError):
    code = "duplicate_pending"
