"""Service-level error taxonomy, mapped to HTTP responses in main.py."""


class BabyCareError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 400
    code = "error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = message or (self.__class__.__doc__ or self.code).strip()


class ValidationError(BabyCareError):
    """Malformed input."""

    status_code = 422
    code = "validation_error"


class PermissionDenied(BabyCareError):
    """Your role does not allow this action."""

    status_code = 403
    code = "permission_denied"


class NotFound(BabyCareError):
    """Resource not found."""

    status_code = 404
    code = "not_found"


class InvitationNotFound(NotFound):
    """Invitation does not exist or has already been used."""

    code = "invitation_not_found"


class InvitationExpired(BabyCareError):
    """This invitation has expired."""

    status_code = 410
    code = "invitation_expired"


class EmailMismatch(BabyCareError):
    """Signed-in account does not match the invited email."""

    status_code = 403
    code = "email_mismatch"


class AlreadyCollaborator(BabyCareError):
    """User already has access to this baby."""

    status_code = 409
    code = "already_collaborator"


class AuthenticationRequired(BabyCareError):
    """Sign in to continue."""

    status_code = 401
    code = "authentication_required"

    def __init__(self, message: str = "", sign_in_url: str | None = None) -> None:
        super().__init__(message)
        self.sign_in_url = sign_in_url


class StoreError(BabyCareError):
    """The record store is temporarily unavailable."""

    status_code = 503
    code = "store_error"


class AuthNotConfigured(BabyCareError):
    """Sign-in is not configured on this server."""

    status_code = 503
    code = "auth_not_configured"
