"""Authentication error taxonomy shared by the service layer."""


class AuthError(Exception):
    """Base authentication error."""

    pass


class InputValidationError(AuthError):
    """Request input failed validation.

    ``errors`` maps each offending field to its messages.
    """

    def __init__(self, errors: dict[str, list[str]], message: str = "Validation errors"):
        super().__init__(message)
        self.message = message
        self.errors = errors


class DuplicateEmailError(AuthError):
    """A user with this email already exists."""

    pass


class InvalidCredentialsError(AuthError):
    """Invalid email or password."""

    pass


class UnauthenticatedError(AuthError):
    """Bearer token is missing, invalid, expired or revoked."""

    pass
