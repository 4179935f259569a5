"""Exceptions for accounts app."""

import enum


class AuthErrorKind(enum.StrEnum):
    """Failure classes of the auth provider."""

    INVALID_CREDENTIALS = 'invalid_credentials'
    UNCONFIRMED_ACCOUNT = 'unconfirmed_account'
    ALREADY_REGISTERED = 'already_registered'
    WEAK_PASSWORD = 'weak_password'


class AuthError(Exception):
    """Raised when sign-in or sign-up is refused.

    Never retried automatically; ``detail`` is shown to the user.
    """

    def __init__(self, kind: AuthErrorKind, detail: str) -> None:
        """Initialize AuthError.

        Args:
            kind: Failure class.
            detail: Human-readable description.
        """
        self.kind = kind
        self.detail = detail
        super().__init__(detail)
