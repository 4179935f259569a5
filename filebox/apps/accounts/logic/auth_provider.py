"""Auth provider backed by Django users and the session store.

One ``AuthProvider`` plays the role of one client: it remembers the
session key it signed in with and reports changes to that session
to its subscribers.
"""

import dataclasses
import enum
import logging
from collections.abc import Callable
from importlib import import_module
from typing import Any, Final, final

from django.conf import settings
from django.contrib.auth import (
    BACKEND_SESSION_KEY,
    HASH_SESSION_KEY,
    SESSION_KEY,
    authenticate,
    get_user_model,
)
from django.contrib.auth.password_validation import validate_password
from django.contrib.auth.signals import user_logged_in, user_logged_out
from django.core.exceptions import ValidationError
from django.utils.crypto import constant_time_compare

from filebox.apps.accounts.exceptions import AuthError, AuthErrorKind
from filebox.apps.accounts.signals import session_expired

User = get_user_model()
logger = logging.getLogger(__name__)

_INVALID_CREDENTIALS: Final = 'Invalid login credentials'


class SessionEvent(enum.StrEnum):
    """Kinds of session change reported to subscribers."""

    SIGNED_IN = 'signed_in'
    SIGNED_OUT = 'signed_out'
    EXPIRED = 'expired'


@final
@dataclasses.dataclass(frozen=True, slots=True)
class Session:
    """Authenticated identity of the current user."""

    user_id: int
    email: str
    session_key: str


SessionListener = Callable[[SessionEvent, Session | None], None]


def get_require_confirmation() -> bool:
    """Whether new accounts must be confirmed before signing in.

    Returns:
        Setting value or default of False.
    """
    return getattr(settings, 'ACCOUNTS_REQUIRE_CONFIRMATION', False)


def confirm_account(email: str) -> bool:
    """Activate an account created while confirmation was required.

    Args:
        email: Account email.

    Returns:
        True if an inactive account was activated.
    """
    updated = User.objects.filter(
        username=_normalize_email(email),
        is_active=False,
    ).update(is_active=True)
    if updated:
        logger.info('Account confirmed: %s', email)
    return updated > 0


def _normalize_email(email: str) -> str:
    return User.objects.normalize_email(email.strip())


def _session_store_class() -> Any:
    return import_module(settings.SESSION_ENGINE).SessionStore


class AuthProvider:
    """Sign users up, in and out, and track one client's session."""

    def __init__(self, session_key: str | None = None) -> None:
        """Initialize the provider.

        Args:
            session_key: Previously issued session key to resume, if any.
        """
        self._session_key = session_key

    @property
    def session_key(self) -> str | None:
        """Key of the session this client holds, if any."""
        return self._session_key

    def sign_up(self, email: str, password: str) -> None:
        """Register a new account.

        Args:
            email: Account email (also the username).
            password: Plain-text password.

        Raises:
            AuthError: already_registered, weak_password, or
                invalid_credentials for blank input.
        """
        email = _normalize_email(email)
        if not email or not password:
            raise AuthError(
                AuthErrorKind.INVALID_CREDENTIALS,
                'Email and password are required',
            )

        if User.objects.filter(username=email).exists():
            raise AuthError(
                AuthErrorKind.ALREADY_REGISTERED,
                'User already registered',
            )

        try:
            validate_password(password, user=User(username=email, email=email))
        except ValidationError as error:
            raise AuthError(
                AuthErrorKind.WEAK_PASSWORD,
                ' '.join(error.messages),
            ) from error

        User.objects.create_user(
            username=email,
            email=email,
            password=password,
            is_active=not get_require_confirmation(),
        )
        logger.info('Account registered: %s', email)

    def sign_in(self, email: str, password: str) -> Session:
        """Authenticate and open a new session.

        Args:
            email: Account email.
            password: Plain-text password.

        Returns:
            The new Session.

        Raises:
            AuthError: invalid_credentials or unconfirmed_account.
        """
        email = _normalize_email(email)
        user = authenticate(username=email, password=password)

        if user is None:
            candidate = User.objects.filter(username=email).first()
            if (
                candidate is not None
                and not candidate.is_active
                and candidate.check_password(password)
            ):
                logger.warning('Sign-in of unconfirmed account: %s', email)
                raise AuthError(
                    AuthErrorKind.UNCONFIRMED_ACCOUNT,
                    'Email not confirmed',
                )
            logger.warning('Authentication failed for user: %s', email)
            raise AuthError(
                AuthErrorKind.INVALID_CREDENTIALS,
                _INVALID_CREDENTIALS,
            )

        store = _session_store_class()()
        store[SESSION_KEY] = user._meta.pk.value_to_string(user)  # noqa: SLF001
        store[BACKEND_SESSION_KEY] = user.backend
        store[HASH_SESSION_KEY] = user.get_session_auth_hash()
        store.save()
        self._session_key = store.session_key

        session = Session(
            user_id=user.pk,
            email=user.email,
            session_key=store.session_key,
        )
        logger.info('User signed in: %s', email)
        user_logged_in.send(
            sender=user.__class__,
            request=None,
            user=user,
            session_key=store.session_key,
        )
        return session

    def sign_out(self) -> None:
        """End the held session; subscribers get ``signed_out``."""
        session_key = self._session_key
        if session_key is None:
            return

        store = _session_store_class()(session_key=session_key)
        user_id = store.get(SESSION_KEY)
        store.flush()

        user = User.objects.filter(pk=user_id).first() if user_id else None
        logger.info('Session ended: %s', session_key[:8])
        user_logged_out.send(
            sender=User,
            request=None,
            user=user,
            session_key=session_key,
        )
        self._session_key = None

    def get_current_session(self) -> Session | None:
        """Resolve the held session.

        A held key that no longer resolves to an active user with an
        unchanged password is dropped, and subscribers get ``expired``.

        Returns:
            Session, or None if not signed in.
        """
        session_key = self._session_key
        if session_key is None:
            return None

        store = _session_store_class()(session_key=session_key)
        user_id = store.get(SESSION_KEY)
        user = (
            User.objects.filter(pk=user_id, is_active=True).first()
            if user_id
            else None
        )

        if user is None or not constant_time_compare(
            store.get(HASH_SESSION_KEY, ''),
            user.get_session_auth_hash(),
        ):
            logger.info('Session no longer valid: %s', session_key[:8])
            store.flush()
            session_expired.send(sender=self.__class__, session_key=session_key)
            self._session_key = None
            return None

        return Session(
            user_id=user.pk,
            email=user.email,
            session_key=session_key,
        )

    def subscribe(self, on_change: SessionListener) -> Callable[[], None]:
        """Listen for changes to the session this client holds.

        Args:
            on_change: Called with the event and the session after it
                (None once the session is gone).

        Returns:
            Callable that removes the subscription.
        """

        def handle_logged_in(
            sender: object,
            user: Any = None,
            session_key: str | None = None,
            **kwargs: object,
        ) -> None:
            if session_key is not None and session_key == self._session_key:
                on_change(SessionEvent.SIGNED_IN, self.get_current_session())

        def handle_logged_out(
            sender: object,
            request: Any = None,
            session_key: str | None = None,
            **kwargs: object,
        ) -> None:
            if session_key is None and request is not None:
                session_key = request.session.session_key
            if session_key is not None and session_key == self._session_key:
                on_change(SessionEvent.SIGNED_OUT, None)

        def handle_expired(
            sender: object,
            session_key: str | None = None,
            **kwargs: object,
        ) -> None:
            if session_key is not None and session_key == self._session_key:
                on_change(SessionEvent.EXPIRED, None)

        user_logged_in.connect(handle_logged_in, weak=False)
        user_logged_out.connect(handle_logged_out, weak=False)
        session_expired.connect(handle_expired, weak=False)

        def unsubscribe() -> None:
            user_logged_in.disconnect(handle_logged_in)
            user_logged_out.disconnect(handle_logged_out)
            session_expired.disconnect(handle_expired)

        return unsubscribe
