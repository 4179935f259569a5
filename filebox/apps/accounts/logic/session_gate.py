"""Session gate for the file manager.

The gate checks for a session once when the file manager opens and then
watches the provider for sign-out or expiry. Whenever the session goes
away it calls ``on_unauthenticated`` so the caller can send the user
back to the login surface. Failed checks are never retried.
"""

import logging
from collections.abc import Callable

from django.db import DatabaseError

from filebox.apps.accounts.logic.auth_provider import (
    AuthProvider,
    Session,
    SessionEvent,
)

logger = logging.getLogger(__name__)

_TERMINAL_EVENTS = frozenset((SessionEvent.SIGNED_OUT, SessionEvent.EXPIRED))


class SessionGate:
    """Holds the active session for the lifetime of a workflow."""

    def __init__(
        self,
        provider: AuthProvider,
        on_unauthenticated: Callable[[], None],
    ) -> None:
        """Initialize the gate.

        Args:
            provider: Auth provider of this client.
            on_unauthenticated: Called whenever there is no session.
        """
        self.provider = provider
        self._on_unauthenticated = on_unauthenticated
        self._session: Session | None = None
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def session(self) -> Session | None:
        """Currently held session, or None."""
        return self._session

    @property
    def is_authenticated(self) -> bool:
        """Whether a session is held."""
        return self._session is not None

    def activate(self) -> Session | None:
        """Check for a session and start watching it.

        Returns:
            The session, or None after signalling unauthenticated.
        """
        try:
            session = self.provider.get_current_session()
        except DatabaseError:
            logger.exception('Session check failed, treating as signed out')
            session = None

        if session is None:
            logger.info('No active session')
            self._signal_unauthenticated()
            return None

        self._session = session
        if self._unsubscribe is None:
            self._unsubscribe = self.provider.subscribe(self._handle_change)
        logger.info('Session active for user %d', session.user_id)
        return session

    def teardown(self) -> None:
        """Stop watching the provider."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _handle_change(
        self,
        event: SessionEvent,
        session: Session | None,
    ) -> None:
        if event in _TERMINAL_EVENTS or session is None:
            logger.info('Session ended (%s)', event)
            self._signal_unauthenticated()
            return
        self._session = session

    def _signal_unauthenticated(self) -> None:
        self._session = None
        self._on_unauthenticated()
