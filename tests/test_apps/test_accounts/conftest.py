"""Shared fixtures for accounts app tests."""

import pytest
from django.contrib.auth import get_user_model

from filebox.apps.accounts.logic.auth_provider import AuthProvider

User = get_user_model()

_EMAIL = 'alice@example.com'
_PASSWORD = 'correct-horse-42'


@pytest.fixture
def credentials():
    """Email and password of the registered account.

    Returns:
        Tuple of email and password.
    """
    return _EMAIL, _PASSWORD


@pytest.fixture
def account(db):
    """Create an active account.

    Returns:
        User instance.
    """
    return User.objects.create_user(
        username=_EMAIL,
        email=_EMAIL,
        password=_PASSWORD,
    )


@pytest.fixture
def provider():
    """Auth provider without a session.

    Returns:
        AuthProvider instance.
    """
    return AuthProvider()
