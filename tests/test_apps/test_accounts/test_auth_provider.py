"""Tests for the auth provider."""

import pytest
from django.contrib.auth import get_user_model

from filebox.apps.accounts.exceptions import AuthError, AuthErrorKind
from filebox.apps.accounts.logic.auth_provider import (
    AuthProvider,
    SessionEvent,
    confirm_account,
)

User = get_user_model()


@pytest.mark.django_db
def test_sign_up_creates_active_account(provider):
    """Test registration without confirmation."""
    provider.sign_up(' Bob@Example.com ', 'a-strong-pass-91')

    user = User.objects.get(username='Bob@example.com')
    assert user.is_active
    assert user.email == 'Bob@example.com'


@pytest.mark.django_db
def test_sign_up_already_registered(provider, account, credentials):
    """Test that an email can be registered only once."""
    email, password = credentials

    with pytest.raises(AuthError) as exc_info:
        provider.sign_up(email, password)

    assert exc_info.value.kind == AuthErrorKind.ALREADY_REGISTERED


@pytest.mark.django_db
def test_sign_up_weak_password(provider):
    """Test that password validators reject weak passwords."""
    with pytest.raises(AuthError) as exc_info:
        provider.sign_up('bob@example.com', '123')

    assert exc_info.value.kind == AuthErrorKind.WEAK_PASSWORD
    assert not User.objects.exists()


@pytest.mark.django_db
def test_sign_up_blank_input(provider):
    """Test that blank credentials are refused."""
    with pytest.raises(AuthError) as exc_info:
        provider.sign_up('  ', '')

    assert exc_info.value.kind == AuthErrorKind.INVALID_CREDENTIALS


@pytest.mark.django_db
def test_sign_in_returns_session(provider, account, credentials):
    """Test signing in with valid credentials."""
    session = provider.sign_in(*credentials)

    assert session.user_id == account.id
    assert session.email == account.email
    assert provider.session_key == session.session_key
    assert provider.get_current_session() == session


@pytest.mark.django_db
def test_sign_in_wrong_password(provider, account, credentials):
    """Test that a wrong password is reported as invalid credentials."""
    email, _ = credentials

    with pytest.raises(AuthError) as exc_info:
        provider.sign_in(email, 'wrong-password')

    assert exc_info.value.kind == AuthErrorKind.INVALID_CREDENTIALS
    assert exc_info.value.detail == 'Invalid login credentials'
    assert provider.session_key is None


@pytest.mark.django_db
def test_sign_in_unknown_account(provider):
    """Test signing in to an account that does not exist."""
    with pytest.raises(AuthError) as exc_info:
        provider.sign_in('nobody@example.com', 'whatever-123')

    assert exc_info.value.kind == AuthErrorKind.INVALID_CREDENTIALS


@pytest.mark.django_db
def test_confirmation_required(provider, settings):
    """Test that unconfirmed accounts cannot sign in until confirmed."""
    settings.ACCOUNTS_REQUIRE_CONFIRMATION = True
    provider.sign_up('carol@example.com', 'a-strong-pass-91')

    with pytest.raises(AuthError) as exc_info:
        provider.sign_in('carol@example.com', 'a-strong-pass-91')

    assert exc_info.value.kind == AuthErrorKind.UNCONFIRMED_ACCOUNT

    assert confirm_account('carol@example.com') is True
    assert confirm_account('carol@example.com') is False
    assert provider.sign_in('carol@example.com', 'a-strong-pass-91') is not None


@pytest.mark.django_db
def test_resume_session_by_key(provider, account, credentials):
    """Test that a second client can resume a session by its key."""
    session = provider.sign_in(*credentials)

    resumed = AuthProvider(session.session_key).get_current_session()

    assert resumed == session


@pytest.mark.django_db
def test_sign_out_ends_session(provider, account, credentials):
    """Test that signing out invalidates the session key."""
    session = provider.sign_in(*credentials)

    provider.sign_out()

    assert provider.session_key is None
    assert provider.get_current_session() is None
    assert AuthProvider(session.session_key).get_current_session() is None


@pytest.mark.django_db
def test_sign_out_without_session(provider):
    """Test that signing out twice is harmless."""
    provider.sign_out()

    assert provider.session_key is None


@pytest.mark.django_db
def test_password_change_expires_session(provider, account, credentials):
    """Test that a changed password invalidates existing sessions."""
    provider.sign_in(*credentials)
    events = []
    provider.subscribe(lambda event, session: events.append((event, session)))

    account.set_password('another-pass-77')
    account.save()

    assert provider.get_current_session() is None
    assert events == [(SessionEvent.EXPIRED, None)]


@pytest.mark.django_db
def test_deactivated_account_expires_session(provider, account, credentials):
    """Test that deactivating the account invalidates its session."""
    provider.sign_in(*credentials)
    account.is_active = False
    account.save()

    assert provider.get_current_session() is None
    assert provider.session_key is None


@pytest.mark.django_db
def test_subscribe_reports_own_events_only(account, credentials):
    """Test that subscribers only hear about their own client's session."""
    first = AuthProvider()
    second = AuthProvider()
    first.sign_in(*credentials)
    second.sign_in(*credentials)
    events = []
    unsubscribe = first.subscribe(lambda event, session: events.append(event))

    second.sign_out()
    first.sign_out()
    unsubscribe()

    assert events == [SessionEvent.SIGNED_OUT]


@pytest.mark.django_db
def test_subscribe_reports_sign_in(provider, account, credentials):
    """Test that a fresh sign-in on the same client is reported."""
    events = []
    unsubscribe = provider.subscribe(
        lambda event, session: events.append((event, session)),
    )

    session = provider.sign_in(*credentials)
    unsubscribe()

    assert events == [(SessionEvent.SIGNED_IN, session)]


@pytest.mark.django_db
def test_unsubscribe_stops_events(provider, account, credentials):
    """Test that no events arrive after unsubscribing."""
    provider.sign_in(*credentials)
    events = []
    unsubscribe = provider.subscribe(lambda event, session: events.append(event))

    unsubscribe()
    provider.sign_out()

    assert events == []
