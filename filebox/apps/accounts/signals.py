"""Signals for accounts app.

Sign-in and sign-out reuse ``django.contrib.auth``'s ``user_logged_in``
and ``user_logged_out``; expiry has no Django counterpart.
"""

from django.dispatch import Signal

# Sent with ``session_key`` when a held session is found expired or revoked
session_expired = Signal()
