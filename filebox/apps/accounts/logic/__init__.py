"""Business logic layer for accounts app.

- auth_provider: sign-up, sign-in, sign-out and session lookup
- session_gate: holds the active session for the file manager
"""
