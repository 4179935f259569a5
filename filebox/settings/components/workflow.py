"""File manager workflow settings."""

from filebox.settings.components import config

# Per-object ceiling, shared by the client-side check and the blob store
FILEBOX_MAX_UPLOAD_BYTES = config(
    'FILEBOX_MAX_UPLOAD_BYTES',
    cast=int,
    default=50 * 1024 * 1024,
)

# Finished upload tasks stay visible this long
FILEBOX_TASK_DISMISS_SECONDS = config(
    'FILEBOX_TASK_DISMISS_SECONDS',
    cast=float,
    default=3,
)

# Lifetime of signed preview URLs
FILEBOX_PREVIEW_URL_TTL = config(
    'FILEBOX_PREVIEW_URL_TTL',
    cast=int,
    default=3600,
)

FILEBOX_CACHE_CONTROL = config(
    'FILEBOX_CACHE_CONTROL',
    default='max-age=3600',
)

# New accounts must be confirmed before they can sign in
ACCOUNTS_REQUIRE_CONFIRMATION = config(
    'ACCOUNTS_REQUIRE_CONFIRMATION',
    cast=bool,
    default=False,
)
