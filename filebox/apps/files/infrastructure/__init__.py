"""Infrastructure layer for files app.

This package contains integrations with external systems:
- Custom S3 storage backend and the blob transfer adapter
- Metadata helpers (MIME type, storage keys, sizes)

Keep infrastructure concerns separate from business logic.
"""
