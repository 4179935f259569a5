"""Exceptions for files app.

Each external collaborator has one closed error family. Every error
carries a machine-readable ``kind`` and a human-readable ``detail``
that the workflow shows to the user as-is.
"""

import enum


class StoreErrorKind(enum.StrEnum):
    """Failure classes of the metadata store."""

    CONSTRAINT = 'constraint'
    NOT_FOUND = 'not_found'
    CONNECTIVITY = 'connectivity'


class BlobErrorKind(enum.StrEnum):
    """Failure classes of the blob store."""

    SIZE_LIMIT = 'size_limit'
    CONFLICT = 'conflict'
    NOT_FOUND = 'not_found'
    CONNECTIVITY = 'connectivity'


class StoreError(Exception):
    """Raised when a metadata (row) operation fails."""

    def __init__(self, kind: StoreErrorKind, detail: str) -> None:
        """Initialize StoreError.

        Args:
            kind: Failure class.
            detail: Human-readable description.
        """
        self.kind = kind
        self.detail = detail
        super().__init__(detail)


class BlobError(Exception):
    """Raised when a blob transfer fails."""

    def __init__(
        self,
        kind: BlobErrorKind,
        detail: str,
        path: str = '',
    ) -> None:
        """Initialize BlobError.

        Args:
            kind: Failure class.
            detail: Human-readable description.
            path: Storage path involved, if any.
        """
        self.kind = kind
        self.detail = detail
        self.path = path
        super().__init__(detail)


class FileTooLargeError(BlobError):
    """Raised before any transfer when a file exceeds the upload cap."""

    def __init__(self, file_name: str, size_bytes: int, limit_bytes: int) -> None:
        """Initialize FileTooLargeError.

        Args:
            file_name: Display name of the rejected file.
            size_bytes: Size of the file.
            limit_bytes: Configured per-file limit.
        """
        self.file_name = file_name
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes
        limit_mb = limit_bytes // (1024 * 1024)
        super().__init__(
            BlobErrorKind.SIZE_LIMIT,
            f'The file "{file_name}" is too large. '
            f'The current limit is {limit_mb}MB per file.',
        )
