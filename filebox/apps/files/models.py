"""Database models for files app."""

from typing import ClassVar, Final, final, override

from django.conf import settings
from django.db import models

# Constants for field max lengths
_NAME_MAX_LENGTH: Final = 255
_STORAGE_KEY_MAX_LENGTH: Final = 1024
_MIME_TYPE_MAX_LENGTH: Final = 255


@final
class Folder(models.Model):
    """User-created container for files.

    Folders may reference a parent folder, but listings are flat:
    every folder of a user is returned regardless of its parent.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='folders',
        db_index=True,
    )

    name = models.CharField(max_length=_NAME_MAX_LENGTH)

    # No DB constraint: folder removal never cascades implicitly
    parent_folder = models.ForeignKey(
        'self',
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        null=True,
        blank=True,
        related_name='subfolders',
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Folder'  # type: ignore[mutable-override]
        verbose_name_plural = 'Folders'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-created_at']

        indexes: ClassVar[list[models.Index]] = [
            models.Index(
                fields=['user', '-created_at'],
                name='folders_user_recent_idx',
            ),
        ]

        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.CheckConstraint(
                condition=~models.Q(name=''),
                name='folders_name_not_empty',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.user_id}:{self.name}'


@final
class File(models.Model):
    """Metadata for one uploaded file.

    The blob itself lives in the S3-compatible store under
    ``storage_path``, which follows the pattern
    ``{user_id}/{folder_id/}{epoch_ms}-{random}.{ext}``.
    ``name`` is that same generated key; ``original_name`` is what
    the user called the file.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='files',
        db_index=True,
    )

    name = models.CharField(
        max_length=_STORAGE_KEY_MAX_LENGTH,
        help_text='Generated storage key',
    )

    original_name = models.CharField(
        max_length=_NAME_MAX_LENGTH,
        help_text='Display name supplied by the user',
    )

    file_type = models.CharField(
        max_length=_MIME_TYPE_MAX_LENGTH,
        default='application/octet-stream',
    )

    file_size = models.BigIntegerField(
        help_text='File size in bytes',
    )

    storage_path = models.CharField(
        max_length=_STORAGE_KEY_MAX_LENGTH,
        help_text='Key of the blob in storage',
    )

    # No DB constraint: a record may outlive its folder (see DESIGN.md)
    folder = models.ForeignKey(
        Folder,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        null=True,
        blank=True,
        related_name='files',
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'File'  # type: ignore[mutable-override]
        verbose_name_plural = 'Files'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-created_at']

        indexes: ClassVar[list[models.Index]] = [
            # Folder listing queries
            models.Index(
                fields=['user', 'folder', '-created_at'],
                name='files_user_folder_recent_idx',
            ),
        ]

        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.UniqueConstraint(
                fields=['storage_path'],
                name='files_storage_path_unique',
            ),
            models.CheckConstraint(
                condition=models.Q(storage_path=models.F('name')),
                name='files_storage_path_matches_name',
            ),
            models.CheckConstraint(
                condition=models.Q(file_size__gte=0),
                name='files_size_non_negative',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.user_id}:{self.original_name}'
