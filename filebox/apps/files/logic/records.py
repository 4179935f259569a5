"""Owner-scoped metadata operations for files and folders.

Every query filters on the owner id, so one user can never read or
modify another user's rows through this module. Database failures are
translated into ``StoreError``.
"""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from django.db import DatabaseError, IntegrityError, transaction

from filebox.apps.files.exceptions import StoreError, StoreErrorKind
from filebox.apps.files.models import File, Folder

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Translate database exceptions raised inside the block.

    Args:
        operation: Short description used in logs and error details.

    Yields:
        Nothing.

    Raises:
        StoreError: constraint for integrity errors,
            connectivity for everything else the database raises.
    """
    try:
        yield
    except IntegrityError as error:
        logger.exception('Constraint violation during %s', operation)
        raise StoreError(
            StoreErrorKind.CONSTRAINT,
            f'Failed to {operation}: {error}',
        ) from error
    except DatabaseError as error:
        logger.exception('Database error during %s', operation)
        raise StoreError(
            StoreErrorKind.CONNECTIVITY,
            f'Failed to {operation}: {error}',
        ) from error


def list_files(owner_id: int, folder_id: int | None = None) -> list[File]:
    """List files in one folder, newest first.

    Not recursive: ``folder_id=None`` lists top-level files only.

    Args:
        owner_id: ID of the owning user.
        folder_id: Folder to list, or None for files without a folder.

    Returns:
        Matching files (possibly empty).

    Raises:
        StoreError: If the query fails.
    """
    queryset = File.objects.filter(user_id=owner_id)
    if folder_id is None:
        queryset = queryset.filter(folder__isnull=True)
    else:
        queryset = queryset.filter(folder_id=folder_id)

    logger.debug('Listing files: owner=%d folder=%s', owner_id, folder_id)
    with _store_errors('load files'):
        return list(queryset.order_by('-created_at', '-id'))


def list_folders(owner_id: int) -> list[Folder]:
    """List all folders of the owner, newest first, regardless of parent.

    Args:
        owner_id: ID of the owning user.

    Returns:
        Folders (possibly empty).

    Raises:
        StoreError: If the query fails.
    """
    with _store_errors('load folders'):
        return list(
            Folder.objects.filter(user_id=owner_id).order_by('-created_at', '-id'),
        )


def get_file(owner_id: int, file_id: int) -> File:
    """Get one file record.

    Args:
        owner_id: ID of the owning user.
        file_id: File ID.

    Returns:
        File instance.

    Raises:
        StoreError: not_found if absent or owned by another user.
    """
    with _store_errors('load file'):
        try:
            return File.objects.get(id=file_id, user_id=owner_id)
        except File.DoesNotExist as error:
            raise _not_found('File', file_id) from error


def insert_file(  # noqa: WPS211
    owner_id: int,
    storage_path: str,
    original_name: str,
    file_type: str,
    file_size: int,
    folder_id: int | None = None,
) -> File:
    """Create a file record.

    ``name`` is always set to ``storage_path``.

    Args:
        owner_id: ID of the owning user.
        storage_path: Key of the already-written blob.
        original_name: Display name.
        file_type: MIME type.
        file_size: Size in bytes.
        folder_id: Containing folder, or None for top level.

    Returns:
        Created File with its assigned id and created_at.

    Raises:
        StoreError: constraint if the folder is not the owner's, or the
            row violates a constraint; connectivity on database failure.
    """
    with _store_errors('save file record'), transaction.atomic():
        if folder_id is not None:
            _ensure_folder_owned(owner_id, folder_id)

        file_instance = File.objects.create(
            user_id=owner_id,
            name=storage_path,
            original_name=original_name,
            file_type=file_type,
            file_size=file_size,
            storage_path=storage_path,
            folder_id=folder_id,
        )

    logger.info(
        'File record created in database: %s (ID: %d)',
        storage_path,
        file_instance.id,
    )
    return file_instance


def insert_folder(
    owner_id: int,
    name: str,
    parent_id: int | None = None,
) -> Folder:
    """Create a folder record.

    Args:
        owner_id: ID of the owning user.
        name: Folder name (callers trim it first).
        parent_id: Parent folder, or None.

    Returns:
        Created Folder.

    Raises:
        StoreError: constraint if the name is empty or the parent is not
            the owner's; connectivity on database failure.
    """
    if not name.strip():
        raise StoreError(
            StoreErrorKind.CONSTRAINT,
            'Folder name cannot be empty',
        )

    with _store_errors('create folder'), transaction.atomic():
        if parent_id is not None:
            _ensure_folder_owned(owner_id, parent_id)

        folder = Folder.objects.create(
            user_id=owner_id,
            name=name,
            parent_folder_id=parent_id,
        )

    logger.info('Folder created: %s (ID: %d)', name, folder.id)
    return folder


def delete_file(owner_id: int, file_id: int) -> None:
    """Delete exactly one file record.

    Args:
        owner_id: ID of the owning user.
        file_id: File ID.

    Raises:
        StoreError: not_found if absent or owned by another user.
    """
    _delete_one(
        lambda: File.objects.filter(id=file_id, user_id=owner_id).delete(),
        'File',
        file_id,
    )


def delete_files_by_folder(owner_id: int, folder_id: int) -> int:
    """Delete every file record in a folder.

    Only the rows are removed; blobs are left untouched.

    Args:
        owner_id: ID of the owning user.
        folder_id: Folder whose files are deleted.

    Returns:
        Number of records deleted.

    Raises:
        StoreError: On database failure.
    """
    with _store_errors('delete files in folder'):
        deleted, _ = File.objects.filter(
            user_id=owner_id,
            folder_id=folder_id,
        ).delete()

    logger.info('Deleted %d file records in folder %d', deleted, folder_id)
    return deleted


def delete_folder(owner_id: int, folder_id: int) -> None:
    """Delete exactly one folder record.

    Args:
        owner_id: ID of the owning user.
        folder_id: Folder ID.

    Raises:
        StoreError: not_found if absent or owned by another user.
    """
    _delete_one(
        lambda: Folder.objects.filter(id=folder_id, user_id=owner_id).delete(),
        'Folder',
        folder_id,
    )


def _delete_one(
    delete: Callable[[], tuple[int, dict[str, int]]],
    label: str,
    object_id: int,
) -> None:
    with _store_errors(f'delete {label.lower()}'):
        deleted, _ = delete()

    if not deleted:
        raise _not_found(label, object_id)
    logger.info('%s record deleted from database: ID=%d', label, object_id)


def _ensure_folder_owned(owner_id: int, folder_id: int) -> None:
    if not Folder.objects.filter(id=folder_id, user_id=owner_id).exists():
        raise StoreError(
            StoreErrorKind.CONSTRAINT,
            f'Folder {folder_id} does not exist',
        )


def _not_found(label: str, object_id: int) -> StoreError:
    logger.warning('%s not found: ID=%s', label, object_id)
    return StoreError(
        StoreErrorKind.NOT_FOUND,
        f'{label} not found: {object_id}',
    )
