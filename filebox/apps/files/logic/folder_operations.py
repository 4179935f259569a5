"""Business logic for folder operations."""

import dataclasses
import logging
from typing import final

from filebox.apps.files.exceptions import StoreError
from filebox.apps.files.logic import records
from filebox.apps.files.models import Folder

logger = logging.getLogger(__name__)


@final
@dataclasses.dataclass(frozen=True, slots=True)
class FolderDeletion:
    """Outcome of a folder delete.

    ``cascade_error`` is set when the folder's file records could not be
    removed first; those records now reference a folder that is gone.
    """

    folder_id: int
    files_deleted: int
    cascade_error: StoreError | None = None


def create_folder(
    owner_id: int,
    name: str,
    parent_id: int | None = None,
) -> Folder | None:
    """Create a folder from user input.

    Args:
        owner_id: ID of the owning user.
        name: Raw folder name; surrounding whitespace is dropped.
        parent_id: Parent folder, or None.

    Returns:
        Created Folder, or None if the name is blank (nothing is stored).

    Raises:
        StoreError: If the folder cannot be created.
    """
    folder_name = name.strip()
    if not folder_name:
        logger.debug('Ignoring folder create with blank name')
        return None
    return records.insert_folder(owner_id, folder_name, parent_id)


def delete_folder(owner_id: int, folder_id: int) -> FolderDeletion:
    """Delete a folder and, first, the file records inside it.

    The file cascade is best effort: its failure is logged and the
    folder record is deleted anyway. Blobs are not touched.

    Args:
        owner_id: ID of the owning user.
        folder_id: Folder to delete.

    Returns:
        FolderDeletion describing what happened to the files.

    Raises:
        StoreError: If the folder record itself cannot be deleted.
    """
    files_deleted = 0
    cascade_error = None
    try:
        files_deleted = records.delete_files_by_folder(owner_id, folder_id)
    except StoreError as error:
        logger.warning(
            'Failed to delete files in folder %d, records may dangle: %s',
            folder_id,
            error.detail,
        )
        cascade_error = error

    records.delete_folder(owner_id, folder_id)
    logger.info(
        'Folder deleted: ID=%d (%d file records removed)',
        folder_id,
        files_deleted,
    )
    return FolderDeletion(
        folder_id=folder_id,
        files_deleted=files_deleted,
        cascade_error=cascade_error,
    )
