"""Immutable snapshots of the file manager's view state.

The presentation layer only ever sees these frozen objects; every
change produces a new ``WorkspaceState``.
"""

import dataclasses
import enum
from datetime import datetime
from typing import Self, final

from filebox.apps.files.infrastructure.metadata import (
    format_file_size,
    is_image_type,
)
from filebox.apps.files.models import File, Folder


class UploadStatus(enum.StrEnum):
    """Lifecycle of one upload task."""

    UPLOADING = 'uploading'
    COMPLETED = 'completed'
    ERROR = 'error'


@final
@dataclasses.dataclass(frozen=True, slots=True)
class FileRecord:
    """Read-only view of a file's metadata."""

    id: int
    name: str
    original_name: str
    file_type: str
    file_size: int
    storage_path: str
    folder_id: int | None
    created_at: datetime

    @classmethod
    def from_model(cls, file_instance: File) -> Self:
        """Snapshot a File row."""
        return cls(
            id=file_instance.id,
            name=file_instance.name,
            original_name=file_instance.original_name,
            file_type=file_instance.file_type,
            file_size=file_instance.file_size,
            storage_path=file_instance.storage_path,
            folder_id=file_instance.folder_id,
            created_at=file_instance.created_at,
        )

    @property
    def size_display(self) -> str:
        """Human-readable size."""
        return format_file_size(self.file_size)

    @property
    def is_image(self) -> bool:
        """Whether an image preview is available."""
        return is_image_type(self.file_type)


@final
@dataclasses.dataclass(frozen=True, slots=True)
class FolderRecord:
    """Read-only view of a folder."""

    id: int
    name: str
    user_id: int
    parent_folder_id: int | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, folder: Folder) -> Self:
        """Snapshot a Folder row."""
        return cls(
            id=folder.id,
            name=folder.name,
            user_id=folder.user_id,
            parent_folder_id=folder.parent_folder_id,
            created_at=folder.created_at,
            updated_at=folder.updated_at,
        )


@final
@dataclasses.dataclass(frozen=True, slots=True)
class UploadTask:
    """Progress of one file's upload.

    ``progress`` is the percentage of bytes handed to the blob store.
    ``finished_at`` is the clock reading when the task reached a
    terminal status.
    """

    task_id: int
    file_name: str
    size_bytes: int
    status: UploadStatus = UploadStatus.UPLOADING
    progress: int = 0
    finished_at: float | None = None

    @property
    def is_finished(self) -> bool:
        """Whether the task reached completed or error."""
        return self.status is not UploadStatus.UPLOADING


@final
@dataclasses.dataclass(frozen=True, slots=True)
class WorkspaceState:
    """Everything the presentation layer renders."""

    files: tuple[FileRecord, ...] = ()
    folders: tuple[FolderRecord, ...] = ()
    tasks: tuple[UploadTask, ...] = ()
    selected_folder_id: int | None = None
    folder_name_draft: str = ''
    loading: bool = True
    uploading: bool = False
    errors: tuple[str, ...] = ()

    @property
    def selected_folder(self) -> FolderRecord | None:
        """The selected folder, if it is among the loaded folders."""
        for folder in self.folders:
            if folder.id == self.selected_folder_id:
                return folder
        return None
