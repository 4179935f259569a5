"""File manager workflow.

``FileManager`` is the single object a presentation layer talks to. It
sequences the metadata store and the blob store on behalf of the
signed-in user and publishes every change as a new ``WorkspaceState``.

Errors never escape a public method: each one is logged and its
detail is appended to ``state.errors`` for the user to see.
"""

import dataclasses
import itertools
import logging
import time
from collections.abc import Callable, Iterable
from typing import Any, BinaryIO, Final

from django.conf import settings
from django.core.files.base import File as DjangoFile
from django.db import DatabaseError

from filebox.apps.accounts.logic.auth_provider import AuthProvider
from filebox.apps.accounts.logic.session_gate import SessionGate
from filebox.apps.files.exceptions import (
    BlobError,
    FileTooLargeError,
    StoreError,
)
from filebox.apps.files.infrastructure.blobs import BlobStore
from filebox.apps.files.infrastructure.metadata import get_file_size
from filebox.apps.files.logic import file_operations, folder_operations, records
from filebox.apps.files.logic.file_operations import DownloadedFile
from filebox.apps.files.logic.state import (
    FileRecord,
    FolderRecord,
    UploadStatus,
    UploadTask,
    WorkspaceState,
)

logger = logging.getLogger(__name__)

_DEFAULT_DISMISS_SECONDS: Final = 3
_PERCENT: Final = 100

IncomingFile = BinaryIO | DjangoFile
StateListener = Callable[[WorkspaceState], None]
Confirm = Callable[[str], bool]


def get_task_dismiss_seconds() -> float:
    """Get how long finished upload tasks stay visible.

    Returns:
        Seconds from settings or default of 3.
    """
    return getattr(
        settings,
        'FILEBOX_TASK_DISMISS_SECONDS',
        _DEFAULT_DISMISS_SECONDS,
    )


class FileManager:
    """Folder and file management for one signed-in user."""

    def __init__(
        self,
        gate: SessionGate,
        blobs: BlobStore,
        confirm: Confirm,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the file manager.

        Args:
            gate: Activated session gate.
            blobs: Blob store adapter.
            confirm: Asks the user a yes/no question before destructive
                operations.
            clock: Monotonic clock used to expire finished tasks.
        """
        self._gate = gate
        self._blobs = blobs
        self._confirm = confirm
        self._clock = clock
        self._dismiss_after = get_task_dismiss_seconds()
        self._task_ids = itertools.count(1)
        self._listeners: list[StateListener] = []
        self._state = WorkspaceState()

    @property
    def state(self) -> WorkspaceState:
        """Current snapshot.

        Reading it drops finished tasks whose display time has passed,
        and subscribers receive the pruned snapshot.
        """
        if self._visible_tasks(self._state.tasks) != self._state.tasks:
            self._transition()
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Receive every new snapshot.

        Args:
            listener: Called with each new state.

        Returns:
            Callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def mount(self) -> None:
        """Load folders and top-level files for a freshly opened view."""
        self.load_files()
        self.load_folders()

    def close(self) -> None:
        """Release the session subscription."""
        self._listeners.clear()
        self._gate.teardown()

    # Listings

    def load_files(self) -> None:
        """Reload files of the selected folder.

        On failure the previous listing is kept.
        """
        owner_id = self._owner_id()
        if owner_id is None:
            if self._state.loading:
                self._transition(loading=False)
            return
        try:
            files = records.list_files(owner_id, self._state.selected_folder_id)
        except StoreError as error:
            self._transition(loading=False)
            self._report(f'Error loading files: {error.detail}')
            return
        self._transition(
            files=tuple(FileRecord.from_model(item) for item in files),
            loading=False,
        )

    def load_folders(self) -> None:
        """Reload all folders; failures are only logged."""
        owner_id = self._owner_id()
        if owner_id is None:
            return
        try:
            folders = records.list_folders(owner_id)
        except StoreError as error:
            logger.warning('Error loading folders: %s', error.detail)
            return
        self._transition(
            folders=tuple(FolderRecord.from_model(item) for item in folders),
        )

    # Folders

    def set_folder_name_draft(self, text: str) -> None:
        """Update the new-folder input."""
        self._transition(folder_name_draft=text)

    def create_folder(self, name: str | None = None) -> FolderRecord | None:
        """Create a folder inside the selected folder.

        Args:
            name: Folder name; defaults to the current draft.

        Returns:
            The new folder, or None if the name was blank or creation failed.
        """
        owner_id = self._owner_id()
        if owner_id is None:
            return None
        if name is None:
            name = self._state.folder_name_draft

        try:
            folder = folder_operations.create_folder(
                owner_id,
                name,
                self._state.selected_folder_id,
            )
        except StoreError as error:
            self._transition(folder_name_draft=name)
            self._report(f'Error creating folder: {error.detail}')
            return None

        if folder is None:
            return None
        self._transition(folder_name_draft='')
        self.load_folders()
        return FolderRecord.from_model(folder)

    def select_folder(self, folder_id: int | None) -> None:
        """Show the files of a folder, or top-level files for None."""
        self._transition(selected_folder_id=folder_id)
        self.load_files()

    def delete_folder(self, folder_id: int) -> bool:
        """Delete a folder and the file records inside it, after confirmation.

        Listings are refreshed whatever happens.

        Args:
            folder_id: Folder to delete.

        Returns:
            True if the folder record was deleted.
        """
        owner_id = self._owner_id()
        if owner_id is None:
            return False
        if not self._confirm('Are you sure you want to delete this folder?'):
            return False

        deleted = False
        try:
            folder_operations.delete_folder(owner_id, folder_id)
        except StoreError as error:
            self._report(f'Error deleting folder: {error.detail}')
        else:
            deleted = True

        if deleted and self._state.selected_folder_id == folder_id:
            self._transition(selected_folder_id=None)
        self.load_folders()
        self.load_files()
        return deleted

    # Files

    def upload_files(self, files: Iterable[IncomingFile]) -> list[FileRecord]:
        """Upload a batch of files one after another into the selected folder.

        A failing file does not stop the rest of the batch.

        Args:
            files: Incoming files (multi-select or drag-and-drop).

        Returns:
            Records of the files that were stored.
        """
        owner_id = self._owner_id()
        if owner_id is None:
            return []
        folder_id = self._state.selected_folder_id

        uploaded = []
        try:
            for file_obj in files:
                record = self._upload_one(owner_id, file_obj, folder_id)
                if record is not None:
                    uploaded.append(record)
        finally:
            if self._state.uploading:
                self._transition(uploading=False)
        return uploaded

    def download_file(self, file_id: int) -> DownloadedFile | None:
        """Fetch a file's content for saving under its display name.

        Returns:
            The download, or None on failure.
        """
        owner_id = self._owner_id()
        if owner_id is None:
            return None
        try:
            return file_operations.download_file(owner_id, self._blobs, file_id)
        except (StoreError, BlobError) as error:
            self._report(f'Error downloading file: {error.detail}')
            return None

    def delete_file(self, file_id: int) -> bool:
        """Delete a file's blob and record, after confirmation.

        Returns:
            True if the file was deleted.
        """
        owner_id = self._owner_id()
        if owner_id is None:
            return False

        record = self._find_file(file_id)
        label = record.original_name if record is not None else 'this file'
        if not self._confirm(f'Are you sure you want to delete "{label}"?'):
            return False

        try:
            file_operations.delete_file(owner_id, self._blobs, file_id)
        except (StoreError, BlobError) as error:
            self._report(f'Error deleting file: {error.detail}')
            return False
        self.load_files()
        return True

    def preview_url(self, file_id: int) -> str | None:
        """Signed URL for an image file in the current listing."""
        record = self._find_file(file_id)
        if record is None:
            return None
        return file_operations.get_preview_url(
            self._blobs,
            record.storage_path,
            record.file_type,
        )

    # Session, tasks and messages

    def logout(self) -> None:
        """Sign out; the session gate reacts to the resulting event."""
        try:
            self._gate.provider.sign_out()
        except DatabaseError:
            logger.exception('Sign-out failed')
            self._report('Error signing out')

    def dismiss_finished_tasks(self) -> None:
        """Drop finished tasks whose display time has passed."""
        self._transition()

    def dismiss_errors(self) -> None:
        """Clear shown error messages."""
        self._transition(errors=())

    def _upload_one(
        self,
        owner_id: int,
        file_obj: IncomingFile,
        folder_id: int | None,
    ) -> FileRecord | None:
        file_name = file_operations.get_display_name(file_obj)
        try:
            size_bytes = get_file_size(file_obj)
        except (OSError, ValueError) as error:
            logger.warning('Cannot read %s for upload: %s', file_name, error)
            self._report(f'Error uploading "{file_name}": {error}')
            return None

        try:
            file_operations.check_upload_size(
                file_name,
                size_bytes,
                self._blobs.max_object_bytes,
            )
        except FileTooLargeError as error:
            self._report(error.detail)
            return None

        task = UploadTask(
            task_id=next(self._task_ids),
            file_name=file_name,
            size_bytes=size_bytes,
        )
        self._transition(tasks=(*self._state.tasks, task), uploading=True)

        try:
            file_instance = file_operations.upload_file(
                owner_id,
                self._blobs,
                file_obj,
                folder_id,
                progress=self._progress_tracker(task),
                size_bytes=size_bytes,
            )
        except (BlobError, StoreError) as error:
            self._finish_task(task.task_id, UploadStatus.ERROR)
            self._report(f'Error uploading "{file_name}": {error.detail}')
            return None
        except (OSError, ValueError) as error:
            logger.exception('Reading %s failed during upload', file_name)
            self._finish_task(task.task_id, UploadStatus.ERROR)
            self._report(f'Error uploading "{file_name}": {error}')
            return None

        self._finish_task(task.task_id, UploadStatus.COMPLETED)
        self.load_files()
        return FileRecord.from_model(file_instance)

    def _progress_tracker(self, task: UploadTask) -> Callable[[int], None]:
        transferred = 0

        def on_bytes(bytes_amount: int) -> None:
            nonlocal transferred
            transferred += bytes_amount
            if not task.size_bytes:
                return
            percent = min(_PERCENT, transferred * _PERCENT // task.size_bytes)
            current = self._find_task(task.task_id)
            if current is not None and percent > current.progress:
                self._update_task(task.task_id, progress=percent)

        return on_bytes

    def _finish_task(self, task_id: int, status: UploadStatus) -> None:
        self._update_task(
            task_id,
            status=status,
            progress=_PERCENT,
            finished_at=self._clock(),
        )

    def _update_task(self, task_id: int, **changes: Any) -> None:
        self._transition(tasks=tuple(
            dataclasses.replace(task, **changes) if task.task_id == task_id else task
            for task in self._state.tasks
        ))

    def _find_task(self, task_id: int) -> UploadTask | None:
        for task in self._state.tasks:
            if task.task_id == task_id:
                return task
        return None

    def _find_file(self, file_id: int) -> FileRecord | None:
        for record in self._state.files:
            if record.id == file_id:
                return record
        return None

    def _owner_id(self) -> int | None:
        session = self._gate.session
        if session is None:
            logger.info('Ignoring action without an active session')
            return None
        return session.user_id

    def _report(self, message: str) -> None:
        logger.error(message)
        self._transition(errors=(*self._state.errors, message))

    def _visible_tasks(
        self,
        tasks: tuple[UploadTask, ...],
    ) -> tuple[UploadTask, ...]:
        now = self._clock()
        return tuple(
            task for task in tasks
            if task.finished_at is None
            or now - task.finished_at < self._dismiss_after
        )

    def _transition(self, **changes: Any) -> None:
        state = dataclasses.replace(self._state, **changes)
        visible = self._visible_tasks(state.tasks)
        if visible != state.tasks:
            state = dataclasses.replace(state, tasks=visible)
        self._state = state
        for listener in tuple(self._listeners):
            listener(state)


def open_file_manager(
    provider: AuthProvider,
    on_unauthenticated: Callable[[], None],
    confirm: Confirm,
    blobs: BlobStore | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> FileManager | None:
    """Open the file manager behind the session gate.

    Args:
        provider: Auth provider of this client.
        on_unauthenticated: Called when there is no session, now or later.
        confirm: Yes/no prompt for destructive operations.
        blobs: Blob store adapter; built from settings if omitted.
        clock: Monotonic clock for task expiry.

    Returns:
        Mounted FileManager, or None if not signed in.
    """
    gate = SessionGate(provider, on_unauthenticated)
    if gate.activate() is None:
        return None

    if blobs is None:
        blobs = BlobStore.from_settings()
    manager = FileManager(gate, blobs, confirm, clock)
    manager.mount()
    return manager
