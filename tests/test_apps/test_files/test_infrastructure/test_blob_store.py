"""Tests for the blob transfer adapter."""

from io import BytesIO

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError
from django.core.files.base import ContentFile

from filebox.apps.files.exceptions import BlobError, BlobErrorKind
from filebox.apps.files.infrastructure.blobs import BlobStore
from filebox.apps.files.infrastructure.storage import FileStorage


def test_upload_stores_content_and_headers(blobs, bucket):
    """Test that upload writes the payload with its content type."""
    blobs.upload(
        '1/1-abc.txt',
        ContentFile(b'hello'),
        content_type='text/plain',
        cache_control='max-age=3600',
    )

    stored = bucket.Object('1/1-abc.txt').get()
    assert stored['Body'].read() == b'hello'
    assert stored['ContentType'] == 'text/plain'
    assert stored['CacheControl'] == 'max-age=3600'


def test_upload_reports_progress(blobs):
    """Test that the progress callback receives every transferred byte."""
    payload = b'x' * 4096
    chunks = []

    blobs.upload(
        '1/1-progress.bin',
        BytesIO(payload),
        content_type='application/octet-stream',
        progress=chunks.append,
    )

    assert sum(chunks) == len(payload)


def test_upload_rewinds_content(blobs, bucket):
    """Test that a stream read earlier is uploaded from its start."""
    content = BytesIO(b'full content')
    content.read()

    blobs.upload('1/1-rewind.txt', content, content_type='text/plain')

    assert bucket.Object('1/1-rewind.txt').get()['Body'].read() == b'full content'


def test_upload_conflict_without_upsert(blobs):
    """Test that an occupied path is refused unless upsert is set."""
    blobs.upload('1/1-dup.txt', ContentFile(b'first'), content_type='text/plain')

    with pytest.raises(BlobError) as exc_info:
        blobs.upload('1/1-dup.txt', ContentFile(b'second'), content_type='text/plain')

    assert exc_info.value.kind == BlobErrorKind.CONFLICT
    assert exc_info.value.path == '1/1-dup.txt'


def test_upload_upsert_replaces(blobs):
    """Test that upsert overwrites an existing blob."""
    blobs.upload('1/1-up.txt', ContentFile(b'first'), content_type='text/plain')
    blobs.upload(
        '1/1-up.txt',
        ContentFile(b'second'),
        content_type='text/plain',
        upsert=True,
    )

    assert blobs.download('1/1-up.txt') == b'second'


def test_upload_above_ceiling(storage, bucket):
    """Test that payloads above the object ceiling are refused."""
    small_blobs = BlobStore(storage, max_object_bytes=4)

    with pytest.raises(BlobError) as exc_info:
        small_blobs.upload('1/1-big.txt', ContentFile(b'12345'), content_type='text/plain')

    assert exc_info.value.kind == BlobErrorKind.SIZE_LIMIT
    assert list(bucket.objects.all()) == []


def test_upload_trusts_known_size(storage, bucket):
    """Test that a size measured by the caller is not measured again."""
    small_blobs = BlobStore(storage, max_object_bytes=4)
    content = BytesIO(b'12')
    content.seekable = lambda: False

    with pytest.raises(BlobError) as exc_info:
        small_blobs.upload(
            '1/1-known.txt',
            content,
            content_type='text/plain',
            size_bytes=5,
        )

    assert exc_info.value.kind == BlobErrorKind.SIZE_LIMIT
    assert list(bucket.objects.all()) == []


def test_upload_transport_failure(blobs, monkeypatch):
    """Test that transport errors become connectivity errors."""
    def fail_upload(*args, **kwargs):
        raise EndpointConnectionError(endpoint_url='http://s3.invalid')

    monkeypatch.setattr(FileStorage, 'upload_object', fail_upload)

    with pytest.raises(BlobError) as exc_info:
        blobs.upload('1/1-x.txt', ContentFile(b'x'), content_type='text/plain')

    assert exc_info.value.kind == BlobErrorKind.CONNECTIVITY


def test_upload_entity_too_large_from_server(blobs, monkeypatch):
    """Test that a server-side size rejection maps to size_limit."""
    def reject_upload(*args, **kwargs):
        raise ClientError(
            {'Error': {'Code': 'EntityTooLarge', 'Message': 'Too large'}},
            'PutObject',
        )

    monkeypatch.setattr(FileStorage, 'upload_object', reject_upload)

    with pytest.raises(BlobError) as exc_info:
        blobs.upload('1/1-x.txt', ContentFile(b'x'), content_type='text/plain')

    assert exc_info.value.kind == BlobErrorKind.SIZE_LIMIT


def test_download_returns_bytes(blobs):
    """Test downloading an existing blob."""
    blobs.upload('1/1-dl.txt', ContentFile(b'payload'), content_type='text/plain')

    assert blobs.download('1/1-dl.txt') == b'payload'


def test_download_missing(blobs):
    """Test that a missing blob raises not_found."""
    with pytest.raises(BlobError) as exc_info:
        blobs.download('1/missing.txt')

    assert exc_info.value.kind == BlobErrorKind.NOT_FOUND


def test_remove_is_idempotent(blobs):
    """Test that removing present and absent paths both succeed."""
    blobs.upload('1/1-rm.txt', ContentFile(b'x'), content_type='text/plain')

    blobs.remove(['1/1-rm.txt', '1/never-existed.txt'])
    blobs.remove(['1/1-rm.txt'])
    blobs.remove([])

    assert not blobs.exists('1/1-rm.txt')


def test_rollback_upload(blobs):
    """Test that rollback deletes the blob and reports success."""
    blobs.upload('1/1-rb.txt', ContentFile(b'x'), content_type='text/plain')

    assert blobs.rollback_upload('1/1-rb.txt') is True
    assert not blobs.exists('1/1-rb.txt')


def test_rollback_upload_failure_is_swallowed(blobs, monkeypatch):
    """Test that a failed rollback reports an orphan instead of raising."""
    def fail_delete(self, name):
        raise EndpointConnectionError(endpoint_url='http://s3.invalid')

    monkeypatch.setattr(FileStorage, 'delete', fail_delete)

    assert blobs.rollback_upload('1/1-rb.txt') is False


def test_create_signed_url(blobs):
    """Test that a signed URL is issued for a stored blob."""
    blobs.upload('1/1-img.png', ContentFile(b'png'), content_type='image/png')

    url = blobs.create_signed_url('1/1-img.png', 3600)

    assert url is not None
    assert '1/1-img.png' in url
    assert 'Expires=' in url or 'X-Amz-Expires=3600' in url


def test_create_signed_url_failure_returns_none(blobs, monkeypatch):
    """Test that signing failures are logged, not raised."""
    def fail_url(*args, **kwargs):
        raise EndpointConnectionError(endpoint_url='http://s3.invalid')

    monkeypatch.setattr(FileStorage, 'url', fail_url)

    assert blobs.create_signed_url('1/1-img.png', 3600) is None


def test_from_settings_builds_fresh_storage(settings, mock_s3):
    """Test that the adapter is built from STORAGES without sharing instances."""
    settings.FILEBOX_MAX_UPLOAD_BYTES = 1234

    first = BlobStore.from_settings()
    second = BlobStore.from_settings()

    assert first.max_object_bytes == 1234
    assert first._storage is not second._storage  # noqa: SLF001
    assert isinstance(first._storage, FileStorage)  # noqa: SLF001
