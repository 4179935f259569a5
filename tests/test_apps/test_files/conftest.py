"""Shared fixtures for files app tests."""

import boto3
import pytest
from django.contrib.auth import get_user_model
from django.core.files.base import ContentFile
from moto import mock_aws

from filebox.apps.accounts.logic.auth_provider import AuthProvider
from filebox.apps.files.infrastructure.blobs import BlobStore
from filebox.apps.files.infrastructure.storage import FileStorage

User = get_user_model()

_TEST_BUCKET = 'user-files'


@pytest.fixture
def user(db):
    """Create test user.

    Returns:
        User instance for testing.
    """
    return User.objects.create_user(
        username='test@example.com',
        password='testpass123',
        email='test@example.com',
    )


@pytest.fixture
def other_user(db):
    """Create second test user for isolation tests.

    Returns:
        Second user instance.
    """
    return User.objects.create_user(
        username='other@example.com',
        password='testpass123',
        email='other@example.com',
    )


@pytest.fixture
def mock_s3():
    """Mock S3 service with user-files bucket.

    Yields:
        boto3 S3 resource with user-files bucket created.
    """
    with mock_aws():
        conn = boto3.resource('s3', region_name='us-east-1')
        conn.create_bucket(Bucket=_TEST_BUCKET)
        yield conn


@pytest.fixture
def storage(mock_s3):
    """Storage backend pointed at the mocked bucket.

    Returns:
        FileStorage instance.
    """
    return FileStorage(
        bucket_name=_TEST_BUCKET,
        region_name='us-east-1',
        endpoint_url=None,
        file_overwrite=False,
        default_acl=None,
    )


@pytest.fixture
def blobs(storage):
    """Blob store adapter over the mocked bucket.

    Returns:
        BlobStore with the default 50 MB ceiling.
    """
    return BlobStore(storage, max_object_bytes=50 * 1024 * 1024)


@pytest.fixture
def provider(user):
    """Auth provider signed in as the test user.

    Returns:
        AuthProvider holding a live session.
    """
    auth_provider = AuthProvider()
    auth_provider.sign_in('test@example.com', 'testpass123')
    return auth_provider


@pytest.fixture
def sample_file_content():
    """Sample file content for testing.

    Returns:
        ContentFile with test data.
    """
    return ContentFile(b'test file content', name='test.txt')


@pytest.fixture
def bucket(mock_s3):
    """The mocked bucket, for checking stored objects directly.

    Returns:
        boto3 Bucket resource.
    """
    return mock_s3.Bucket(_TEST_BUCKET)
