"""Unit tests for Snapshot Store module.

Tests cover:
- File backend read/write, permissions and atomic replacement
- Interrupted writes leaving the previous snapshot intact
- Blob backend read/write with mocked Azure clients
- Mapping of Azure errors to not-found / StorageUnavailableError
"""

import os
from unittest.mock import patch

import pytest
from azure.core.exceptions import (
    ClientAuthenticationError,
    HttpResponseError,
    ResourceNotFoundError,
    ServiceRequestError,
    ServiceRequestTimeoutError,
    ServiceResponseTimeoutError,
)

from azscrape.cache.snapshot_store import (
    BlobSnapshotStore,
    FileSnapshotStore,
    SnapshotWriteError,
    StorageUnavailableError,
)


class TestFileSnapshotStore:
    """Test local file backend."""

    def test_read_missing_file(self, snapshot_path):
        """Test missing file is reported as not found."""
        store = FileSnapshotStore(snapshot_path)
        assert store.read() == (b"", False)

    def test_write_then_read(self, snapshot_path):
        """Test written content is read back in full."""
        store = FileSnapshotStore(snapshot_path)
        store.write(b'{"metrics": {}}')

        assert store.read() == (b'{"metrics": {}}', True)

    def test_write_creates_directory_with_secure_permissions(self, snapshot_path):
        """Test parent directory is created owner-only."""
        FileSnapshotStore(snapshot_path).write(b"data")

        assert snapshot_path.parent.is_dir()
        assert (snapshot_path.parent.stat().st_mode & 0o777) == 0o700

    def test_written_file_is_owner_only(self, snapshot_path):
        FileSnapshotStore(snapshot_path).write(b"data")
        assert (snapshot_path.stat().st_mode & 0o777) == 0o600

    def test_write_overwrites_previous_content(self, snapshot_path):
        store = FileSnapshotStore(snapshot_path)
        store.write(b"old content that is longer")
        store.write(b"new")

        assert snapshot_path.read_bytes() == b"new"

    def test_temp_file_name_and_cleanup(self, snapshot_path):
        """Test the hidden temp sibling is consumed by the rename."""
        store = FileSnapshotStore(snapshot_path)
        assert store.temp_path == snapshot_path.parent / ".metrics.json.tmp"

        store.write(b"data")

        assert not store.temp_path.exists()
        assert sorted(p.name for p in snapshot_path.parent.iterdir()) == ["metrics.json"]

    def test_failed_rename_keeps_previous_snapshot(self, snapshot_path):
        """Test a write failing before the rename leaves the destination untouched."""
        store = FileSnapshotStore(snapshot_path)
        store.write(b"previous")

        with patch("azscrape.cache.snapshot_store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(SnapshotWriteError, match="disk full"):
                store.write(b"next")

        assert store.read() == (b"previous", True)
        assert not store.temp_path.exists()

    def test_interrupted_write_leaves_destination_readable(self, snapshot_path):
        """Test a crash between temp write and rename does not corrupt the destination."""
        store = FileSnapshotStore(snapshot_path)
        store.write(b"complete snapshot")

        # Simulate a crash: temp file written, rename never executed
        store.temp_path.write_bytes(b"partial sn")

        assert store.read() == (b"complete snapshot", True)

        # Next successful write replaces the stale temp file
        store.write(b"recovered")
        assert store.read() == (b"recovered", True)
        assert not store.temp_path.exists()

    def test_read_error_raises_storage_unavailable(self, tmp_path):
        """Test unreadable destination is an error, not a miss."""
        directory = tmp_path / "metrics.json"
        directory.mkdir()

        with pytest.raises(StorageUnavailableError):
            FileSnapshotStore(directory).read()

    def test_unwritable_directory_raises_write_error(self, tmp_path):
        """Test directory creation failure surfaces as SnapshotWriteError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(SnapshotWriteError):
            FileSnapshotStore(blocker / "cache" / "metrics.json").write(b"data")

    @pytest.mark.skipif(os.geteuid() == 0, reason="root ignores directory permissions")
    def test_write_to_read_only_directory(self, tmp_path):
        cache_dir = tmp_path / "cache"
        cache_dir.mkdir()
        target = cache_dir / "metrics.json"
        target.write_bytes(b"previous")
        cache_dir.chmod(0o500)
        try:
            with pytest.raises(SnapshotWriteError):
                FileSnapshotStore(target).write(b"next")
        finally:
            cache_dir.chmod(0o700)

        assert target.read_bytes() == b"previous"

    def test_location(self, snapshot_path):
        assert FileSnapshotStore(snapshot_path).location == str(snapshot_path)


class TestBlobSnapshotStore:
    """Test Azure blob backend."""

    @pytest.fixture
    def store(self, mock_blob_service):
        return BlobSnapshotStore(
            account_url="https://acct.blob.core.windows.net/",
            container="azscrape",
            blob="collector/metrics.json",
            service_client=mock_blob_service,
        )

    def test_read_downloads_blob(self, store, mock_blob_service):
        blob_client = mock_blob_service.blob_client
        blob_client.download_blob.return_value.readall.return_value = b"snapshot"

        assert store.read() == (b"snapshot", True)
        mock_blob_service.get_blob_client.assert_called_with(
            container="azscrape", blob="collector/metrics.json"
        )

    def test_read_not_found(self, store, mock_blob_service):
        mock_blob_service.blob_client.download_blob.side_effect = ResourceNotFoundError(
            "BlobNotFound"
        )
        assert store.read() == (b"", False)

    @pytest.mark.parametrize("error", [ServiceRequestTimeoutError, ServiceResponseTimeoutError])
    def test_read_timeout_is_not_found(self, store, mock_blob_service, error):
        """Test deadline expiry on read reads as absence."""
        mock_blob_service.blob_client.download_blob.side_effect = error("timed out")
        assert store.read() == (b"", False)

    @pytest.mark.parametrize(
        "error", [ClientAuthenticationError, HttpResponseError, ServiceRequestError]
    )
    def test_read_transport_failure_raises(self, store, mock_blob_service, error):
        """Test auth/network failures are not masked as not found."""
        mock_blob_service.blob_client.download_blob.side_effect = error("boom")

        with pytest.raises(StorageUnavailableError, match="boom"):
            store.read()

    def test_write_uploads_with_overwrite(self, store, mock_blob_service):
        store.write(b"snapshot")

        mock_blob_service.blob_client.upload_blob.assert_called_once_with(
            b"snapshot", overwrite=True
        )

    def test_timeout_forwarded(self, mock_blob_service):
        store = BlobSnapshotStore(
            "https://acct.blob.core.windows.net/",
            "c",
            "b",
            timeout=15,
            service_client=mock_blob_service,
        )
        store.write(b"x")
        store.read()

        mock_blob_service.blob_client.upload_blob.assert_called_once_with(
            b"x", overwrite=True, timeout=15
        )
        mock_blob_service.blob_client.download_blob.assert_called_once_with(timeout=15)

    @pytest.mark.parametrize("error", [HttpResponseError, ServiceResponseTimeoutError])
    def test_write_failure_raises(self, store, mock_blob_service, error):
        """Test write failures, including timeouts, are reported."""
        mock_blob_service.blob_client.upload_blob.side_effect = error("upload failed")

        with pytest.raises(SnapshotWriteError, match="upload failed"):
            store.write(b"snapshot")

    def test_location(self, store):
        assert store.location == "https://acct.blob.core.windows.net/azscrape/collector/metrics.json"

    def test_default_client_uses_credential(self):
        credential = object()
        with patch("azscrape.cache.snapshot_store.BlobServiceClient") as mock_cls:
            BlobSnapshotStore("https://acct.blob.core.windows.net/", "c", "b", credential=credential)

        mock_cls.assert_called_once_with(
            account_url="https://acct.blob.core.windows.net/", credential=credential
        )
