"""Snapshot Store Module - Byte-blob persistence for collector snapshots.

Philosophy:
- Whole-blob reads and writes, no partial updates
- Local files are replaced atomically (temp file + rename)
- Azure blobs are overwritten in a single upload
- "Not found" is a normal answer, transport failures are errors

Public API (the "studs"):
    SnapshotStore: Abstract read/write interface
    FileSnapshotStore: Local filesystem backend
    BlobSnapshotStore: Azure Blob Storage backend
    StorageUnavailableError: Backend could not be reached
    SnapshotWriteError: Snapshot could not be persisted

Security:
- Cache directory created with 0700, snapshot files written with 0600
"""

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from azure.core.exceptions import (
    AzureError,
    ResourceNotFoundError,
    ServiceRequestTimeoutError,
    ServiceResponseTimeoutError,
)
from azure.storage.blob import BlobServiceClient

logger = logging.getLogger(__name__)


class StorageUnavailableError(Exception):
    """Raised when the snapshot backend cannot be reached or read."""

    pass


class SnapshotWriteError(StorageUnavailableError):
    """Raised when a snapshot could not be persisted."""

    pass


class SnapshotStore(ABC):
    """Persistence backend holding a single snapshot blob."""

    @abstractmethod
    def read(self) -> tuple[bytes, bool]:
        """Read the stored snapshot.

        Returns:
            Tuple of (content, found); content is empty when not found

        Raises:
            StorageUnavailableError: If the backend failed for any other reason
        """
        pass

    @abstractmethod
    def write(self, content: bytes) -> None:
        """Replace the stored snapshot with content.

        Args:
            content: Serialized snapshot

        Raises:
            SnapshotWriteError: If the snapshot could not be written
        """
        pass

    @property
    @abstractmethod
    def location(self) -> str:
        """Human readable location used in log messages."""
        pass


class FileSnapshotStore(SnapshotStore):
    """Local file backend with crash-atomic writes.

    Content is written to a hidden sibling ``.<name>.tmp`` and renamed over
    the destination, so readers only ever see the old or the new snapshot.

    Example:
        >>> store = FileSnapshotStore(Path("/var/cache/azscrape/metrics.json"))
        >>> store.write(b"{}")
        >>> store.read()
        (b'{}', True)
    """

    def __init__(self, path: Path | str):
        """Initialize file store.

        Args:
            path: Destination file path
        """
        self.path = Path(path).expanduser()

    @property
    def location(self) -> str:
        return str(self.path)

    @property
    def temp_path(self) -> Path:
        """In-progress sibling file used during writes."""
        return self.path.parent / f".{self.path.name}.tmp"

    def read(self) -> tuple[bytes, bool]:
        try:
            content = self.path.read_bytes()
        except FileNotFoundError:
            logger.debug(f"Snapshot file does not exist: {self.path}")
            return b"", False
        except OSError as e:
            raise StorageUnavailableError(f"Failed to read snapshot file {self.path}: {e}") from e

        return content, True

    def _ensure_cache_dir(self) -> None:
        """Ensure destination directory exists.

        Raises:
            SnapshotWriteError: If directory creation fails
        """
        parent = self.path.parent
        if parent.exists():
            return

        try:
            parent.mkdir(mode=0o700, parents=True, exist_ok=True)
            logger.debug(f"Cache directory created: {parent}")
        except OSError as e:
            raise SnapshotWriteError(f"Failed to create cache directory {parent}: {e}") from e

    def write(self, content: bytes) -> None:
        self._ensure_cache_dir()

        temp_path = self.temp_path
        try:
            fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "wb") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())

            # Set secure permissions before moving
            os.chmod(temp_path, 0o600)

            # Atomic rename
            os.replace(temp_path, self.path)

        except OSError as e:
            # Cleanup temp file on error, destination stays untouched
            try:
                temp_path.unlink(missing_ok=True)
            except OSError as cleanup_error:
                logger.warning(f"Failed to remove temp file {temp_path}: {cleanup_error}")
            raise SnapshotWriteError(f"Failed to write snapshot file {self.path}: {e}") from e

        logger.debug(f"Wrote {len(content)} bytes to {self.path}")


class BlobSnapshotStore(SnapshotStore):
    """Azure Blob Storage backend.

    Reads download the full blob, writes upload the full buffer and
    overwrite whatever is stored at container/blob.

    A timeout on read is reported as "not found"; a timeout on write raises
    SnapshotWriteError.
    """

    def __init__(
        self,
        account_url: str,
        container: str,
        blob: str,
        credential: Any = None,
        timeout: float | None = None,
        service_client: BlobServiceClient | None = None,
    ):
        """Initialize blob store.

        Args:
            account_url: Storage account endpoint (https://<account>.blob.core.windows.net/)
            container: Container name
            blob: Blob name, may contain "/"
            credential: Azure credential (TokenCredential) for the account
            timeout: Server timeout in seconds for each operation
            service_client: Preconfigured client, mainly for tests
        """
        self.account_url = account_url
        self.container = container
        self.blob = blob
        self.timeout = timeout
        self._service_client = service_client or BlobServiceClient(
            account_url=account_url, credential=credential
        )

    @property
    def location(self) -> str:
        return f"{self.account_url.rstrip('/')}/{self.container}/{self.blob}"

    def _timeout_kwargs(self) -> dict[str, Any]:
        if self.timeout is None:
            return {}
        return {"timeout": self.timeout}

    def read(self) -> tuple[bytes, bool]:
        blob_client = self._service_client.get_blob_client(container=self.container, blob=self.blob)
        try:
            downloader = blob_client.download_blob(**self._timeout_kwargs())
            content = downloader.readall()
        except ResourceNotFoundError:
            logger.debug(f"Snapshot blob does not exist: {self.location}")
            return b"", False
        except (ServiceRequestTimeoutError, ServiceResponseTimeoutError) as e:
            logger.warning(f"Timed out reading snapshot blob {self.location}: {e}")
            return b"", False
        except AzureError as e:
            raise StorageUnavailableError(
                f"Failed to read snapshot blob {self.location}: {e}"
            ) from e

        return content, True

    def write(self, content: bytes) -> None:
        blob_client = self._service_client.get_blob_client(container=self.container, blob=self.blob)
        try:
            blob_client.upload_blob(content, overwrite=True, **self._timeout_kwargs())
        except AzureError as e:
            raise SnapshotWriteError(f"Failed to upload snapshot blob {self.location}: {e}") from e

        logger.debug(f"Uploaded {len(content)} bytes to {self.location}")


__all__ = [
    "BlobSnapshotStore",
    "FileSnapshotStore",
    "SnapshotStore",
    "SnapshotWriteError",
    "StorageUnavailableError",
]
