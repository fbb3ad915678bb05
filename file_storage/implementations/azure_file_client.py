"""
Azure Files Storage Client Implementation

This module implements the file storage interface on top of an Azure file
share using the asynchronous Azure Storage SDK.
"""

import asyncio
import tempfile
from typing import Optional, Set, Tuple

from azure.core.exceptions import (
    AzureError,
    ClientAuthenticationError,
    HttpResponseError,
    ResourceExistsError,
    ResourceNotFoundError,
    ServiceRequestError,
    ServiceResponseError,
)
from azure.storage.fileshare.aio import ShareClient, ShareServiceClient

from ..config.loguru_config import get_logger
from ..interfaces.storage_interface import (
    BackendUnavailableException,
    DirectoryContents,
    FileInfo,
    FileStorageInterface,
    NotFoundException,
    StorageConfig,
    StorageErrorKind,
    StorageException,
    UnknownStorageException,
    storage_exception,
)
from ..listing import BackendEntry, compose_directory_contents
from ..paths import ROOT_PATH, ancestor_paths, path_name
from ..streams import ChunkedFileStream, FileContent, FileStream, iter_content

logger = get_logger(__name__)

NOT_FOUND_CODES: Set[str] = {"ResourceNotFound", "ParentNotFound", "ShareNotFound", "CannotVerifyCopySource"}
ALREADY_EXISTS_CODES: Set[str] = {"ShareAlreadyExists", "ResourceAlreadyExists"}
INVALID_PATH_CODES: Set[str] = {"ResourceTypeMismatch", "InvalidResourceName"}
UNAVAILABLE_CODES: Set[str] = {
    "ServerBusy",
    "OperationTimedOut",
    "InternalError",
    "AuthenticationFailed",
    "AuthorizationFailure",
    "InsufficientAccountPermissions",
}
UNAVAILABLE_STATUS_CODES: Set[int] = {401, 403, 408, 429, 500, 502, 503, 504}

COPY_PENDING = "pending"
COPY_SUCCESS = "success"


def _error_code(error: Exception) -> Optional[str]:
    code = getattr(error, "error_code", None)
    # The SDK hands out StorageErrorCode members; compare on their value.
    return getattr(code, "value", code)


def is_not_found_error(error: Exception) -> bool:
    """True when the backend reports that the addressed resource is missing."""
    if isinstance(error, ResourceNotFoundError):
        return True
    if isinstance(error, HttpResponseError):
        return _error_code(error) in NOT_FOUND_CODES or error.status_code == 404
    return False


def is_absent_error(error: Exception) -> bool:
    """
    True when a probe shows nothing of the probed type at the path: either it
    is missing, or it exists with the other type (file vs directory).
    """
    return is_not_found_error(error) or _error_code(error) in INVALID_PATH_CODES


def classify_azure_error(error: Exception) -> Tuple[StorageErrorKind, Optional[str]]:
    """
    Map an Azure SDK failure onto a storage error kind.

    Returns:
        Tuple[StorageErrorKind, Optional[str]]: Kind and backend detail
    """
    code = _error_code(error)
    status = getattr(error, "status_code", None)

    if is_not_found_error(error):
        return StorageErrorKind.NOT_FOUND, code
    if code in INVALID_PATH_CODES:
        return StorageErrorKind.INVALID_PATH, code
    if isinstance(error, ResourceExistsError) or code in ALREADY_EXISTS_CODES:
        return StorageErrorKind.ALREADY_EXISTS, code
    if isinstance(error, (ClientAuthenticationError, ServiceRequestError, ServiceResponseError)):
        return StorageErrorKind.BACKEND_UNAVAILABLE, code or type(error).__name__
    if code in UNAVAILABLE_CODES or status in UNAVAILABLE_STATUS_CODES:
        return StorageErrorKind.BACKEND_UNAVAILABLE, code
    if isinstance(error, OSError) and not isinstance(error, AzureError):
        return StorageErrorKind.BACKEND_UNAVAILABLE, type(error).__name__
    return StorageErrorKind.UNKNOWN, code or type(error).__name__


class AzureFileShareClient(FileStorageInterface):
    """
    Azure Files client implementation for file storage operations.

    One instance is bound to one file share. The share client can be injected
    (it is then owned by the caller) or built from ``connection_string`` or
    ``account_url`` plus ``credential``.
    """

    def __init__(self, config: StorageConfig, share_client: Optional[ShareClient] = None):
        super().__init__(config)
        self._share = share_client
        self._service: Optional[ShareServiceClient] = None
        self._owns_client = share_client is None

    def _build_share_client(self) -> ShareClient:
        if self.config.connection_string:
            self._service = ShareServiceClient.from_connection_string(self.config.connection_string)
        elif self.config.account_url:
            self._service = ShareServiceClient(
                account_url=self.config.account_url,
                credential=self.config.credential
            )
        else:
            raise BackendUnavailableException(
                "Azure Files requires a connection_string or an account_url",
                provider=self.provider_name
            )
        return self._service.get_share_client(self.root_name)

    async def connect(self) -> bool:
        """
        Connect to the file share, creating it when configured to.

        Raises:
            NotFoundException: If the share is missing and may not be created
            BackendUnavailableException: If the service cannot be reached
        """
        if self._connected:
            return True
        if self._share is None:
            self._share = self._build_share_client()

        try:
            await self._guard("connect", ROOT_PATH, self._open_share(), require_connection=False)
        except StorageException:
            if self._owns_client:
                await self._close_clients()
            raise

        self._connected = True
        logger.info(f"Connected to Azure file share: {self.root_name}")
        return True

    async def _open_share(self) -> None:
        if self.config.create_root_if_missing:
            await self._create_share()
        else:
            await self._share.get_share_properties()

    async def disconnect(self) -> None:
        """Disconnect from Azure Files."""
        self._connected = False
        if not self._owns_client:
            return
        try:
            await self._close_clients()
            logger.info(f"Disconnected from Azure file share: {self.root_name}")
        except Exception as e:
            logger.error(f"Error disconnecting from Azure Files: {str(e)}")

    async def _close_clients(self) -> None:
        share, service = self._share, self._service
        self._share = None
        self._service = None
        if share is not None:
            await share.close()
        if service is not None:
            await service.close()

    async def create_root(self) -> bool:
        return await self._guard("create_root", ROOT_PATH, self._create_share())

    async def _create_share(self) -> bool:
        try:
            await self._share.create_share()
        except ResourceExistsError:
            return False
        logger.info(f"Created Azure file share: {self.root_name}")
        return True

    async def delete_root(self) -> bool:
        return await self._guard("delete_root", ROOT_PATH, self._delete_share())

    async def _delete_share(self) -> bool:
        try:
            await self._share.delete_share()
        except ResourceNotFoundError:
            return False
        logger.info(f"Deleted Azure file share: {self.root_name}")
        return True

    async def root_exists(self) -> bool:
        return await self._guard("root_exists", ROOT_PATH, self._probe_share())

    async def _probe_share(self) -> bool:
        try:
            await self._share.get_share_properties()
        except HttpResponseError as e:
            if is_not_found_error(e):
                return False
            raise
        return True

    async def copy(self, source: str, target: str) -> None:
        await self._guard("copy", source, self._copy(source, target))
        logger.debug(f"Copied {source} to {target} in {self.root_name}")

    async def _copy(self, source: str, target: str) -> None:
        source_file = self._share.get_file_client(source)
        await self._require_file(source_file, source)
        await self._check_overwrite(target)
        await self._ensure_parent_directories(target)

        target_file = self._share.get_file_client(target)
        result = await target_file.start_copy_from_url(source_file.url)
        if (result or {}).get("copy_status") == COPY_SUCCESS:
            return
        await self._wait_for_copy(target_file, target)

    async def _wait_for_copy(self, target_file, target: str) -> None:
        while True:
            properties = await target_file.get_file_properties()
            copy = getattr(properties, "copy", None)
            status = getattr(copy, "status", None)
            if status != COPY_PENDING:
                break
            await asyncio.sleep(self.config.copy_poll_interval)

        if status not in (None, COPY_SUCCESS):
            raise UnknownStorageException(
                f"Server-side copy to '{target}' ended with status {status}",
                provider=self.provider_name,
                path=target,
                detail=getattr(copy, "status_description", None) or status
            )

    async def delete(self, path: str) -> None:
        await self._guard("delete", path, self._delete(path))

    async def _delete(self, path: str) -> None:
        try:
            await self._share.get_file_client(path).delete_file()
        except HttpResponseError as e:
            if not is_not_found_error(e):
                raise
            logger.debug(f"Azure file already absent: {path}")
            return
        logger.debug(f"Deleted Azure file: {path}")

    async def rename(self, source: str, target: str) -> None:
        if not self.config.native_rename:
            await super().rename(source, target)
            return
        await self._guard("rename", source, self._rename(source, target))
        logger.debug(f"Renamed {source} to {target} in {self.root_name}")

    async def _rename(self, source: str, target: str) -> None:
        source_file = self._share.get_file_client(source)
        await self._require_file(source_file, source)
        await self._ensure_parent_directories(target)
        await source_file.rename_file(target, overwrite=self.config.overwrite_existing)

    async def get_stream(self, path: str) -> FileStream:
        return await self._guard("get_stream", path, self._open_stream(path))

    async def _open_stream(self, path: str) -> FileStream:
        try:
            downloader = await self._share.get_file_client(path).download_file()
        except HttpResponseError as e:
            if is_absent_error(e):
                raise NotFoundException(
                    f"File '{path}' not found", provider=self.provider_name, path=path
                ) from e
            raise
        return ChunkedFileStream(
            self._download_chunks(downloader, path),
            size=getattr(downloader, "size", None),
            chunk_size=self.config.read_chunk_size
        )

    async def _download_chunks(self, downloader, path: str):
        try:
            async for chunk in downloader.chunks():
                yield chunk
        except AzureError as e:
            raise self._translate_error(e, "read", path) from e

    async def save(self, path: str, content: FileContent) -> None:
        # The input is consumed once, up front; only the upload is timed.
        with tempfile.SpooledTemporaryFile(max_size=self.config.spool_max_size) as spool:
            length = 0
            try:
                async for chunk in iter_content(content, self.config.read_chunk_size):
                    spool.write(chunk)
                    length += len(chunk)
            except StorageException:
                raise
            except Exception as e:
                raise UnknownStorageException(
                    f"Reading content for '{path}' failed: {str(e)}",
                    provider=self.provider_name,
                    path=path,
                    detail=type(e).__name__
                ) from e
            spool.seek(0)
            await self._guard("save", path, self._upload(path, spool, length))
        logger.debug(f"Saved Azure file {path} ({length} bytes)")

    async def _upload(self, path: str, data, length: int) -> None:
        await self._ensure_parent_directories(path)
        await self._share.get_file_client(path).upload_file(data, length=length)

    async def stat(self, path: str) -> FileInfo:
        return await self._guard("stat", path, self._stat(path))

    async def _stat(self, path: str) -> FileInfo:
        if path == ROOT_PATH:
            if await self._probe_share():
                return FileInfo(name=ROOT_PATH, path=ROOT_PATH, exists=True, is_directory=True)
            return FileInfo.not_found(path)

        try:
            properties = await self._share.get_file_client(path).get_file_properties()
            return FileInfo(
                name=path_name(path),
                path=path,
                exists=True,
                is_directory=False,
                length=int(getattr(properties, "size", 0) or 0),
                last_modified=getattr(properties, "last_modified", None)
            )
        except HttpResponseError as e:
            if not is_absent_error(e):
                raise

        try:
            properties = await self._share.get_directory_client(path).get_directory_properties()
            return FileInfo(
                name=path_name(path),
                path=path,
                exists=True,
                is_directory=True,
                last_modified=getattr(properties, "last_modified", None)
            )
        except HttpResponseError as e:
            if not is_absent_error(e):
                raise
        return FileInfo.not_found(path)

    async def list(self, path: str) -> DirectoryContents:
        return await self._guard("list", path, self._list(path))

    async def _list(self, path: str) -> DirectoryContents:
        directory = self._share.get_directory_client(path)
        try:
            if path == ROOT_PATH:
                await self._share.get_share_properties()
            else:
                await directory.get_directory_properties()
        except HttpResponseError as e:
            if is_absent_error(e):
                return compose_directory_contents(path, False, ())
            raise

        entries = []
        try:
            async for item in directory.list_directories_and_files():
                entries.append(BackendEntry(
                    name=item.name,
                    is_directory=bool(item.is_directory),
                    length=getattr(item, "size", None),
                    last_modified=getattr(item, "last_modified", None)
                ))
        except HttpResponseError as e:
            # Removed between probe and enumeration.
            if is_not_found_error(e):
                return compose_directory_contents(path, False, ())
            raise
        return compose_directory_contents(path, True, entries)

    async def _require_file(self, file_client, path: str) -> None:
        try:
            await file_client.get_file_properties()
        except HttpResponseError as e:
            if is_absent_error(e):
                raise NotFoundException(
                    f"File '{path}' not found", provider=self.provider_name, path=path
                ) from e
            raise

    async def _ensure_parent_directories(self, path: str) -> None:
        """Create every missing ancestor directory of ``path``, outermost first."""
        for directory in ancestor_paths(path):
            try:
                await self._share.get_directory_client(directory).create_directory()
                logger.debug(f"Created Azure directory: {directory}")
            except ResourceExistsError:
                continue

    def _translate_error(self, error: Exception, operation: str, path: str) -> StorageException:
        kind, detail = classify_azure_error(error)
        return storage_exception(
            kind,
            f"Azure Files {operation} failed for '{path}': {str(error)}",
            provider=self.provider_name,
            path=path,
            detail=detail
        )
