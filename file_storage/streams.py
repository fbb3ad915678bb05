"""
File Streams

Readable stream types handed out by ``get_stream`` and the helper that turns
any supported ``save`` input into an async sequence of byte chunks.
"""

import inspect
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Union

DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1MB

# bytes-like, a sync or async reader, or a sync or async iterable of chunks
FileContent = Union[bytes, bytearray, memoryview, Any]


class FileStream(ABC):
    """
    Async readable byte stream.

    The stream reflects the file content at open time. It must be closed by
    its owner; ``async with`` guarantees that on every exit path.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.chunk_size = chunk_size
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @abstractmethod
    async def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes, or everything left when ``size`` < 0."""
        pass

    async def _release(self) -> None:
        """Release backend resources held by the stream."""
        pass

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._release()

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError("I/O operation on closed file stream")

    async def __aenter__(self) -> "FileStream":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._iter_chunks()

    async def _iter_chunks(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await self.read(self.chunk_size)
            if not chunk:
                return
            yield chunk


class BytesFileStream(FileStream):
    """Stream over an in-memory snapshot."""

    def __init__(self, data: bytes, chunk_size: int = DEFAULT_CHUNK_SIZE):
        super().__init__(chunk_size)
        self._data = bytes(data)
        self._position = 0

    async def read(self, size: int = -1) -> bytes:
        self._check_open()
        if size is None or size < 0:
            end = len(self._data)
        else:
            end = min(self._position + size, len(self._data))
        chunk = self._data[self._position:end]
        self._position = end
        return chunk


class ChunkedFileStream(FileStream):
    """Stream over an async iterator of chunks, e.g. a network download."""

    def __init__(
        self,
        chunks: AsyncIterator[bytes],
        on_close: Optional[Callable[[], Awaitable[None]]] = None,
        size: Optional[int] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE
    ):
        super().__init__(chunk_size)
        self._chunks = chunks
        self._on_close = on_close
        self._buffer = bytearray()
        self._exhausted = False
        self.size = size

    async def _fill(self, size: int) -> None:
        while not self._exhausted and (size < 0 or len(self._buffer) < size):
            try:
                chunk = await self._chunks.__anext__()
            except StopAsyncIteration:
                self._exhausted = True
                break
            self._buffer.extend(chunk)

    async def read(self, size: int = -1) -> bytes:
        self._check_open()
        if size is None:
            size = -1
        await self._fill(size)
        if size < 0 or size >= len(self._buffer):
            data = bytes(self._buffer)
            self._buffer.clear()
        else:
            data = bytes(self._buffer[:size])
            del self._buffer[:size]
        return data

    async def _release(self) -> None:
        self._buffer.clear()
        aclose = getattr(self._chunks, "aclose", None)
        if aclose is not None:
            await aclose()
        if self._on_close is not None:
            await self._on_close()


class AiofilesFileStream(FileStream):
    """Stream over an open ``aiofiles`` binary handle."""

    def __init__(self, handle, chunk_size: int = DEFAULT_CHUNK_SIZE):
        super().__init__(chunk_size)
        self._handle = handle

    async def read(self, size: int = -1) -> bytes:
        self._check_open()
        if size is None:
            size = -1
        return await self._handle.read(size)

    async def _release(self) -> None:
        await self._handle.close()


async def iter_content(content: FileContent, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
    """
    Yield ``content`` as byte chunks without seeking or re-reading it.

    Accepts bytes-like objects, sync or async readers (``read(n)``), and sync
    or async iterables of byte chunks.
    """
    if isinstance(content, (bytes, bytearray, memoryview)):
        data = bytes(content)
        for start in range(0, len(data), chunk_size):
            yield data[start:start + chunk_size]
        return

    if isinstance(content, str):
        raise TypeError("File content must be bytes or a binary stream, not str")

    read = getattr(content, "read", None)
    if read is not None:
        while True:
            chunk = read(chunk_size)
            if inspect.isawaitable(chunk):
                chunk = await chunk
            if not chunk:
                return
            yield bytes(chunk)

    if hasattr(content, "__aiter__"):
        async for chunk in content:
            if chunk:
                yield bytes(chunk)
        return

    if hasattr(content, "__iter__"):
        for chunk in content:
            if chunk:
                yield bytes(chunk)
        return

    raise TypeError(f"Unsupported file content type: {type(content).__name__}")
