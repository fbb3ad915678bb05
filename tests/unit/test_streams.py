"""
File stream tests
"""
import io

import pytest

from file_storage.streams import BytesFileStream, ChunkedFileStream, iter_content


async def collect(content, chunk_size=4):
    return [chunk async for chunk in iter_content(content, chunk_size)]


async def agen(*chunks):
    for chunk in chunks:
        yield chunk


class AsyncReader:

    def __init__(self, data: bytes):
        self._buffer = io.BytesIO(data)

    async def read(self, size: int = -1) -> bytes:
        return self._buffer.read(size)


class TestIterContent:

    @pytest.mark.asyncio
    async def test_bytes_are_chunked(self):
        assert await collect(b"abcdefghij") == [b"abcd", b"efgh", b"ij"]

    @pytest.mark.asyncio
    async def test_bytearray_and_memoryview(self):
        assert b"".join(await collect(bytearray(b"hello"))) == b"hello"
        assert b"".join(await collect(memoryview(b"world"))) == b"world"

    @pytest.mark.asyncio
    async def test_empty_bytes_yield_nothing(self):
        assert await collect(b"") == []

    @pytest.mark.asyncio
    async def test_sync_reader(self):
        assert await collect(io.BytesIO(b"abcdef")) == [b"abcd", b"ef"]

    @pytest.mark.asyncio
    async def test_async_reader(self):
        assert await collect(AsyncReader(b"abcdef")) == [b"abcd", b"ef"]

    @pytest.mark.asyncio
    async def test_reader_is_not_rewound(self):
        buffer = io.BytesIO(b"skip-keep")
        buffer.read(5)

        assert b"".join(await collect(buffer)) == b"keep"

    @pytest.mark.asyncio
    async def test_iterables_skip_empty_chunks(self):
        assert await collect(iter([b"a", b"", b"b"])) == [b"a", b"b"]
        assert await collect(agen(b"x", b"", b"y")) == [b"x", b"y"]

    @pytest.mark.asyncio
    async def test_str_is_rejected(self):
        with pytest.raises(TypeError):
            await collect("text")

    @pytest.mark.asyncio
    async def test_unsupported_type_is_rejected(self):
        with pytest.raises(TypeError):
            await collect(12345)


class TestBytesFileStream:

    @pytest.mark.asyncio
    async def test_partial_and_full_reads(self):
        stream = BytesFileStream(b"0123456789")

        assert await stream.read(3) == b"012"
        assert await stream.read() == b"3456789"
        assert await stream.read() == b""

    @pytest.mark.asyncio
    async def test_closed_stream_refuses_reads(self):
        stream = BytesFileStream(b"data")
        await stream.close()
        await stream.close()

        assert stream.closed
        with pytest.raises(ValueError):
            await stream.read()

    @pytest.mark.asyncio
    async def test_async_iteration(self):
        stream = BytesFileStream(b"abcdefg", chunk_size=3)

        assert [chunk async for chunk in stream] == [b"abc", b"def", b"g"]

    @pytest.mark.asyncio
    async def test_snapshot_is_independent_of_source(self):
        source = bytearray(b"before")
        stream = BytesFileStream(source)
        source[:] = b"after!"

        assert await stream.read() == b"before"


class TestChunkedFileStream:

    @pytest.mark.asyncio
    async def test_reads_across_chunk_boundaries(self):
        stream = ChunkedFileStream(agen(b"ab", b"cde", b"f"))

        assert await stream.read(4) == b"abcd"
        assert await stream.read(4) == b"ef"
        assert await stream.read(4) == b""

    @pytest.mark.asyncio
    async def test_read_all(self):
        stream = ChunkedFileStream(agen(b"ab", b"cd"), size=4)

        assert stream.size == 4
        assert await stream.read() == b"abcd"

    @pytest.mark.asyncio
    async def test_close_releases_source_once(self):
        released = []

        async def on_close():
            released.append(True)

        chunks = agen(b"a", b"b", b"c")
        async with ChunkedFileStream(chunks, on_close=on_close) as stream:
            assert await stream.read(1) == b"a"

        await stream.close()

        assert released == [True]
        with pytest.raises(StopAsyncIteration):
            await chunks.__anext__()

    @pytest.mark.asyncio
    async def test_source_errors_surface_on_read(self):
        async def failing():
            yield b"ok"
            raise ConnectionResetError("dropped")

        stream = ChunkedFileStream(failing())

        assert await stream.read(2) == b"ok"
        with pytest.raises(ConnectionResetError):
            await stream.read(2)
        await stream.close()
