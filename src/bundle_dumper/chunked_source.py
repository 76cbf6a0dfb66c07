from typing import Callable

from bundle_dumper.byte_cursor import ByteCursor, NeedMore
from bundle_dumper.errors import TransportError, UnexpectedEof, ItemOverrun
from bundle_dumper.initialize import logger

# fetch_chunk(byte_offset) -> bytes, offset relative to the start of the transaction data
ChunkFetcher = Callable[[int], bytes]


class ChunkedSource:
    """
    Pull-based byte stream over the chunks of one transaction

    Chunks are fetched one at a time, only when a request cannot be served
    from the current one. Only the current chunk (and the partial bytes of a
    request that straddles a chunk boundary) is held in memory.

    Args:
        fetch_chunk: returns the chunk starting at the given data offset
        total_size: the declared size of the transaction data
    """

    def __init__(self, fetch_chunk: ChunkFetcher, total_size: int):
        self._fetch_chunk = fetch_chunk
        self.total_size = total_size
        # bytes handed out to the decoders
        self.offset = 0
        # bytes received from the network
        self._fetched = 0
        self._cursor = ByteCursor(b"")
        self.chunks_fetched = 0

    @property
    def exhausted(self) -> bool:
        return self.offset >= self.total_size

    def request(self, n: int) -> bytes:
        """
        Read exactly n bytes, fetching as many chunks as needed

        Raises:
            UnexpectedEof: the transaction data ends before n bytes
            TransportError: a chunk could not be fetched, or was empty
        """
        if n < 0:
            raise ValueError(f"cannot request {n} bytes")
        if self.offset + n > self.total_size:
            raise UnexpectedEof(
                f"requested {n} bytes at offset {self.offset}, "
                f"only {self.total_size - self.offset} left in the transaction")
        result = self._cursor.request(n)
        if isinstance(result, NeedMore):
            parts = [self._cursor.rest()]
            while isinstance(result, NeedMore):
                self._next_chunk()
                result = self._cursor.request(result.missing)
                if isinstance(result, NeedMore):
                    parts.append(self._cursor.rest())
            parts.append(result)
            result = b"".join(parts)
        self.offset += n
        return result

    def skip(self, n: int):
        """Discard n bytes without keeping more than one chunk of them."""
        while n > 0:
            if self._cursor.exhausted:
                if self.offset + n > self.total_size:
                    raise UnexpectedEof(f"cannot skip {n} bytes at offset {self.offset}")
                self._next_chunk()
            step = min(n, self._cursor.remaining)
            self.request(step)
            n -= step

    def _next_chunk(self):
        chunk = self._fetch_chunk(self._fetched)
        if not chunk:
            raise TransportError(f"empty chunk at data offset {self._fetched}")
        if self._fetched + len(chunk) > self.total_size:
            raise TransportError(
                f"chunk at data offset {self._fetched} has {len(chunk)} bytes, "
                f"past the transaction size {self.total_size}")
        logger.debug(f"chunk {self.chunks_fetched} fetched: {len(chunk)} bytes at data offset {self._fetched}")
        self._fetched += len(chunk)
        self.chunks_fetched += 1
        self._cursor = ByteCursor(chunk)


class BoundedReader:
    """
    A byte budget over a reader

    Used to confine a DataItem decode to the size declared in the bundle
    header, and the tag array to its declared byte length.

    Args:
        reader: a ChunkedSource or another BoundedReader
        limit: the number of bytes that may be read
        overrun: the DecodeError subclass raised when a read exceeds the budget
    """

    def __init__(self, reader, limit: int, overrun=ItemOverrun):
        self._reader = reader
        self.limit = limit
        self.consumed = 0
        self._overrun = overrun

    @property
    def remaining(self) -> int:
        return self.limit - self.consumed

    def request(self, n: int) -> bytes:
        if n > self.remaining:
            raise self._overrun(f"{n} bytes requested, {self.remaining} left of {self.limit}")
        b = self._reader.request(n)
        self.consumed += n
        return b

    def skip(self, n: int):
        if n > self.remaining:
            raise self._overrun(f"cannot skip {n} bytes, {self.remaining} left of {self.limit}")
        self._reader.skip(n)
        self.consumed += n

    def drain(self):
        """Discard whatever is left of the budget."""
        self.skip(self.remaining)
