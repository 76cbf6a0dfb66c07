from dataclasses import dataclass


@dataclass(frozen=True)
class NeedMore:
    """The cursor holds fewer bytes than requested; `missing` more are needed."""
    missing: int


class ByteCursor:
    """
    A read position over one network chunk

    The cursor never fetches anything: when a request cannot be satisfied
    from the chunk it answers NeedMore and leaves its position untouched, so
    the caller can take the tail with rest() and continue on the next chunk.
    """

    def __init__(self, chunk: bytes):
        self._chunk = memoryview(chunk)
        self._position = 0

    @property
    def remaining(self) -> int:
        return len(self._chunk) - self._position

    @property
    def exhausted(self) -> bool:
        return self._position >= len(self._chunk)

    def request(self, n: int) -> bytes | NeedMore:
        if n > self.remaining:
            return NeedMore(n - self.remaining)
        start = self._position
        self._position += n
        return self._chunk[start:self._position].tobytes()

    def rest(self) -> bytes:
        b = self._chunk[self._position:].tobytes()
        self._position = len(self._chunk)
        return b
