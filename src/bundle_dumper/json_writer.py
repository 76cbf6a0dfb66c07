import queue
import threading

import orjson

from bundle_dumper.errors import OutputIoError
from bundle_dumper.initialize import WRITER_QUEUE_SIZE, logger

_CLOSE = object()
_ABORT = object()


class ArrayWriter:
    """
    Writes a JSON array to a byte sink one element at a time

    Each element is serialized in full before it is written with a single
    write call, so the sink never receives part of an element.
    """

    def __init__(self, sink):
        self._sink = sink
        self._following_item = False

    def write_open_bracket(self):
        self._sink.write(b"[")

    def write_item(self, item: dict):
        separator = b",\n" if self._following_item else b"\n"
        self._following_item = True
        self._sink.write(separator + orjson.dumps(item, option=orjson.OPT_INDENT_2))

    def write_close_bracket(self):
        # an empty array is written as []
        self._sink.write(b"\n]" if self._following_item else b"]")


class StreamingJsonWriter:
    """
    Writes DataItems as a JSON array from a dedicated thread

    Items are handed over through a bounded queue: the decoder only blocks
    when `queue_size` items are waiting for the sink, and a slow network
    never delays writing items already decoded. Items are written in the
    order they are handed over.

    A failure of the sink is raised as OutputIoError from the next
    write_item() or close(). On abort() the array is left unclosed.

    Args:
        sink: a binary file-like object
        queue_size: the maximum number of items waiting to be written
    """

    def __init__(self, sink, queue_size: int = WRITER_QUEUE_SIZE):
        self._sink = sink
        self._writer = ArrayWriter(sink)
        self._queue = queue.Queue(maxsize=queue_size)
        self._aborted = threading.Event()
        self._thread: threading.Thread | None = None
        self._error: BaseException | None = None
        self._closed = False
        self.items_written = 0

    def open(self):
        if self._thread is not None:
            raise RuntimeError("writer already opened")
        self._thread = threading.Thread(target=self._run, name="json-writer", daemon=True)
        self._thread.start()

    def write_item(self, item):
        self._put(item)

    def close(self):
        """Close the array, flush the sink and wait for the writer thread."""
        self._put(_CLOSE)
        self._thread.join()
        self._raise_if_failed()
        if not self._closed:
            raise OutputIoError("the writer thread stopped before closing the array")

    def abort(self):
        """Stop the writer thread without closing the array."""
        self._aborted.set()
        if self._thread is None:
            return
        try:
            # wakes the thread up if it is waiting on an empty queue
            self._queue.put_nowait(_ABORT)
        except queue.Full:
            pass
        self._thread.join()

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.close()
        else:
            self.abort()

    def _put(self, obj):
        if self._thread is None:
            raise RuntimeError("writer not opened")
        while True:
            self._raise_if_failed()
            if not self._thread.is_alive():
                self._raise_if_failed()
                raise OutputIoError("the writer thread is not running")
            try:
                self._queue.put(obj, timeout=0.1)
                return
            except queue.Full:
                # backpressure: the sink is slower than the decoder
                continue

    def _raise_if_failed(self):
        if self._error is not None:
            raise OutputIoError(f"writing the JSON output failed: {self._error}") from self._error
        if self._aborted.is_set():
            raise OutputIoError("writer aborted")

    def _run(self):
        try:
            self._writer.write_open_bracket()
            while True:
                item = self._queue.get()
                if self._aborted.is_set() or item is _ABORT:
                    return
                if item is _CLOSE:
                    self._writer.write_close_bracket()
                    flush = getattr(self._sink, "flush", None)
                    if flush is not None:
                        flush()
                    self._closed = True
                    return
                self._writer.write_item(item.to_dict())
                self.items_written += 1
        except Exception as e:
            logger.error(f"Error writing JSON output: {e}")
            self._error = e
