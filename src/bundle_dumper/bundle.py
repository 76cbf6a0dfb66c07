from dataclasses import dataclass
from typing import Iterator

from bundle_dumper.chunked_source import ChunkedSource, BoundedReader
from bundle_dumper.data_item import DataItem, read_data_item
from bundle_dumper.errors import DecodeError, UnexpectedEof, MalformedHeader, ItemSizeMismatch, BundleDecodeError
from bundle_dumper.initialize import HEADER_INT_WIDTH, logger, slog
from bundle_dumper.transaction_id import TransactionId, TRANSACTION_ID_LENGTH

MAX_U64 = (1 << 64) - 1


@dataclass(frozen=True)
class BundleEntry:
    size: int
    id: TransactionId


@dataclass(frozen=True)
class BundleHeader:
    item_count: int
    entries: tuple[BundleEntry, ...]
    # offset of the first item body in the transaction data
    body_offset: int


def header_length(item_count: int, int_width: int = HEADER_INT_WIDTH) -> int:
    return int_width + item_count * (int_width + TRANSACTION_ID_LENGTH)


def _read_header_int(source: ChunkedSource, int_width: int, what: str) -> int:
    value = int.from_bytes(source.request(int_width), "little")
    if value > MAX_U64:
        raise MalformedHeader(f"{what} {value} does not fit in 64 bits")
    return value


def read_bundle_header(source: ChunkedSource, int_width: int = HEADER_INT_WIDTH) -> BundleHeader:
    """
    Read the item count and the (size, id) entry table at the front of the stream

    Args:
        source: the transaction data, positioned at offset 0
        int_width: width of the count and size fields, 32 bytes for ANS-104

    Returns:
        the BundleHeader

    Raises:
        MalformedHeader: the header does not fit in the transaction, or the
            item sizes do not add up to the rest of the transaction
    """
    if int_width > source.total_size:
        raise MalformedHeader(f"transaction of {source.total_size} bytes cannot hold an item count")
    item_count = _read_header_int(source, int_width, "item count")
    length = header_length(item_count, int_width)
    if length > source.total_size:
        raise MalformedHeader(
            f"{item_count} items need a {length} bytes header, the transaction has {source.total_size} bytes")

    entries = []
    for i in range(item_count):
        size = _read_header_int(source, int_width, f"size of item {i}")
        entries.append(BundleEntry(size, TransactionId(source.request(TRANSACTION_ID_LENGTH))))

    body_length = source.total_size - length
    sizes = sum(entry.size for entry in entries)
    if sizes != body_length:
        raise MalformedHeader(f"item sizes add up to {sizes} bytes, the items region has {body_length} bytes")
    return BundleHeader(item_count, tuple(entries), length)


class BundleDecoder:
    """
    Decodes a bundle from a ChunkedSource, one DataItem at a time

    Items are decoded strictly in order: each one starts exactly where the
    previous one ended according to the header's size table, which is
    checked before every item.

    Args:
        source: the transaction data
        int_width: width of the header count and size fields
        skip_invalid_items: log and skip an item that fails to decode instead
            of aborting; the stream resumes at the next entry
    """

    def __init__(self, source: ChunkedSource, int_width: int = HEADER_INT_WIDTH, skip_invalid_items: bool = False):
        self.source = source
        self.int_width = int_width
        self.skip_invalid_items = skip_invalid_items
        self.header: BundleHeader | None = None
        self.items_decoded = 0
        self.items_skipped = 0

    def read_header(self) -> BundleHeader:
        try:
            self.header = read_bundle_header(self.source, self.int_width)
        except DecodeError as e:
            raise BundleDecodeError(None, self.source.offset) from e
        slog.info(f"bundle header: {self.header.item_count} items, bodies start at offset {self.header.body_offset}")
        return self.header

    def items(self) -> Iterator[DataItem]:
        """
        Lazily decode the items declared in the header

        Raises:
            BundleDecodeError: an item could not be decoded; the cause is the
                DecodeError raised by the item decoder
        """
        header = self.header if self.header is not None else self.read_header()
        expected_offset = header.body_offset
        for index, entry in enumerate(header.entries):
            if self.source.offset != expected_offset:
                raise BundleDecodeError(index, self.source.offset) from ItemSizeMismatch(
                    f"item {index} should start at offset {expected_offset}, the stream is at {self.source.offset}")
            item_reader = BoundedReader(self.source, entry.size)
            try:
                item = read_data_item(item_reader, entry.id)
            except UnexpectedEof as e:
                raise BundleDecodeError(index, self.source.offset) from e
            except DecodeError as e:
                if not self.skip_invalid_items:
                    raise BundleDecodeError(index, self.source.offset) from e
                logger.warning(f"skipping DataItem {index} ({entry.id}) at offset {self.source.offset}: {e!r}",
                               extra={"offset": self.source.offset, "item": index})
                item_reader.drain()
                self.items_skipped += 1
            else:
                self.items_decoded += 1
                logger.debug(f"DataItem {index} decoded: {entry.size} bytes, {len(item.tags)} tags",
                             extra={"offset": expected_offset, "item": index})
                yield item
            expected_offset += entry.size
