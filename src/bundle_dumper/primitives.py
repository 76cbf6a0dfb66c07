"""
Primitive decoders for the bundle wire format.

Every function takes a reader, i.e. anything with a ``request(n) -> bytes``
method (ChunkedSource, BoundedReader). Chunk boundaries are handled by the
reader; running out of input is reported by the reader as UnexpectedEof (end
of the transaction) or as the budget error of a BoundedReader.
"""
from typing import Callable, TypeVar
from leb128 import u

from bundle_dumper.errors import (
    UnexpectedEof, ItemOverrun, TagLengthMismatch, TruncatedVarint, MalformedVarint, MalformedTag
)

T = TypeVar("T")

# a 64-bit value needs at most 10 groups of 7 bits
MAX_VARINT_BYTES = 10

# errors meaning "no more input for this field"
_END_OF_INPUT = (UnexpectedEof, ItemOverrun, TagLengthMismatch)


def read_uint(reader, width: int) -> int:
    return int.from_bytes(reader.request(width), "little")


def read_u8(reader) -> int:
    return reader.request(1)[0]


def read_u16(reader) -> int:
    return read_uint(reader, 2)


def read_u64(reader) -> int:
    return read_uint(reader, 8)


def zigzag_decode(n: int) -> int:
    return (n >> 1) ^ -(n & 1)


def zigzag_encode(n: int) -> int:
    return (n << 1) ^ (n >> 63)


def read_varint(reader) -> int:
    """
    Read a zigzag encoded, little-endian base-128 integer (an Avro long)

    Bytes are requested one at a time so a varint split across two chunks
    is read like any other: the reader fetches the next chunk transparently.

    Raises:
        TruncatedVarint: the input ended before the last byte of the varint
        MalformedVarint: the varint is longer than a 64-bit value allows
    """
    encoded = bytearray()
    while True:
        try:
            byte = reader.request(1)[0]
        except _END_OF_INPUT as e:
            raise TruncatedVarint(f"input ended after {len(encoded)} varint byte(s)") from e
        encoded.append(byte)
        if byte & 0x80 == 0:
            break
        if len(encoded) == MAX_VARINT_BYTES:
            raise MalformedVarint(f"varint longer than {MAX_VARINT_BYTES} bytes: {encoded.hex()}")
    return zigzag_decode(u.decode(encoded))


def read_prefixed_bytes(reader) -> bytes:
    """Read a varint length followed by that many bytes."""
    length = read_varint(reader)
    if length < 0:
        raise MalformedTag(f"negative byte string length {length}")
    return reader.request(length)


def read_array(reader, read_element: Callable[..., T]) -> list[T]:
    """
    Read an Avro array

    The array is a sequence of blocks. Each block starts with a varint item
    count; a negative count -k announces k items preceded by the block size
    in bytes. A zero count ends the array.

    Args:
        reader: the reader to consume
        read_element: decodes one element from the reader

    Returns:
        the elements in encoded order
    """
    elements = []
    while True:
        count = read_varint(reader)
        if count == 0:
            return elements
        if count < 0:
            count = -count
            block_size = read_varint(reader)
            if block_size < 0:
                raise MalformedTag(f"negative array block size {block_size}")
        for _ in range(count):
            elements.append(read_element(reader))
