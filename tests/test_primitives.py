import unittest

from bundle_dumper.chunked_source import ChunkedSource, BoundedReader
from bundle_dumper.errors import TruncatedVarint, MalformedVarint, MalformedTag, TagLengthMismatch
from bundle_dumper.primitives import (
    read_varint, read_prefixed_bytes, read_array, read_u16, read_u64, zigzag_decode, zigzag_encode
)
from support_code import ChunkFetcher, encode_varint, encode_bytes


def source_of(data: bytes, boundaries=None) -> ChunkedSource:
    return ChunkedSource(ChunkFetcher(data, boundaries=boundaries), len(data))


class TestFixedWidth(unittest.TestCase):
    def test_little_endian(self):
        source = source_of(b"\x01\x02" + (1234567890123).to_bytes(8, "little"))
        self.assertEqual(read_u16(source), 0x0201)
        self.assertEqual(read_u64(source), 1234567890123)


class TestVarint(unittest.TestCase):
    def test_zigzag(self):
        for value, encoded in [(0, 0), (-1, 1), (1, 2), (-2, 3), (2, 4), (-64, 127), (64, 128)]:
            self.assertEqual(zigzag_encode(value), encoded)
            self.assertEqual(zigzag_decode(encoded), value)

    def test_known_encodings(self):
        self.assertEqual(read_varint(source_of(b"\x00")), 0)
        self.assertEqual(read_varint(source_of(b"\x01")), -1)
        self.assertEqual(read_varint(source_of(b"\x02")), 1)
        self.assertEqual(read_varint(source_of(b"\x80\x01")), 64)
        self.assertEqual(read_varint(source_of(b"\xac\x02")), 150)

    def test_stops_at_last_byte(self):
        source = source_of(b"\x80\x01\x7f")
        self.assertEqual(read_varint(source), 64)
        self.assertEqual(source.offset, 2)

    def test_varint_split_across_chunks(self):
        encoded = encode_varint(8192)
        self.assertEqual(encoded, b"\x80\x80\x01")
        whole = read_varint(source_of(encoded))
        for boundaries in ([1], [2], [1, 2]):
            with self.subTest(boundaries=boundaries):
                # continuation byte ends chunk K, terminating byte starts chunk K+1
                self.assertEqual(read_varint(source_of(encoded, boundaries)), whole)

    def test_truncated_at_end_of_transaction(self):
        with self.assertRaises(TruncatedVarint):
            read_varint(source_of(b"\x80\x80"))

    def test_truncated_at_end_of_budget(self):
        reader = BoundedReader(source_of(b"\x80\x80\x01"), 2, overrun=TagLengthMismatch)
        with self.assertRaises(TruncatedVarint) as ctx:
            read_varint(reader)
        self.assertIsInstance(ctx.exception.__cause__, TagLengthMismatch)

    def test_too_long(self):
        with self.assertRaises(MalformedVarint):
            read_varint(source_of(b"\xff" * 11 + b"\x01"))


class TestByteStrings(unittest.TestCase):
    def test_prefixed_bytes(self):
        source = source_of(encode_bytes(b"hello") + encode_bytes(b""))
        self.assertEqual(read_prefixed_bytes(source), b"hello")
        self.assertEqual(read_prefixed_bytes(source), b"")

    def test_negative_length(self):
        with self.assertRaises(MalformedTag):
            read_prefixed_bytes(source_of(encode_varint(-3) + b"abc"))


class TestArray(unittest.TestCase):
    def test_blocks(self):
        data = (encode_varint(2) + encode_bytes(b"a") + encode_bytes(b"b")
                + encode_varint(1) + encode_bytes(b"c") + encode_varint(0))
        self.assertEqual(read_array(source_of(data), read_prefixed_bytes), [b"a", b"b", b"c"])

    def test_sized_block(self):
        body = encode_bytes(b"xy") + encode_bytes(b"z")
        data = encode_varint(-2) + encode_varint(len(body)) + body + encode_varint(0)
        self.assertEqual(read_array(source_of(data), read_prefixed_bytes), [b"xy", b"z"])

    def test_empty(self):
        self.assertEqual(read_array(source_of(b"\x00"), read_prefixed_bytes), [])


if __name__ == '__main__':
    unittest.main()
