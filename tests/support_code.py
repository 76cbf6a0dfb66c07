"""
Synthetic ANS-104 bundles and in-memory network collaborators for the tests.
"""
from leb128 import u

from bundle_dumper.arweave_client import TxMetadata, TransactionOffset
from bundle_dumper.data_item import SignatureType
from bundle_dumper.primitives import zigzag_encode
from bundle_dumper.transaction_id import TransactionId

BUNDLE_TAGS = {"Bundle-Format": "binary", "Bundle-Version": "2.0.0"}


def tx_id(fill: int) -> TransactionId:
    return TransactionId(bytes([fill]) * 32)


def encode_varint(n: int) -> bytes:
    return bytes(u.encode(zigzag_encode(n)))


def encode_bytes(b: bytes) -> bytes:
    return encode_varint(len(b)) + b


def encode_tags(tags, sized_blocks: bool = False) -> bytes:
    """Avro array of {name, value} records, in one block"""
    if not tags:
        return b""
    body = b"".join(encode_bytes(name) + encode_bytes(value) for name, value in tags)
    if sized_blocks:
        return encode_varint(-len(tags)) + encode_varint(len(body)) + body + encode_varint(0)
    return encode_varint(len(tags)) + body + encode_varint(0)


def encode_data_item(signature_type: int = 2, signature: bytes = None, owner: bytes = None, target: bytes = None,
                     anchor: bytes = None, tags=(), data: bytes = b"", tag_count: int = None,
                     tag_blob: bytes = None) -> bytes:
    try:
        st = SignatureType(signature_type)
    except ValueError:
        # unknown codes get ed25519 sized fields
        st = SignatureType.ED25519
    if signature is None:
        signature = bytes([0xa1]) * st.signature_length
    if owner is None:
        owner = bytes([0xb2]) * st.owner_length
    if tag_blob is None:
        tag_blob = encode_tags(tags)
    out = signature_type.to_bytes(2, "little") + signature + owner
    out += b"\x01" + target if target is not None else b"\x00"
    out += b"\x01" + anchor if anchor is not None else b"\x00"
    out += (len(tags) if tag_count is None else tag_count).to_bytes(8, "little")
    out += len(tag_blob).to_bytes(8, "little")
    return out + tag_blob + data


def encode_bundle(items, ids=None, int_width: int = 32, sizes=None) -> bytes:
    if ids is None:
        ids = [tx_id(i + 1).raw for i in range(len(items))]
    if sizes is None:
        sizes = [len(item) for item in items]
    header = len(items).to_bytes(int_width, "little")
    header += b"".join(size.to_bytes(int_width, "little") + item_id for size, item_id in zip(sizes, ids))
    return header + b"".join(items)


class ChunkFetcher:
    """
    Serves a byte string as chunks cut at the given boundaries (or every
    chunk_size bytes) and counts the calls
    """

    def __init__(self, data: bytes, chunk_size: int = None, boundaries=None):
        self.data = data
        if boundaries is None:
            size = chunk_size or len(data) or 1
            boundaries = range(size, len(data), size)
        self.boundaries = sorted(set(boundaries)) + [len(data)]
        self.calls = []

    def __call__(self, offset: int) -> bytes:
        self.calls.append(offset)
        end = next(b for b in self.boundaries if b > offset)
        return self.data[offset:end]


class FakeClient:
    """Network collaborator backed by memory"""

    def __init__(self, data: bytes, tags=None, chunk_size: int = 256 * 1024, boundaries=None):
        self.tags = dict(BUNDLE_TAGS if tags is None else tags)
        self.fetcher = ChunkFetcher(data, chunk_size=chunk_size, boundaries=boundaries)
        self.size = len(data)
        self.metadata_calls = 0

    @property
    def chunk_calls(self) -> int:
        return len(self.fetcher.calls)

    def fetch_transaction_metadata(self, tx):
        self.metadata_calls += 1
        return TxMetadata(self.tags)

    def fetch_transaction_offset(self, tx):
        return TransactionOffset(size=self.size, offset=1000 + self.size - 1)

    def fetch_chunk(self, tx, byte_offset: int) -> bytes:
        return self.fetcher(byte_offset)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        pass
