from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from bundle_dumper.chunked_source import BoundedReader
from bundle_dumper.errors import (
    UnknownSignatureType, InvalidPresenceFlag, ItemOverrun, TagCountMismatch, TagLengthMismatch
)
from bundle_dumper.primitives import read_u8, read_u16, read_u64, read_array, read_prefixed_bytes
from bundle_dumper.transaction_id import TransactionId, b64url_encode, TRANSACTION_ID_LENGTH

ANCHOR_LENGTH = 32


class SignatureType(Enum):
    ARWEAVE = 1
    ED25519 = 2
    ETHEREUM = 3
    SOLANA = 4
    INJECTED_APTOS = 5
    MULTI_APTOS = 6
    TYPED_ETHEREUM = 7

    @property
    def signature_length(self) -> int:
        return _SIGNATURE_LENGTHS[self][0]

    @property
    def owner_length(self) -> int:
        return _SIGNATURE_LENGTHS[self][1]


_SIGNATURE_LENGTHS = {
    SignatureType.ARWEAVE: (512, 512),
    SignatureType.ED25519: (64, 32),
    SignatureType.ETHEREUM: (65, 65),
    SignatureType.SOLANA: (64, 32),
    SignatureType.INJECTED_APTOS: (64, 32),
    SignatureType.MULTI_APTOS: (64 * 32 + 4, 32 * 32 + 1),
    SignatureType.TYPED_ETHEREUM: (65, 42),
}


@dataclass(frozen=True)
class Tag:
    name: bytes
    value: bytes

    def to_dict(self):
        return {
            'name': b64url_encode(self.name),
            'value': b64url_encode(self.value),
        }


@dataclass
class DataItem:
    id: TransactionId
    signature_type: SignatureType
    signature: bytes
    owner: bytes
    target: Optional[TransactionId] = None
    anchor: Optional[bytes] = None
    tags: list[Tag] = field(default_factory=list)
    data: bytes = b''

    def to_dict(self):
        """
        The JSON form of the item: byte strings as unpadded base64url,
        absent target and anchor as null
        """
        return {
            'id': str(self.id),
            'signature_type': self.signature_type.value,
            'signature_name': self.signature_type.name.lower(),
            'signature': b64url_encode(self.signature),
            'owner': b64url_encode(self.owner),
            'target': None if self.target is None else str(self.target),
            'anchor': None if self.anchor is None else b64url_encode(self.anchor),
            'tags': [tag.to_dict() for tag in self.tags],
            'data': b64url_encode(self.data),
        }


def _read_tag(reader) -> Tag:
    name = read_prefixed_bytes(reader)
    value = read_prefixed_bytes(reader)
    return Tag(name, value)


def read_tags(reader, tag_count: int, tag_bytes: int) -> list[Tag]:
    """
    Read a tag list of exactly tag_bytes bytes holding exactly tag_count tags

    Raises:
        TagCountMismatch: the array does not hold tag_count tags
        TagLengthMismatch: the array does not end exactly after tag_bytes
    """
    # an item without tags carries no array at all, not even the terminator
    if tag_bytes == 0:
        if tag_count != 0:
            raise TagCountMismatch(f"{tag_count} tags declared in 0 bytes")
        return []
    tag_reader = BoundedReader(reader, tag_bytes, overrun=TagLengthMismatch)
    tags = read_array(tag_reader, _read_tag)
    if len(tags) != tag_count:
        raise TagCountMismatch(f"{tag_count} tags declared, {len(tags)} decoded")
    if tag_reader.remaining:
        raise TagLengthMismatch(f"{tag_bytes} tag bytes declared, {tag_reader.consumed} decoded")
    return tags


def _read_fixed(reader: BoundedReader, length: int, what: str) -> bytes:
    if length > reader.remaining:
        raise ItemOverrun(f"{what} needs {length} bytes, {reader.remaining} left in the item")
    return reader.request(length)


def _read_optional(reader: BoundedReader, length: int, what: str) -> Optional[bytes]:
    flag = read_u8(reader)
    if flag == 0:
        return None
    if flag != 1:
        raise InvalidPresenceFlag(f"{what} presence flag is {flag}")
    return _read_fixed(reader, length, what)


def read_data_item(reader: BoundedReader, item_id: TransactionId) -> DataItem:
    """
    Decode one DataItem from a reader bounded to the item's declared size

    Args:
        reader: a BoundedReader over exactly this item's bytes
        item_id: the item id from the bundle header

    Returns:
        the decoded DataItem; the reader budget is fully consumed
    """
    code = read_u16(reader)
    try:
        signature_type = SignatureType(code)
    except ValueError:
        raise UnknownSignatureType(f"unknown signature type {code}") from None

    signature = _read_fixed(reader, signature_type.signature_length, "signature")
    owner = _read_fixed(reader, signature_type.owner_length, "owner")

    target = _read_optional(reader, TRANSACTION_ID_LENGTH, "target")
    anchor = _read_optional(reader, ANCHOR_LENGTH, "anchor")

    tag_count = read_u64(reader)
    tag_bytes = read_u64(reader)
    if tag_bytes > reader.remaining:
        raise ItemOverrun(f"{tag_bytes} tag bytes declared, {reader.remaining} left in the item")
    tags = read_tags(reader, tag_count, tag_bytes)

    # the data is whatever is left of the declared item size
    data = reader.request(reader.remaining)

    return DataItem(
        id=item_id,
        signature_type=signature_type,
        signature=signature,
        owner=owner,
        target=None if target is None else TransactionId(target),
        anchor=anchor,
        tags=tags,
        data=data,
    )
