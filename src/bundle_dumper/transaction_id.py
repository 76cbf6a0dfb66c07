import base64
import binascii

TRANSACTION_ID_LENGTH = 32


def b64url_encode(data: bytes) -> str:
    """
    Encode bytes to unpadded base64url, the textual form Arweave uses for
    every binary value (ids, owners, signatures, tags, chunks)
    """
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(text: str) -> bytes:
    """
    Decode unpadded (or padded) base64url text

    Raises:
        ValueError: if the text is not valid base64url
    """
    padded = text + "=" * (-len(text) % 4)
    try:
        return base64.b64decode(padded, altchars=b"-_", validate=True)
    except binascii.Error as e:
        raise ValueError(f"invalid base64url value: {text!r}") from e


class TransactionId:
    """
    An immutable 32-byte Arweave identifier

    Used for the bundle transaction and for each DataItem id and target.
    """
    __slots__ = ("_raw",)

    def __init__(self, raw: bytes):
        raw = bytes(raw)
        if len(raw) != TRANSACTION_ID_LENGTH:
            raise ValueError(f"a transaction id has {TRANSACTION_ID_LENGTH} bytes, got {len(raw)}")
        object.__setattr__(self, "_raw", raw)

    def __setattr__(self, name, value):
        raise AttributeError("TransactionId is immutable")

    @classmethod
    def from_string(cls, text: str) -> 'TransactionId':
        return cls(b64url_decode(text))

    @property
    def raw(self) -> bytes:
        return self._raw

    def __str__(self):
        return b64url_encode(self._raw)

    def __repr__(self):
        return f"TransactionId('{self}')"

    def __eq__(self, other):
        return isinstance(other, TransactionId) and self._raw == other._raw

    def __hash__(self):
        return hash(self._raw)
