class BundleDumperError(Exception):
    """Base class for every error raised by the bundle dumper."""


class TransportError(BundleDumperError):
    """A network request failed after its retries were exhausted."""


class TransactionNotFound(TransportError):
    pass


class NotABundle(BundleDumperError):
    """The transaction does not carry the ANS-104 bundle tags."""


class OutputIoError(BundleDumperError):
    """Writing to the output sink failed."""


class DecodeError(BundleDumperError):
    """The bundle byte stream cannot be decoded."""


class UnexpectedEof(DecodeError):
    pass


class MalformedHeader(DecodeError):
    pass


class ItemSizeMismatch(DecodeError):
    pass


class ItemOverrun(DecodeError):
    pass


class UnknownSignatureType(DecodeError):
    pass


class InvalidPresenceFlag(DecodeError):
    pass


class TagCountMismatch(DecodeError):
    pass


class TagLengthMismatch(DecodeError):
    pass


class MalformedTag(DecodeError):
    pass


class TruncatedVarint(DecodeError):
    """The input ended in the middle of a variable-length integer."""


class MalformedVarint(DecodeError):
    """The variable-length integer encoding itself is invalid."""


class BundleDecodeError(BundleDumperError):
    """
    Locates a decode error inside the bundle stream.

    The original error is chained as ``__cause__``.

    Args:
        item_index: index of the DataItem being decoded, None for the header
        offset: stream offset at which decoding stopped
    """

    def __init__(self, item_index: int | None, offset: int):
        self.item_index = item_index
        self.offset = offset
        where = "bundle header" if item_index is None else f"DataItem {item_index}"
        super().__init__(f"failed to decode {where} at offset {offset}")
