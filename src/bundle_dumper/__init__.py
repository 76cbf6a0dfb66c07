from .arweave_client import ArweaveClient, TxMetadata, TransactionOffset
from .bundle import BundleDecoder, BundleHeader, BundleEntry, read_bundle_header
from .chunked_source import ChunkedSource, BoundedReader
from .client_configuration import ClientConfiguration
from .data_item import DataItem, Tag, SignatureType, read_data_item
from .dump import BundleDump, dump_bundle
from .json_writer import StreamingJsonWriter
from .transaction_id import TransactionId
from .verifier import verify_bundle

__all__ = ["ArweaveClient", "TxMetadata", "TransactionOffset", "BundleDecoder", "BundleHeader", "BundleEntry",
           "read_bundle_header", "ChunkedSource", "BoundedReader", "ClientConfiguration", "DataItem", "Tag",
           "SignatureType", "read_data_item", "BundleDump", "dump_bundle", "StreamingJsonWriter", "TransactionId",
           "verify_bundle"]
