from dataclasses import dataclass
from urllib.parse import urljoin

import orjson
import requests
from jsonpath_ng import ext

from bundle_dumper.client_configuration import ClientConfiguration
from bundle_dumper.errors import TransportError, TransactionNotFound
from bundle_dumper.initialize import logger
from bundle_dumper.session import create_session
from bundle_dumper.transaction_id import TransactionId, b64url_decode

TAGS_PATH = ext.parse('$.tags[*]')

BUNDLE_FORMAT = "binary"
BUNDLE_VERSION = "2.0.0"


@dataclass
class TxMetadata:
    tag_map: dict[str, str]

    def get_tag(self, name: str) -> str | None:
        return self.tag_map.get(name)

    def is_bundle(self) -> bool:
        return (self.get_tag("Bundle-Format") == BUNDLE_FORMAT
                and self.get_tag("Bundle-Version") == BUNDLE_VERSION)


@dataclass(frozen=True)
class TransactionOffset:
    # size of the transaction data
    size: int
    # absolute weave offset of the last byte of the data
    offset: int

    @property
    def start(self) -> int:
        """Absolute weave offset of the first byte of the data"""
        return self.offset - self.size + 1


def parse_tx_metadata(document: dict) -> TxMetadata:
    """
    Extract the tags of a /tx/{id} document

    Tag names and values are base64url encoded in the document; they are
    decoded as UTF-8 strings. When a tag name repeats, the last value wins.
    """
    tag_map = {}
    for match in TAGS_PATH.find(document):
        tag = match.value
        try:
            name = b64url_decode(tag['name']).decode('utf-8', errors='replace')
            value = b64url_decode(tag['value']).decode('utf-8', errors='replace')
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(f"invalid tag in transaction document: {tag}") from e
        tag_map[name] = value
    return TxMetadata(tag_map)


class ArweaveClient:
    """
    Client of an Arweave gateway HTTP API

    Owns one requests session; every GET is retried by the session with an
    exponential backoff before a TransportError is raised.

    Args:
        configuration: the ClientConfiguration to use
        session: an existing session, mainly for tests
    """

    def __init__(self, configuration: ClientConfiguration, session: requests.Session | None = None):
        self.configuration = configuration
        base_url = configuration.api_url
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.session = session if session is not None else create_session(configuration)
        self._offsets: dict[TransactionId, TransactionOffset] = {}

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _get_json(self, path: str) -> dict:
        url = urljoin(self.base_url, path)
        try:
            res = self.session.get(url, timeout=self.configuration.timeout)
        except requests.RequestException as e:
            logger.error(f"Error in GET {url}: {e}")
            raise TransportError(f"GET {url} failed: {e}") from e

        if res.status_code == 404:
            raise TransactionNotFound(f"GET {url}: not found")
        if res.status_code == 202:
            raise TransportError(f"GET {url}: transaction is pending")
        if res.status_code != 200:
            logger.error(f"Error {res.status_code} in GET {url} {res.text}")
            raise TransportError(f"Error {res.status_code} in GET {url}")
        try:
            return orjson.loads(res.content)
        except orjson.JSONDecodeError as e:
            raise TransportError(f"GET {url}: invalid JSON response") from e

    def fetch_transaction_metadata(self, tx_id: TransactionId) -> TxMetadata:
        return parse_tx_metadata(self._get_json(f"tx/{tx_id}"))

    def fetch_transaction_offset(self, tx_id: TransactionId) -> TransactionOffset:
        if tx_id not in self._offsets:
            document = self._get_json(f"tx/{tx_id}/offset")
            try:
                # both numbers are sent as strings
                self._offsets[tx_id] = TransactionOffset(size=int(document['size']),
                                                         offset=int(document['offset']))
            except (KeyError, TypeError, ValueError) as e:
                raise TransportError(f"invalid offset document for {tx_id}: {document}") from e
        return self._offsets[tx_id]

    def fetch_chunk(self, tx_id: TransactionId, byte_offset: int) -> bytes:
        """
        Fetch the chunk of the transaction data starting at byte_offset

        Args:
            tx_id: the transaction
            byte_offset: offset in the transaction data, a chunk boundary

        Returns:
            the chunk bytes; their number is decided by the network
        """
        tx_offset = self.fetch_transaction_offset(tx_id)
        document = self._get_json(f"chunk/{tx_offset.start + byte_offset}")
        try:
            return b64url_decode(document['chunk'])
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(f"invalid chunk document at data offset {byte_offset} of {tx_id}") from e
