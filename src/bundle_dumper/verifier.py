from bundle_dumper.arweave_client import TxMetadata, BUNDLE_FORMAT, BUNDLE_VERSION
from bundle_dumper.errors import NotABundle
from bundle_dumper.initialize import slog
from bundle_dumper.transaction_id import TransactionId


def verify_bundle(client, tx_id: TransactionId) -> TxMetadata:
    """
    Check that a transaction is an ANS-104 binary bundle

    Only the transaction metadata is fetched; this runs before any chunk
    of the data is requested.

    Args:
        client: anything with fetch_transaction_metadata(tx_id)
        tx_id: the transaction to check

    Returns:
        the transaction metadata

    Raises:
        NotABundle: the Bundle-Format / Bundle-Version tags are missing or unsupported
    """
    metadata = client.fetch_transaction_metadata(tx_id)
    if not metadata.is_bundle():
        raise NotABundle(
            f"transaction {tx_id} is not an ANS-104 bundle: "
            f"Bundle-Format={metadata.get_tag('Bundle-Format')!r} (expected {BUNDLE_FORMAT!r}), "
            f"Bundle-Version={metadata.get_tag('Bundle-Version')!r} (expected {BUNDLE_VERSION!r})")
    slog.debug(f"transaction {tx_id} is a bundle")
    return metadata
