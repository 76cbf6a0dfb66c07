import time
from dataclasses import dataclass
from functools import partial

from bundle_dumper.arweave_client import ArweaveClient
from bundle_dumper.bundle import BundleDecoder
from bundle_dumper.chunked_source import ChunkedSource
from bundle_dumper.client_configuration import ClientConfiguration
from bundle_dumper.initialize import HEADER_INT_WIDTH, WRITER_QUEUE_SIZE, logger
from bundle_dumper.json_writer import StreamingJsonWriter
from bundle_dumper.transaction_id import TransactionId
from bundle_dumper.verifier import verify_bundle


@dataclass
class DumpSummary:
    item_count: int
    items_written: int
    items_skipped: int
    chunks_fetched: int
    elapsed: float


class BundleDump:
    """
    One run of the dumper: verify, stream, decode, write

    The run owns its source, decoder and writer; nothing is kept once
    run() returns. On any error the writer is aborted, leaving the output
    an unclosed JSON array, and the error propagates.

    Args:
        client: the network collaborator (fetch_transaction_metadata,
            fetch_transaction_offset, fetch_chunk)
        tx_id: the bundle transaction
        sink: binary file-like object receiving the JSON array
        int_width: width of the bundle header integers
        queue_size: the writer queue bound
        skip_invalid_items: skip items that fail to decode instead of aborting
    """

    def __init__(self, client, tx_id: TransactionId, sink, int_width: int = HEADER_INT_WIDTH,
                 queue_size: int = WRITER_QUEUE_SIZE, skip_invalid_items: bool = False):
        self.client = client
        self.tx_id = tx_id
        self.sink = sink
        self.int_width = int_width
        self.queue_size = queue_size
        self.skip_invalid_items = skip_invalid_items

    def run(self) -> DumpSummary:
        t_start = time.perf_counter()
        verify_bundle(self.client, self.tx_id)

        tx_offset = self.client.fetch_transaction_offset(self.tx_id)
        logger.info(f"transaction {self.tx_id}: {tx_offset.size} bytes of data")
        source = ChunkedSource(partial(self.client.fetch_chunk, self.tx_id), tx_offset.size)
        decoder = BundleDecoder(source, self.int_width, self.skip_invalid_items)
        header = decoder.read_header()

        with StreamingJsonWriter(self.sink, self.queue_size) as writer:
            for item in decoder.items():
                writer.write_item(item)

        summary = DumpSummary(
            item_count=header.item_count,
            items_written=writer.items_written,
            items_skipped=decoder.items_skipped,
            chunks_fetched=source.chunks_fetched,
            elapsed=time.perf_counter() - t_start,
        )
        logger.info(
            f"bundle {self.tx_id}: {summary.items_written}/{summary.item_count} items written, "
            f"{summary.items_skipped} skipped, {summary.chunks_fetched} chunks in {summary.elapsed:.3f}s")
        return summary


def dump_bundle(configuration: ClientConfiguration, tx_id: TransactionId, output_file: str,
                skip_invalid_items: bool = False, int_width: int = HEADER_INT_WIDTH) -> DumpSummary:
    """
    Dump a bundle transaction to a JSON file

    Args:
        configuration: the gateway configuration
        tx_id: the bundle transaction
        output_file: path of the JSON file to create
        skip_invalid_items: skip items that fail to decode instead of aborting
        int_width: width of the bundle header integers, 32 (ANS-104) or 8

    Returns:
        the DumpSummary of the run
    """
    with ArweaveClient(configuration) as client, open(output_file, "wb") as sink:
        return BundleDump(client, tx_id, sink, int_width=int_width, skip_invalid_items=skip_invalid_items).run()
