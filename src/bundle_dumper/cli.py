"""
Transaction bundle dumper for the Arweave network.

Fetches an ANS-104 bundle transaction chunk by chunk and writes its
DataItems to a JSON file, holding at most one chunk and one item in memory.
"""
import argparse
import sys

from bundle_dumper.client_configuration import ClientConfiguration
from bundle_dumper.dump import dump_bundle
from bundle_dumper.initialize import DEFAULT_API_URL, HEADER_INT_WIDTH, configure_logging, logger
from bundle_dumper.transaction_id import TransactionId


def _transaction_id(text: str) -> TransactionId:
    try:
        return TransactionId.from_string(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="arweave-bundle-dump", description=__doc__)
    p.add_argument("-t", "--transaction-id", type=_transaction_id, required=True, help="Transaction ID to fetch")
    p.add_argument("--api-url", default=DEFAULT_API_URL, help=f"Arweave gateway URL (default: {DEFAULT_API_URL})")
    p.add_argument("-o", "--output-file", help="JSON output file name. Default name: <transaction_ID>.json")
    p.add_argument("--header-int-width", type=int, choices=[8, 32], default=HEADER_INT_WIDTH,
                   help=f"Width in bytes of the bundle header count and sizes (default: {HEADER_INT_WIDTH})")
    p.add_argument("--skip-invalid-items", action="store_true",
                   help="Skip DataItems that fail to decode instead of aborting")
    p.add_argument("-v", "--verbose", action="store_true", help="Log chunk fetches and decoded items")
    return p.parse_args(argv)


def format_error_chain(error: BaseException) -> str:
    lines = [f"Error: {error}"]
    cause = error.__cause__ or error.__context__
    while cause is not None:
        lines.append(f"Caused by: {type(cause).__name__}: {cause}")
        cause = cause.__cause__ or cause.__context__
    return "\n".join(lines)


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)
    configuration = ClientConfiguration(api_url=args.api_url)
    filename = args.output_file or f"{args.transaction_id}.json"
    try:
        dump_bundle(configuration, args.transaction_id, filename, skip_invalid_items=args.skip_invalid_items,
                    int_width=args.header_int_width)
    except Exception as e:
        logger.debug("dump failed", exc_info=e)
        print(format_error_chain(e), file=sys.stderr)
        return 1
    print(f"Bundle data stored in: {filename}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
