"""
Command line interface.

    openfema datasets [--refresh]
    openfema fields DATASET
    openfema fetch DATASET [--top N] [--select a,b] [--filter field=PRED ...] [--yes] [--csv]
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from openfema_client.api.client import OpenFemaClient
from openfema_client.api.errors import OpenFemaError, RetrievalAbortedError
from openfema_client.console import console_confirm, render_table
from openfema_client.data.catalog import get_catalog
from openfema_client.data.query_builder import split_filter_arg
from openfema_client.data.retrieve import retrieve

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="openfema", description="Query the OpenFEMA API")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    datasets = sub.add_parser("datasets", help="List known datasets")
    datasets.add_argument("--refresh", action="store_true", help="Refresh from the live DataSets endpoint")

    fields = sub.add_parser("fields", help="Show field types for a dataset")
    fields.add_argument("dataset")

    fetch = sub.add_parser("fetch", help="Retrieve records from a dataset")
    fetch.add_argument("dataset")
    fetch.add_argument("--top", type=int, default=None, help="Maximum number of records")
    fetch.add_argument("--select", default=None, help="Comma-separated fields (default: all)")
    fetch.add_argument(
        "--filter",
        action="append",
        default=[],
        metavar="FIELD=PRED",
        help="Filter predicate, e.g. 'yearOfLoss=>= 2010'. Repeat for more.",
    )
    fetch.add_argument("--page-size", type=int, default=None)
    fetch.add_argument("--yes", action="store_true", help="Do not ask before multi-page retrievals")
    fetch.add_argument("--csv", action="store_true", help="Write CSV to stdout instead of a table")
    return parser


def _cmd_datasets(args: argparse.Namespace) -> int:
    catalog = get_catalog()
    if args.refresh:
        with OpenFemaClient() as client:
            catalog.refresh(client)
    for dataset in catalog.list_datasets():
        print(f"{dataset.name}\tv{dataset.version}\t{dataset.title}")
    return 0


def _cmd_fields(args: argparse.Namespace) -> int:
    catalog = get_catalog()
    with OpenFemaClient() as client:
        dataset = catalog.load_fields(client, args.dataset)
    print(json.dumps(dataset.field_types, indent=2, sort_keys=True))
    return 0


def _cmd_fetch(args: argparse.Namespace) -> int:
    frame = retrieve(
        args.dataset,
        selected_fields=args.select,
        filter_spec=split_filter_arg(args.filter) or None,
        top_n=args.top,
        ask_before_call=not args.yes,
        confirm=console_confirm,
        page_size=args.page_size,
    )
    if args.csv:
        frame.to_csv(sys.stdout, index=False)
    else:
        render_table(frame)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.getLogger("openfema_client").setLevel(logging.DEBUG)

    handlers = {"datasets": _cmd_datasets, "fields": _cmd_fields, "fetch": _cmd_fetch}
    try:
        return handlers[args.command](args)
    except RetrievalAbortedError as e:
        logger.info(e.message)
        return 1
    except OpenFemaError as e:
        print(json.dumps(e.to_dict()), file=sys.stderr)
        return 2
