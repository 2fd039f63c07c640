#!/usr/bin/env python3

import argparse
import json
import logging
import sys

from beancount_import_mt940.converter import Converter
from beancount_import_mt940.models import InputNotFound

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Convert an MT940 statement into a JSON list of transactions"
    )
    parser.add_argument("input", help="Path to the MT940 file")
    parser.add_argument(
        "--century-pivot",
        type=int,
        default=50,
        help="Two digit years below this are 20YY, the rest 19YY (default: 50)",
    )
    parser.add_argument(
        "--encoding", default="ISO-8859-1", help="File encoding (default: ISO-8859-1)"
    )
    parser.add_argument("--indent", type=int, default=None, help="JSON indentation")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level, format="%(levelname)s %(name)s: %(message)s"
    )

    converter = Converter(century_pivot=args.century_pivot, file_encoding=args.encoding)
    try:
        rows = converter.convert(args.input)
    except InputNotFound as e:
        logger.error(str(e))
        return 1

    json.dump(
        [row.to_dict() for row in rows], sys.stdout, indent=args.indent, default=float
    )
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
