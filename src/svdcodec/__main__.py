# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from textwrap import dedent

import svdcodec


def cli() -> None:
    top = argparse.ArgumentParser(
        description=dedent(
            """\
            Utility scripts for checking and re-encoding System View Description (SVD) files.
            """
        ),
        allow_abbrev=False,
    )
    top.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help=(
            "Output verbose logs. Can be given multiple times to increase the verbosity. "
            "By default only critical messages are output."
        ),
    )

    sub = top.add_subparsers(title="subcommands")

    check = sub.add_parser(
        "check",
        help="Parse and validate a SVD file.",
        description=dedent(
            """\
            Parse a SVD file and validate every element in it, reporting all errors found.
            """
        ),
        allow_abbrev=False,
    )
    check.set_defaults(_command="check")
    _add_parse_arguments(check)

    fmt = sub.add_parser(
        "format",
        help="Parse a SVD file and encode it again.",
        description=dedent(
            """\
            Parse a SVD file and output it in normalized form. Numbers are written in a uniform
            style, and arrays can optionally be expanded or compacted.
            """
        ),
        allow_abbrev=False,
    )
    fmt.set_defaults(_command="format")
    _add_parse_arguments(fmt)
    fmt.add_argument(
        "--compact",
        action="store_true",
        help="Replace uniformly spaced sibling elements by array elements where possible.",
    )
    fmt.add_argument(
        "-o",
        "--output-file",
        type=argparse.FileType("w", encoding="utf-8"),
        default=sys.stdout,
        help="File to write the output to. If not given, output is written to stdout.",
    )

    args = top.parse_args()

    log_level = {
        0: logging.CRITICAL,
        1: logging.WARNING,
        2: logging.INFO,
        3: logging.DEBUG,
    }.get(args.verbose, logging.DEBUG)
    svdcodec.log.setLevel(log_level)

    if not hasattr(args, "_command"):
        top.print_usage()
        sys.exit(2)

    try:
        if args._command == "check":
            cmd_check(args)
        elif args._command == "format":
            cmd_format(args)
        else:
            top.print_usage()
            sys.exit(2)
    except svdcodec.SvdError as e:
        print(e, file=sys.stderr)
        sys.exit(1)

    sys.exit(0)


def _add_parse_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "svd_file",
        type=Path,
        help="Path to the device SVD file.",
    )
    parser.add_argument(
        "-l",
        "--level",
        choices=[level.value for level in svdcodec.ValidateLevel],
        default=svdcodec.ValidateLevel.WEAK.value,
        help="Validation level to use while parsing.",
    )
    parser.add_argument(
        "--resolve",
        action="store_true",
        help="Resolve derivedFrom references after parsing.",
    )
    parser.add_argument(
        "--expand",
        action="store_true",
        help="Expand every array element after parsing.",
    )
    parser.add_argument(
        "--ignore-enums",
        action="store_true",
        help="Skip enumerated values.",
    )


def _parse(args: argparse.Namespace) -> svdcodec.Device:
    options = svdcodec.Options(
        validate_level=svdcodec.ValidateLevel(args.level),
        resolve_derivations=args.resolve,
        expand=args.expand,
        ignore_enums=args.ignore_enums,
    )
    return svdcodec.parse(args.svd_file, options=options)


def cmd_check(args: argparse.Namespace) -> None:
    device = _parse(args)
    device.validate_all(svdcodec.ValidateLevel(args.level))
    print(f"{args.svd_file}: {device.name} OK ({len(device.peripherals)} peripherals)")


def cmd_format(args: argparse.Namespace) -> None:
    device = _parse(args)
    options = svdcodec.EncodeOptions(compact_arrays=args.compact)
    args.output_file.write(svdcodec.to_string(device, options))
    if args.output_file is not sys.stdout:
        args.output_file.close()


# Entry point when running with python -m svdcodec
if __name__ == "__main__":
    cli()
