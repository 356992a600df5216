#!/usr/bin/env python
"""
Command-line interface for the MRF builder.

Validate claim uploads and generate out-of-network allowed amount files.
"""

import argparse
import logging
import sys
from datetime import date, datetime
from pathlib import Path

from mrf_builder import (
    BatchParseError,
    EmptyInputError,
    MrfBuilder,
    ReportingConfig,
    load_config,
    write_document,
)
from mrf_builder.loader import read_claims_file


def _print_errors(result, limit):
    shown = 0
    for index, messages in sorted(result.errors_by_index.items()):
        if shown >= limit:
            print(f"  ... {result.error_count - shown} more row(s) with errors")
            break
        print(f"  Row {index + 1}:")
        for message in messages:
            print(f"    - {message}")
        shown += 1


def _load_records(path):
    try:
        return read_claims_file(path)
    except (FileNotFoundError, BatchParseError) as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        sys.exit(1)


def validate_file(args):
    """Validate a claims file and report errors by row."""
    records = _load_records(args.claims)
    builder = MrfBuilder(ReportingConfig(reject_unknown_fields=args.strict))

    try:
        result = builder.validator.validate_all(records)
    except BatchParseError as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        sys.exit(1)

    print("\n" + "=" * 60)
    print("CLAIMS VALIDATION RESULT")
    print("=" * 60)
    print(f"Records:  {result.total}")
    print(f"Valid:    {len(result.valid_records)}")
    print(f"Invalid:  {result.error_count}")
    print("=" * 60)

    if result.has_errors:
        print("\nErrors:")
        _print_errors(result, args.max_errors)
        print()
        sys.exit(1)

    print()


def generate_mrf(args):
    """Generate an MRF document from a claims file."""
    try:
        config = load_config(args.config) if args.config else ReportingConfig()
    except (FileNotFoundError, ValueError) as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        as_of = date.fromisoformat(args.as_of) if args.as_of else None
    except ValueError:
        print(f"\nERROR: Invalid --as-of date '{args.as_of}', expected YYYY-MM-DD", file=sys.stderr)
        sys.exit(1)

    records = _load_records(args.claims)

    builder = MrfBuilder(config)
    try:
        result, document = builder.build_from_records(records, as_of=as_of)
    except (BatchParseError, EmptyInputError) as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        sys.exit(1)

    if args.output:
        output = Path(args.output)
    else:
        timestamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S")
        output = Path(args.output_dir) / f"mrf-out-of-network-{timestamp}.json"
    write_document(document, output)

    print("\n" + "=" * 60)
    print("MRF GENERATION RESULT")
    print("=" * 60)
    print(f"Reporting Entity: {document.reporting_entity_name}")
    if document.plan_name:
        print(f"Plan:             {document.plan_name}")
    print(f"Last Updated On:  {document.last_updated_on}")
    print(f"Claims Used:      {len(result.valid_records)} of {result.total}")
    print(f"Billing Codes:    {len(document.out_of_network)}")
    print(f"Provider Entries: {document.provider_entry_count}")
    print(f"Output File:      {output}")
    print("=" * 60)

    if result.has_errors:
        print(f"\nSkipped {result.error_count} invalid row(s):")
        _print_errors(result, args.max_errors)

    print()


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Out-of-Network MRF Builder CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check a claims upload for errors
  %(prog)s validate claims.csv

  # Generate an MRF file with the default reporting configuration
  %(prog)s generate claims.csv --output mrf.json

  # Generate with a reporting configuration and a fixed as-of date
  %(prog)s generate claims.csv --config reporting.json --as-of 2025-01-01
        """
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    # Validate command
    validate_parser = subparsers.add_parser('validate', help='Validate a claims file')
    validate_parser.add_argument('claims', help='Claims file (.csv or .json)')
    validate_parser.add_argument('--strict', action='store_true', help='Report columns that are not claim fields')
    validate_parser.add_argument('--max-errors', type=int, default=20, help='Rows with errors to print (default: 20)')
    validate_parser.set_defaults(func=validate_file)

    # Generate command
    generate_parser = subparsers.add_parser('generate', help='Generate an MRF file')
    generate_parser.add_argument('claims', help='Claims file (.csv or .json)')
    generate_parser.add_argument('--config', help='Reporting configuration JSON file')
    generate_parser.add_argument('--output', help='Output file path')
    generate_parser.add_argument('--output-dir', default='data', help='Output directory when --output is not given (default: data)')
    generate_parser.add_argument('--as-of', help='Last updated date, YYYY-MM-DD (default: today)')
    generate_parser.add_argument('--max-errors', type=int, default=20, help='Rows with errors to print (default: 20)')
    generate_parser.set_defaults(func=generate_mrf)

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    if not args.command:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == '__main__':
    main()
