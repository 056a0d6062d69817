#!/usr/bin/env python3
"""
CLI for valuations and valuation PDF reports.

Usage:
    python -m reporting.cli value <attributes_json>
    python -m reporting.cli report <report_token>

Examples:
    # Value a property described by a wizard JSON file
    python -m reporting.cli value property.json

    # Write the PDF for a saved valuation
    python -m reporting.cli report Xb3k9Qw2LmN8pR4tV6yZ1a
"""

import argparse
import json
import sys
from pathlib import Path

from core.storage import ValuationRepository, get_client_repository
from core.valuation import PropertyAttributes, ValuationEngine
from utils.config import Config, configure_logging
from utils.formatting import format_price, format_price_range

from .valuation_report import generate_report


def cmd_value(args):
    """Value the property described in a JSON attributes file."""
    input_path = Path(args.attributes_file)

    if not input_path.exists():
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1

    try:
        data = json.loads(input_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON: {e}", file=sys.stderr)
        return 1

    if not isinstance(data, dict):
        print("Error: Attributes must be a JSON object", file=sys.stderr)
        return 1

    attributes = PropertyAttributes.from_dict(data)
    result = ValuationEngine(reference_year=args.year).compute(attributes)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return 0

    print(f"Valor estimado: {format_price(result.estimated)}")
    print(f"Rango:          {format_price_range(result.conservative, result.optimistic)}")
    print(f"Precio por m²:  {format_price(result.price_per_area)}/m²")
    print(f"Fiabilidad:     {result.confidence}%")
    return 0


def cmd_report(args):
    """Generate the PDF for a saved valuation."""
    config = Config.load()
    repository = ValuationRepository(persist_path=config.valuations_path)

    valuation = repository.get_by_token(args.token)
    if valuation is None:
        print(f"Error: No valuation for token: {args.token}", file=sys.stderr)
        return 1

    client = get_client_repository(config.clients_path).get_by_id(valuation.client_id)
    result = generate_report(valuation, client, output_dir=args.output_dir)

    print(f"Report generated: {result.path}")
    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Valorador Online - valuation and report tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m reporting.cli value property.json
    python -m reporting.cli report <report_token>

Output:
    Reports are saved to: reports/valoracion-<report_token>.pdf
        """,
    )
    parser.add_argument("--log-level", default="WARNING")

    subparsers = parser.add_subparsers(dest="command", required=True)

    value_parser = subparsers.add_parser(
        "value",
        help="Value a property from a JSON attributes file",
    )
    value_parser.add_argument("attributes_file", help="Path to JSON attributes file")
    value_parser.add_argument("--year", type=int, default=None, help="Reference year for building age")
    value_parser.add_argument("--json", action="store_true", help="Print the raw result as JSON")
    value_parser.set_defaults(func=cmd_value)

    report_parser = subparsers.add_parser(
        "report",
        help="Generate the PDF for a saved valuation",
    )
    report_parser.add_argument("token", help="Public report token")
    report_parser.add_argument("--output-dir", type=Path, default=None)
    report_parser.set_defaults(func=cmd_report)

    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
