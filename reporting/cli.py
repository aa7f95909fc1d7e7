#!/usr/bin/env python3
"""
CLI for parsing comp exports and generating valuation reports.

Usage:
    python -m reporting.cli parse <comps_csv>
    python -m reporting.cli value <comps_csv> <subject_json> [options]

Examples:
    # Check how an MLS export is read
    python -m reporting.cli parse exports/comps.csv

    # Value a subject with ridge regression, no time adjustment
    python -m reporting.cli value exports/comps.csv subject.json --model ridge --no-time
"""

import argparse
import json
import sys
from pathlib import Path

from core.comp_engine.models import ModelType, RegressionConfig
from core.errors import MalformedInputError, ValidationError, ValuationError
from core.ingestion.csv_parser import parse_csv
from core.subject.geocoding import GeocodingClient, attach_coordinates
from core.subject.validator import validate_subject_property
from utils.config import Config, configure_logging
from utils.formatting import format_currency, format_percent

from .assembler import generate_report


def _read_text(path: Path) -> str:
    with open(path, "r", encoding="utf-8-sig") as f:
        return f.read()


def _print_json(data: dict) -> None:
    print(json.dumps(data, indent=2))


def build_config(args, config: Config) -> RegressionConfig:
    """Regression config from CLI flags layered over environment defaults."""
    defaults = config.default_regression_config()
    model_type = ModelType.from_string(args.model) if args.model else defaults.model_type
    return RegressionConfig(
        model_type=model_type,
        include_time_adjustment=defaults.include_time_adjustment and not args.no_time,
        include_distance_adjustment=defaults.include_distance_adjustment and not args.no_distance,
        min_comps=args.min_comps if args.min_comps is not None else defaults.min_comps,
        max_comps=args.max_comps if args.max_comps is not None else defaults.max_comps,
        outlier_threshold=args.outlier_threshold,
        regularization=args.regularization,
    )


def cmd_parse(args, config: Config) -> int:
    """Parse a comps CSV and print the normalised result."""
    input_path = Path(args.comps_csv)
    if not input_path.exists():
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1

    result = parse_csv(_read_text(input_path))
    _print_json(result.to_dict())
    return 0 if result.success else 1


def cmd_value(args, config: Config) -> int:
    """Value a subject against a comps CSV and print the report."""
    comps_path = Path(args.comps_csv)
    subject_path = Path(args.subject_json)
    for path in (comps_path, subject_path):
        if not path.exists():
            print(f"Error: File not found: {path}", file=sys.stderr)
            return 1

    try:
        subject_data = json.loads(_read_text(subject_path))
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON: {e}", file=sys.stderr)
        return 1

    try:
        regression_config = build_config(args, config)

        parsed = parse_csv(_read_text(comps_path))
        if not parsed.success:
            raise MalformedInputError(parsed.errors, parsed.warnings)

        validation = validate_subject_property(subject_data)
        if not validation.valid:
            raise ValidationError(validation.errors, message="Subject property failed validation")

        subject = validation.normalized
        if args.geocode:
            geocoder = GeocodingClient(config.google_maps_api_key, timeout=config.geocode_timeout)
            subject = attach_coordinates(subject, geocoder)

        report = generate_report(subject, parsed.comps, regression_config)
    except ValuationError as e:
        _print_json({"success": False, "error": e.to_dict()})
        return 1
    except ValueError as e:
        print(f"Error: Invalid options: {e}", file=sys.stderr)
        return 1

    _print_json({"success": True, "report": report.to_dict()})

    valuation = report.valuation
    print(
        f"{subject.address}: {format_currency(valuation.estimated_value)} "
        f"({format_currency(valuation.value_range.low)} - "
        f"{format_currency(valuation.value_range.high)}), "
        f"grade {valuation.confidence_grade.value}, "
        f"R2 {format_percent(report.regression.metrics.r_squared)}",
        file=sys.stderr,
    )
    return 0


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Comparable sales regression valuation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m reporting.cli parse exports/comps.csv
    python -m reporting.cli value exports/comps.csv subject.json --model ridge

Output:
    JSON on stdout; a one-line summary on stderr for 'value'
        """,
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Parse command
    parse_parser = subparsers.add_parser(
        "parse",
        help="Parse and normalise a comps CSV",
    )
    parse_parser.add_argument("comps_csv", help="Path to comps CSV export")
    parse_parser.set_defaults(func=cmd_parse)

    # Value command
    value_parser = subparsers.add_parser(
        "value",
        help="Value a subject property against a comps CSV",
    )
    value_parser.add_argument("comps_csv", help="Path to comps CSV export")
    value_parser.add_argument("subject_json", help="Path to subject property JSON")
    value_parser.add_argument(
        "--model",
        choices=[m.value for m in ModelType],
        help="Regression model (default from DEFAULT_MODEL_TYPE)",
    )
    value_parser.add_argument("--no-time", action="store_true", help="Disable the time adjustment")
    value_parser.add_argument(
        "--no-distance", action="store_true", help="Disable the distance adjustment"
    )
    value_parser.add_argument("--min-comps", type=int, help="Minimum comps required")
    value_parser.add_argument("--max-comps", type=int, help="Maximum comps used")
    value_parser.add_argument(
        "--outlier-threshold", type=float, help="Outlier cut-off in standard deviations"
    )
    value_parser.add_argument("--regularization", type=float, help="Ridge penalty strength")
    value_parser.add_argument(
        "--geocode",
        action="store_true",
        help="Look up subject coordinates (needs GOOGLE_MAPS_API_KEY)",
    )
    value_parser.set_defaults(func=cmd_value)

    args = parser.parse_args(argv)

    config = Config.load()
    configure_logging(config.log_level)
    return args.func(args, config)


if __name__ == "__main__":
    sys.exit(main())
