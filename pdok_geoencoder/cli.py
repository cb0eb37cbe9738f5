"""Geoencode a CSV of Dutch addresses (zip code + house number) with the PDOK Locatieserver.

Writes a GeoJSON FeatureCollection by default, or a copy of the CSV with
latitude/longitude and RD x/y columns added.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from pdok_geoencoder.common.config_loader import load_config, service_config_from
from pdok_geoencoder.common.constants import EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS
from pdok_geoencoder.common.errors import ConfigError, PipelineError
from pdok_geoencoder.common.http import TimeoutConfig
from pdok_geoencoder.common.ids import generate_run_id
from pdok_geoencoder.common.logging import build_logger, log_event
from pdok_geoencoder.common.models import PipelineOptions
from pdok_geoencoder.pipeline.driver import run_pipeline

EPILOG = """examples:
  pdok-geoencoder input.csv                          convert a CSV to GeoJSON
  pdok-geoencoder -z pc -n hn input.csv              name the address columns
  pdok-geoencoder -c -x longitude -y latitude in.csv write a new CSV
"""


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pdok-geoencoder",
        description=__doc__,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("file", help="CSV file to geoencode")
    parser.add_argument(
        "-z",
        "--zip",
        default=None,
        help='Input column holding the zip code. By default looks for "zip", "pc", "pc6" or "postal".',
    )
    parser.add_argument(
        "-n",
        "--housenumber",
        default=None,
        help='Input column holding the house number. By default "hn", "huisnummer", "house_number", "number" or "nmbr".',
    )
    parser.add_argument("-y", "--latitude", default=None, help='Output column for the latitude (default "lat").')
    parser.add_argument("-x", "--longitude", default=None, help='Output column for the longitude (default "lon").')
    parser.add_argument("-c", "--to-csv", action="store_true", help="Write a new CSV instead of GeoJSON.")
    parser.add_argument("-s", "--semicolon", action="store_true", help="Use ';' as output CSV delimiter.")
    parser.add_argument("-m", "--merge", action="store_true", help="Add all PDOK address attributes to the output.")
    parser.add_argument("-o", "--out", default=None, help="Output filename.")
    parser.add_argument("--config", default=None, help="YAML config file.")
    parser.add_argument("--overlay-config", default=None, help="YAML file merged over --config.")
    parser.add_argument("--checkpoint-every", type=int, default=None, help="Rows between partial writes.")
    parser.add_argument("--timeout", type=float, default=None, help="Read timeout per lookup in seconds.")
    parser.add_argument("--rate", type=float, default=None, help="Maximum lookups per second.")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    parser.add_argument("--log-dir", default=None)
    parser.add_argument("--run-id", default=None)
    return parser.parse_args(argv)


def build_options(args: argparse.Namespace, cfg: dict) -> PipelineOptions:
    service = service_config_from(cfg)
    if args.timeout is not None:
        service = replace(service, timeout=TimeoutConfig(connect=service.timeout.connect, read=args.timeout))
    if args.rate is not None:
        service = replace(service, rate_per_sec=args.rate)

    output = cfg["output"]
    checkpoint_every = args.checkpoint_every if args.checkpoint_every is not None else output["checkpoint_every"]
    if checkpoint_every <= 0:
        raise ConfigError("--checkpoint-every must be positive")

    return PipelineOptions(
        input_path=Path(args.file).resolve(),
        zip_field=args.zip,
        house_number_field=args.housenumber,
        latitude=args.latitude or output["latitude"],
        longitude=args.longitude or output["longitude"],
        to_csv=args.to_csv,
        semicolon=args.semicolon,
        merge=args.merge,
        out_path=Path(args.out).resolve() if args.out else None,
        checkpoint_every=checkpoint_every,
        zip_candidates=tuple(cfg["fields"]["zip_candidates"]),
        house_number_candidates=tuple(cfg["fields"]["house_number_candidates"]),
        extended_attributes=tuple(output["extended_attributes"]),
        service=service,
    )


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    logger = build_logger(run_id, log_dir=Path(args.log_dir) if args.log_dir else None, level=args.log_level)

    try:
        cfg = load_config(
            Path(args.config) if args.config else None,
            overlay_path=Path(args.overlay_config) if args.overlay_config else None,
        )
        options = build_options(args, cfg)
        result = run_pipeline(options, logger=logger, run_id=run_id)
    except PipelineError as exc:
        log_event(
            logger,
            str(exc),
            level=logging.ERROR,
            run_id=run_id,
            stage="run",
            event="RUN_FAIL",
            status="error",
            error_code=exc.error_code,
        )
        return EXIT_HARD_FAIL
    except OSError as exc:
        log_event(
            logger,
            f"I/O failure: {exc}",
            level=logging.ERROR,
            run_id=run_id,
            stage="run",
            event="RUN_FAIL",
            status="error",
            error_code="IO_ERROR",
        )
        return EXIT_HARD_FAIL

    if result.skipped_total:
        return EXIT_PARTIAL
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    return run_command(args)


if __name__ == "__main__":
    raise SystemExit(main())
