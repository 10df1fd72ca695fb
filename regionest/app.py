import argparse
import json
from dataclasses import replace
from pathlib import Path

from .env import load_env

from . import __version__
from .cleanup import purge_stale_entries
from .estimator import RegionEstimator
from .logger import get_logger
from .schema import coerce_estimate_params, validate_estimate_params
from .settings import Settings


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    cache_db = getattr(args, "cache_db", None)
    if cache_db:
        settings = replace(settings, cache_db=Path(cache_db))
    return settings


def cmd_estimate(args: argparse.Namespace) -> None:
    params = {
        "region": args.region,
        "minAge": args.min_age,
        "maxAge": args.max_age,
        "hensachi": args.hensachi,
    }
    errors = validate_estimate_params(params)
    if errors:
        print("Invalid:")
        for e in errors:
            print(f" - {e}")
        raise SystemExit(2)

    estimator = RegionEstimator.from_settings(_settings(args))
    result = estimator.estimate(**coerce_estimate_params(params))
    _print_json(result.to_dict())
    if args.metrics:
        get_logger().log_metrics_summary()


def cmd_regions(args: argparse.Namespace) -> None:
    estimator = RegionEstimator.from_settings(_settings(args))
    _print_json(estimator.suggest_regions(args.query))


def cmd_cleanup(args: argparse.Namespace) -> None:
    settings = _settings(args)
    if settings.cache_db is None:
        raise SystemExit("No cache database configured. Pass --cache-db or set REGIONEST_CACHE_DB.")
    before, after = purge_stale_entries(settings.cache_db, ttl=settings.cache_ttl)
    print(f"Done. before={before} removed={before - after} remaining={after}")


def main():
    # Load .env if present (REGIONEST_SPARQL_ENDPOINT, REGIONEST_CACHE_DB, etc.)
    load_env()
    parser = argparse.ArgumentParser(prog="regionest", description="Estimate demographic subsets for Japanese place names")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")
    est = subparsers.add_parser("estimate", help="Estimate the male population of a region within an age range")
    est.add_argument("--region", required=True, help="Place name, e.g. 渋谷区 or 東京都渋谷区")
    est.add_argument("--min-age", help="Lower age bound (default: 18)")
    est.add_argument("--max-age", help="Upper age bound (default: 35)")
    est.add_argument("--hensachi", help="Selectivity score, mean 50 / sd 10 (optional)")
    est.add_argument("--cache-db", help="SQLite cache path (default: REGIONEST_CACHE_DB or in-memory)")
    est.add_argument("--metrics", action="store_true", help="Log query and cache metrics after the estimate")
    est.set_defaults(func=cmd_estimate)

    reg = subparsers.add_parser("regions", help="Suggest region names matching a query")
    reg.add_argument("--query", required=True, help="Partial place name")
    reg.add_argument("--cache-db", help="SQLite cache path (default: REGIONEST_CACHE_DB or in-memory)")
    reg.set_defaults(func=cmd_regions)

    cln = subparsers.add_parser("cleanup", help="Purge expired entries from the SQLite cache")
    cln.add_argument("--cache-db", help="SQLite cache path (default: REGIONEST_CACHE_DB)")
    cln.set_defaults(func=cmd_cleanup)

    args = parser.parse_args()

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
