"""Main CLI entry point."""

import argparse
import json
import logging
import sys
from pathlib import Path


def main(argv: list[str] | None = None) -> None:
    """Parse args and dispatch to subcommands."""
    parser = argparse.ArgumentParser(
        prog="lead-ingest",
        description="Ingest Bayut and Dubizzle leads into CRM deals",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Debug logging (includes fetched payloads and deal fields)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # run
    run_parser = subparsers.add_parser("run", help="Fetch new leads and create deals")
    run_parser.add_argument(
        "--config",
        type=Path,
        required=True,
        help="Path to settings YAML",
    )
    run_parser.add_argument(
        "--since",
        type=str,
        default=None,
        help="Override the `timestamp` lower bound sent to the leads API",
    )
    run_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the run summary JSON to file (default: stdout)",
    )

    # store
    store_parser = subparsers.add_parser("store", help="Inspect the processed-lead store")
    store_parser.add_argument(
        "action",
        choices=["count", "list"],
        help="Show count or list processed lead ids",
    )
    store_parser.add_argument(
        "--config",
        type=Path,
        required=True,
        help="Path to settings YAML",
    )
    store_parser.add_argument(
        "--limit",
        type=int,
        default=50,
        help="Max records for list (default: 50)",
    )

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if args.command == "run":
        _run_ingest(args)
    elif args.command == "store":
        _run_store(args)
    else:
        parser.print_help()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _load_settings(path: Path):
    from lead_ingest.models.settings import Settings

    if not path.exists():
        raise SystemExit(f"Config file not found: {path}")
    return Settings.from_yaml(path).with_env_overrides()


def _run_ingest(args: argparse.Namespace) -> None:
    """Run ingest command."""
    from lead_ingest.errors import ConfigurationError
    from lead_ingest.pipeline import build_processor

    settings = _load_settings(args.config)
    if args.since:
        settings = settings.model_copy(update={"since": args.since})

    try:
        processor = build_processor(settings)
    except ConfigurationError as e:
        raise SystemExit(f"Configuration error: {e}")

    summary = processor.run()
    output = json.dumps(summary.to_dict(), indent=2)

    if args.output:
        args.output.write_text(output, encoding="utf-8")
        print(
            f"Created {summary.created} deals, skipped {summary.duplicates} duplicates, "
            f"{summary.failed} failed (wrote to {args.output})"
        )
    else:
        print(output)


def _run_store(args: argparse.Namespace) -> None:
    """Run store command."""
    from lead_ingest.store import SqliteLeadStore, open_store

    settings = _load_settings(args.config)
    store = open_store(settings.store)

    if args.action == "count":
        print(store.count() if isinstance(store, SqliteLeadStore) else len(store))
    elif args.action == "list":
        if isinstance(store, SqliteLeadStore):
            rows = [
                {
                    "lead_id": r.lead_id,
                    "platform": r.platform,
                    "lead_type": r.lead_type,
                    "deal_id": r.deal_id,
                    "processed_at": r.processed_at.isoformat(),
                }
                for r in store.list_recent(args.limit)
            ]
        else:
            rows = [{"lead_id": lead_id} for lead_id in sorted(store.load())[: args.limit]]
        print(json.dumps(rows, indent=2))


if __name__ == "__main__":
    main(sys.argv[1:])
