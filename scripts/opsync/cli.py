"""CLI entry point: sync, status, init-db, rfds, generate-links, notify."""

from __future__ import annotations

import argparse
import logging
import sys

from scripts.opsync.config import load_config
from scripts.opsync.db import Database
from scripts.opsync.logging_config import configure_logging

logger = logging.getLogger("opsync.cli")

CHANNEL_CHOICES = ["hiring", "public_relations"]


def _job_choices() -> list[str]:
    from scripts.opsync.jobs import JOB_REGISTRY

    return ["all", *JOB_REGISTRY]


def run_jobs(names: list[str], config, db: Database, write_back: bool = False) -> dict[str, int]:
    """Run the named jobs in order, stopping at the first failure."""
    from scripts.opsync.jobs import SoftwareVendorsJob, get_job

    results: dict[str, int] = {}
    for name in names:
        kwargs = {}
        if name == SoftwareVendorsJob.JOB_NAME:
            kwargs["write_back"] = write_back
        job = get_job(name, config, db, **kwargs)
        logger.info("Starting sync for %s", name)
        job_results = job.run_with_tracking()
        logger.info("Sync results for %s: %s", name, job_results)
        results.update(job_results)
    return results


def cmd_sync(args: argparse.Namespace) -> None:
    """Run one-shot sync for the specified job(s)."""
    from scripts.opsync.jobs import JOB_REGISTRY
    from scripts.opsync.notify import build_sync_summary, post_to_channel

    config = load_config()
    db = Database(config.database)
    try:
        names = list(JOB_REGISTRY) if args.job == "all" else [args.job]
        results = run_jobs(names, config, db, write_back=args.write_back)
    finally:
        db.close()

    if args.notify:
        post_to_channel(
            config.slack.channel_post_url(args.notify),
            build_sync_summary(args.job, results),
        )


def cmd_status(args: argparse.Namespace) -> None:
    """Show recent sync runs."""
    config = load_config()
    db = Database(config.database)
    try:
        runs = db.get_recent_runs(
            job=args.job if args.job != "all" else None,
            limit=args.limit,
        )
    finally:
        db.close()

    if not runs:
        print("No sync runs found.")
        return

    fmt = "{:<36}  {:<18}  {:<8}  {:<20}  {:<20}  {:>8}  {}"
    print(fmt.format("RUN ID", "JOB", "STATUS", "STARTED", "FINISHED", "UPSERTED", "ERROR"))
    print("-" * 140)
    for r in runs:
        started = str(r["started_at"])[:19] if r["started_at"] else ""
        finished = str(r["finished_at"])[:19] if r["finished_at"] else ""
        error = (r.get("error_message") or "")[:40]
        print(fmt.format(
            str(r["id"])[:36],
            r["job"],
            r["status"],
            started,
            finished,
            r.get("records_upserted", 0),
            error,
        ))


def cmd_init_db(args: argparse.Namespace) -> None:
    """Create the local store tables."""
    config = load_config()
    db = Database(config.database)
    try:
        db.apply_schema()
    finally:
        db.close()


def cmd_rfds(args: argparse.Namespace) -> None:
    """List the RFDs in the org's rfd repository index."""
    from scripts.opsync.clients.github import GitHubClient
    from scripts.opsync.files import load_rfds

    config = load_config()
    for number, rfd in load_rfds(GitHubClient(config.github)).items():
        print(f"{number:>4}  {rfd.state:<12}  {rfd.title}")


def cmd_generate_links(args: argparse.Namespace) -> None:
    """Render the [links] table of the config files to a generated file."""
    from scripts.opsync.files import load_config_files, render_links, write_file

    write_file(args.output, render_links(load_config_files(args.file)))


def cmd_notify(args: argparse.Namespace) -> None:
    """Post a text message to a Slack channel webhook."""
    from scripts.opsync.notify import post_to_channel

    config = load_config()
    post_to_channel(config.slack.channel_post_url(args.channel), {"text": args.text})


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="opsync",
        description="Airtable / SaaS business-operations sync jobs",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser("sync", help="Run one-shot sync")
    sync_parser.add_argument(
        "--job", "-j",
        choices=_job_choices(),
        default="all",
        help="Job to run (default: all)",
    )
    sync_parser.add_argument(
        "--write-back",
        action="store_true",
        help="Mirror computed vendor seat counts back to Airtable",
    )
    sync_parser.add_argument(
        "--notify",
        choices=CHANNEL_CHOICES,
        help="Post a summary to this Slack channel when done",
    )
    sync_parser.set_defaults(func=cmd_sync)

    status_parser = subparsers.add_parser("status", help="Show recent sync runs")
    status_parser.add_argument(
        "--job", "-j",
        choices=_job_choices(),
        default="all",
        help="Filter by job",
    )
    status_parser.add_argument(
        "--limit", "-l",
        type=int,
        default=10,
        help="Number of runs to show (default: 10)",
    )
    status_parser.set_defaults(func=cmd_status)

    init_parser = subparsers.add_parser("init-db", help="Create the local store tables")
    init_parser.set_defaults(func=cmd_init_db)

    rfds_parser = subparsers.add_parser("rfds", help="List RFDs from the rfd repository")
    rfds_parser.set_defaults(func=cmd_rfds)

    links_parser = subparsers.add_parser("generate-links", help="Generate the short-link map")
    links_parser.add_argument(
        "--file", "-f",
        action="append",
        required=True,
        help="Config file to read; repeat for several, read in order",
    )
    links_parser.add_argument("--output", "-o", required=True, help="File to write")
    links_parser.set_defaults(func=cmd_generate_links)

    notify_parser = subparsers.add_parser("notify", help="Post a message to a Slack channel")
    notify_parser.add_argument("--channel", "-c", choices=CHANNEL_CHOICES, required=True)
    notify_parser.add_argument("text")
    notify_parser.set_defaults(func=cmd_notify)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point. Any failure is logged and exits with status 1."""
    configure_logging()
    args = build_parser().parse_args(argv)
    try:
        args.func(args)
    except Exception as exc:
        logger.error("%s failed: %s", args.command, exc, exc_info=True)
        sys.exit(1)
