"""Command line entry point for organization and repository scans."""

import json
import logging
from argparse import ArgumentParser
from typing import List, Optional

from repo_inventory.config import settings
from repo_inventory.core.logging import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(description="Scan GitHub repositories into the technology inventory.")
    parser.add_argument("--org", default=settings.GITHUB_ORG, help="GitHub organization login.")
    parser.add_argument("--team", default=settings.GITHUB_TEAM_SLUG, help="Only scan this team's repositories.")
    parser.add_argument("--repo", help="Rescan a single repository by name.")
    parser.add_argument("--only-new", action="store_true", help="Skip repositories already in the inventory.")
    parser.add_argument(
        "--batch-size",
        type=int,
        default=settings.SCAN_BATCH_SIZE,
        help="Repositories scanned concurrently (1 = sequential).",
    )
    parser.add_argument("--queue", action="store_true", help="Enqueue the scan on Celery workers instead.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser


def cli(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    if not args.org:
        logger.error("No organization given (--org or GITHUB_ORG)")
        return 2

    from repo_inventory.services.inventory_scan_service import InventoryScanService

    if args.queue:
        task_id = InventoryScanService.enqueue_org_scan(
            args.org, team_slug=args.team, only_new=args.only_new
        )
        print(json.dumps({"org": args.org, "task_id": task_id}))
        return 0

    from repo_inventory.database.mongo import get_database
    from repo_inventory.repositories.repo_inventory import RepoInventoryRepository
    from repo_inventory.services.github.github_client import get_github_client

    store = RepoInventoryRepository(get_database())

    with get_github_client() as github:
        service = InventoryScanService(github, store)
        if args.repo:
            outcome = service.rescan_repo(args.org, args.repo)
            print(json.dumps(outcome.model_dump(), indent=2))
            return 0 if outcome.status == "success" else 1

        if args.only_new:
            report = service.scan_new_repos(args.org, args.team, args.batch_size)
        else:
            report = service.scan_org(args.org, args.team, args.batch_size)

    print(json.dumps(report.summary(), indent=2))
    return 0 if report.failed == 0 else 1


if __name__ == "__main__":
    raise SystemExit(cli())
