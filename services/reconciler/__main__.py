#!/usr/bin/env python3
"""
Inventory Reconciler - sync every configured vendor feed into vendor_products.

Usage:
    # Sync all vendors
    python -m services.reconciler

    # Only Wholecell vendors, compute plans without writing
    python -m services.reconciler --adapter wholecell --dry-run

    # Check that MongoDB is reachable
    python -m services.reconciler --ping
"""
import argparse
import asyncio
import json
import sys
import uuid

from core.config import load_config
from core.database import close_db, get_db, ping_db
from core.logging import get_logger
from services.reconciler.feeds import FEED_ADAPTERS
from services.reconciler.orchestrator import sync_vendors

logger = get_logger("reconciler")


async def run(args: argparse.Namespace) -> int:
    config = load_config()
    session_id = str(uuid.uuid4())[:8]

    logger.info("=" * 60)
    logger.info("VENDORSYNC - INVENTORY RECONCILER")
    logger.info("=" * 60)
    logger.info(
        "Starting reconciliation session",
        extra={"session_id": session_id, "adapter": args.adapter, "dry_run": args.dry_run},
    )

    try:
        if args.ping:
            await ping_db(config)
            print(json.dumps({"ok": True, "database": config.DATABASE_NAME}))
            return 0

        report = await sync_vendors(
            config,
            get_db(config),
            adapter=args.adapter,
            dry_run=True if args.dry_run else None,
        )
    except Exception:
        logger.critical("Sync error", exc_info=True, extra={"session_id": session_id})
        print(json.dumps({"error": "Failed to sync vendors"}))
        return 1
    finally:
        await close_db()

    print(json.dumps(report, indent=2, default=str))
    return 0


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Vendor Inventory Reconciler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Full sync across all configured vendors
  python -m services.reconciler

  # Scoped sync for one adapter class
  python -m services.reconciler --adapter wholecell

  # Plan only, no writes
  python -m services.reconciler --dry-run
        """,
    )
    parser.add_argument(
        "--adapter",
        choices=sorted(FEED_ADAPTERS),
        help="Only sync vendors using this adapter",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Compute and report the plan without writing to the database",
    )
    parser.add_argument(
        "--ping",
        action="store_true",
        help="Check database connectivity and exit",
    )

    args = parser.parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
