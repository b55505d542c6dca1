"""Find and remove unused images from the media store.

Usage:
    python -m storefront.jobs.media_cleanup [--dry-run] [--verbose]
"""
import argparse
import logging

from sqlmodel import Session

from storefront.config import settings
from storefront.database import engine
from storefront.services.media_service import cleanup_unused_images, get_blob_store

logger = logging.getLogger(__name__)


def run(dry_run: bool = False, verbose: bool = False):
    store = get_blob_store()

    with Session(engine) as session:
        result = cleanup_unused_images(session, store, dry_run=dry_run)

    if verbose:
        for name in result.orphans:
            logger.info(f"  unused: {name}")

    if dry_run:
        logger.info(f"Dry run complete. Would have deleted {len(result.orphans)} files.")
    else:
        logger.info(f"Cleanup complete: {result.removed} files deleted, {result.errors} errors")
    return result


def main(argv=None):
    parser = argparse.ArgumentParser(description="Remove media files no record references")
    parser.add_argument("--dry-run", action="store_true", help="only report what would be deleted")
    parser.add_argument("--verbose", action="store_true", help="list every unused file")
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(message)s")
    result = run(dry_run=args.dry_run, verbose=args.verbose)
    return 1 if result.errors else 0


if __name__ == "__main__":
    raise SystemExit(main())
