#!/usr/bin/env python3
"""Run the file version retention sweep once, outside of Celery Beat.

Usage:
    # Show which files would be trimmed:
    uv run python scripts/cleanup_versions.py --dry-run

    # Keep 5 newest versions per file:
    uv run python scripts/cleanup_versions.py --max-versions 5

Environment variables:
    VERSIONING_MAX_VERSIONS_PER_FILE - Default for --max-versions.
    DATABASE_*                       - Connection settings (see .env.example).
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from pathlib import Path


def _setup_path() -> None:
    project_root = Path(__file__).resolve().parent.parent
    sys.path.insert(0, str(project_root))
    os.chdir(project_root)

    from dotenv import load_dotenv

    load_dotenv()


async def _run(max_versions: int, dry_run: bool) -> int:
    from api.repositories.file_repos import FileVersionRepository
    from api.services.versioning_service import build_versioning_service
    from database import DatabaseConfig, DatabaseManager

    manager = DatabaseManager(DatabaseConfig.from_env())

    print("=== File Version Cleanup ===")
    print(f"  Mode: {'DRY-RUN' if dry_run else 'EXECUTE'}")
    print(f"  Database: {manager.config.host}:{manager.config.port}/{manager.config.database}")
    print(f"  Keep per file: {max_versions}")
    print()

    try:
        async with manager.async_session() as session:
            if dry_run:
                repo = FileVersionRepository(session)
                file_ids = await repo.get_file_ids_exceeding(max_versions)
                total = 0
                for file_id in file_ids:
                    excess = len(await repo.list_by_file(file_id)) - max_versions
                    print(f"  [file {file_id}] would delete {excess} version(s)")
                    total += excess
                print()
                print(f"Done: {total} version(s) in {len(file_ids)} file(s) would be deleted")
                return total

            service = build_versioning_service(session, session_maker=manager.async_session)
            deleted = await service.cleanup_old_versions(max_versions)
            print(f"Done: {deleted} version(s) deleted")
            return deleted
    finally:
        await manager.close()


def main() -> None:
    from config.settings import get_settings

    parser = argparse.ArgumentParser(description="Delete the oldest versions of files over the retention limit")
    parser.add_argument(
        "--max-versions",
        type=int,
        default=get_settings().versioning.max_versions_per_file,
        help="Versions to keep per file",
    )
    parser.add_argument("--dry-run", action="store_true", help="Read-only mode")
    args = parser.parse_args()

    if args.max_versions < 0:
        parser.error("--max-versions must be >= 0")

    asyncio.run(_run(args.max_versions, args.dry_run))


if __name__ == "__main__":
    _setup_path()
    main()
