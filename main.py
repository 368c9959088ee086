"""
Main application entry point for the media catalog.

Runs headless on a Qt core event loop (via qasync) so the catalog
behaves exactly as it does inside a view: list, upload and delete.
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from PyQt6.QtCore import QCoreApplication
import qasync


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="media-catalog", description="Manage the media catalog")
    parser.add_argument("--base-dir", type=Path, default=None,
                        help="Data directory (default: ~/.media-catalog)")
    parser.add_argument("--add", type=Path, action="append", default=[], metavar="PATH",
                        help="Upload a photo or video; repeat for a batch")
    parser.add_argument("--title", action="append", default=[],
                        help="Title for the matching --add (may be empty)")
    parser.add_argument("--delete", action="append", default=[], metavar="ID",
                        help="Delete a record by id; repeat to delete several")
    parser.add_argument("--kind", choices=("photo", "video"), default=None,
                        help="Only list this kind")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args(argv)


def print_catalog(catalog, kind=None) -> None:
    counts = catalog.counts()
    print(f"Photos: {counts['photo']}  Videos: {counts['video']}")
    items = catalog.items(kind)
    if not items:
        print("No Media Available")
        return
    for item in items:
        preview = item.preview_uri or "(placeholder)"
        print(f"{item.id}  {item.kind:<5}  {item.title}  {preview}")


def delete_records(catalog, record_ids) -> bool:
    """Delete the given ids in one write. Unknown ids are reported and fail the run."""
    known = {r.id for r in catalog.records}
    ok = True
    catalog.clear_selection()
    for record_id in dict.fromkeys(record_ids):
        if record_id not in known:
            print(f"{record_id}: no such media item")
            ok = False
            continue
        catalog.toggle_select(record_id)
    if not catalog.selection:
        return ok
    result = catalog.delete_selected()
    print(result.message)
    return ok and result.ok


async def async_main(args: argparse.Namespace) -> int:
    """Async main function with Qt event loop integration"""
    from mediacatalog.core import CacheConfig, CoreContext
    from mediacatalog.core.database import DatabaseManager
    from mediacatalog.core.dto import UploadFile
    from mediacatalog.utils.logging_config import setup_logging

    cache = CacheConfig(args.base_dir)
    db = DatabaseManager(cache.database)
    db.connect()
    setup_logging(db, log_dir=cache.logs, root_level=getattr(logging, args.log_level.upper(), logging.INFO))
    logger = logging.getLogger(__name__)

    core = CoreContext(cache_config=cache, db=db)
    status = 0
    try:
        catalog = core.new_catalog()
        await catalog.load()

        if args.add:
            with core.open_upload_session() as session:
                entry = session.entries[0]
                for i, path in enumerate(args.add):
                    if i:
                        entry = session.add_slot()
                    title = args.title[i] if i < len(args.title) else ""
                    session.set_title(entry.id, title)
                    result = await session.set_file(entry.id, UploadFile.from_path(path))
                    if not result.ok:
                        print(f"{path}: {result.message}")
                result = session.commit()
                print(result.message)
                if not result.ok:
                    status = 1
            await catalog.load()

        if args.delete and not delete_records(catalog, args.delete):
            status = 1

        print_catalog(catalog, args.kind)
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        status = 1
    finally:
        core.shutdown()
    return status


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point"""
    args = parse_args(argv)

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    app.setApplicationName("Media Catalog")

    # Create event loop with Qt integration
    loop = qasync.QEventLoop(app)
    asyncio.set_event_loop(loop)

    with loop:
        return loop.run_until_complete(async_main(args))


if __name__ == "__main__":
    sys.exit(main())
