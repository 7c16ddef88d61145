#!/usr/bin/env python
"""Create the irradiance and plant tables and register the default dataset.

A dataset row must exist before ``etl.irradiance_import`` can load a version
into it, so the configured ``DEFAULT_DATASET_CODE`` is registered here along
with any extra ``--dataset`` codes.

Run from the repository root::

    python -m api.db.init_db [--drop] [--dataset CODE ...]
"""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

from api.config import settings

# Relative sqlite:/// paths are placed under INSTANCE_DIR.
_INSTANCE_DIR = Path(os.environ.get("INSTANCE_DIR", "/tmp/solar_pr/instance"))

if settings.DATABASE_URL.startswith("sqlite:///") and not settings.DATABASE_URL.startswith("sqlite:////"):
    _relative = Path(settings.DATABASE_URL.removeprefix("sqlite:///"))
    if not _relative.is_absolute():
        _INSTANCE_DIR.mkdir(parents=True, exist_ok=True)
        settings.DATABASE_URL = f"sqlite:///{_INSTANCE_DIR / _relative}"
        os.environ["DATABASE_URL"] = settings.DATABASE_URL

from api.db.client import DatabaseClient  # noqa: E402  engine is built on import
from api.db.models import Base  # noqa: E402
from api.db.session import engine  # noqa: E402

log = logging.getLogger("api.db.init_db")


def register_datasets(db: DatabaseClient, codes: list[str]) -> list[str]:
    """Insert a dataset row for every code not yet known; return the new codes."""
    created = []
    for code in dict.fromkeys(codes):
        if db.get_dataset_by_code(code) is None:
            db.add_dataset(code)
            created.append(code)
    return created


def init_db(drop: bool = False, dataset_codes: list[str] | None = None) -> None:
    if drop:
        log.warning("Dropping every table in %s", engine.url)
        Base.metadata.drop_all(bind=engine)

    Base.metadata.create_all(bind=engine)
    log.info("Tables ready in %s: %s", engine.url, ", ".join(sorted(Base.metadata.tables)))

    codes = [settings.DEFAULT_DATASET_CODE, *(dataset_codes or [])]
    created = register_datasets(DatabaseClient(), codes)
    if created:
        log.info("Registered dataset(s): %s", ", ".join(created))
    else:
        log.info("All dataset(s) already registered.")


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    parser = argparse.ArgumentParser(
        description="Initialise the irradiance / performance database.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--drop", action="store_true", help="Drop all existing tables first (DESTRUCTIVE).")
    parser.add_argument(
        "--dataset",
        action="append",
        default=[],
        metavar="CODE",
        help="Extra dataset code to register; may be repeated.",
    )
    args = parser.parse_args()
    init_db(drop=args.drop, dataset_codes=args.dataset)
