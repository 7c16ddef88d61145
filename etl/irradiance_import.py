"""ETL job: import a monthly irradiance grid CSV as a new dataset version.

The CSV needs latitude/longitude columns (``lat``/``latitude``,
``lon``/``lng``/``longitude``) and one column per month, named ``m01``..``m12``
or ``jan``..``dez``.  Optional ``dhi_m01``..``dhi_m12`` columns carry diffuse
irradiance.  Either ``;`` or ``,`` separates fields; decimal commas are
accepted when ``;`` is the separator.

On success the new version becomes ``active``, every other active version
of the dataset is ``retired`` and the lookup cache rows of retired versions
are purged.

Run from the repository root::

    python -m etl.irradiance_import --dataset INPE_2017_SUNDATA --tag 2017.1 grid.csv
"""

from __future__ import annotations

import csv
import hashlib
import io
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from api.db.client import DatabaseClient
from api.services.dataset_resolver import DatasetNotFoundError
from lib.constants import IRRADIANCE_UNIT, MONTH_KEYS

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

log = logging.getLogger("etl.irradiance_import")

_BATCH_SIZE = 500

_LAT_HEADERS = ("lat", "latitude")
_LON_HEADERS = ("lon", "lng", "longitude")
_PT_MONTHS = ("jan", "fev", "mar", "abr", "mai", "jun", "jul", "ago", "set", "out", "nov", "dez")


class ImportFormatError(Exception):
    def __init__(self, message: str, header: list[str]) -> None:
        self.header = header
        super().__init__(message)


@dataclass
class ImportSummary:
    version_id: int
    row_count: int
    checksum: str
    retired_version_ids: list[int]
    purged_cache_rows: int


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _parse_number(raw: str) -> Optional[float]:
    try:
        return float(raw.strip().replace(",", "."))
    except (ValueError, AttributeError):
        return None


def _find_column(header: list[str], names: tuple[str, ...]) -> int:
    for i, h in enumerate(header):
        if h in names:
            return i
    return -1


def parse_grid_csv(text: str) -> list[dict]:
    """Parse CSV text into point rows (without ``version_id``).

    Rows with unparseable coordinates are skipped; a missing or unparseable
    month value becomes 0.

    Raises:
        ImportFormatError: if the header has no latitude or longitude column.
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        raise ImportFormatError("CSV is empty", [])

    separator = ";" if ";" in lines[0] else ","
    reader = csv.reader(io.StringIO("\n".join(lines)), delimiter=separator)
    header = [h.strip().lower() for h in next(reader)]

    lat_idx = _find_column(header, _LAT_HEADERS)
    lon_idx = _find_column(header, _LON_HEADERS)
    if lat_idx < 0 or lon_idx < 0:
        raise ImportFormatError("CSV must have lat and lon columns", header)

    ghi_idx = [_find_column(header, (key, _PT_MONTHS[i])) for i, key in enumerate(MONTH_KEYS)]
    dhi_idx = [_find_column(header, (f"dhi_{key}",)) for key in MONTH_KEYS]

    rows: list[dict] = []
    for cols in reader:
        if len(cols) < 2:
            continue
        lat = _parse_number(cols[lat_idx]) if lat_idx < len(cols) else None
        lon = _parse_number(cols[lon_idx]) if lon_idx < len(cols) else None
        if lat is None or lon is None:
            continue

        row: dict = {"latitude": lat, "longitude": lon, "unit": IRRADIANCE_UNIT}
        for key, idx in zip(MONTH_KEYS, ghi_idx):
            value = _parse_number(cols[idx]) if 0 <= idx < len(cols) else None
            row[key] = value if value is not None else 0.0
        for key, idx in zip(MONTH_KEYS, dhi_idx):
            row[f"dhi_{key}"] = _parse_number(cols[idx]) if 0 <= idx < len(cols) else None
        rows.append(row)

    return rows


def checksum_rows(rows: list[dict]) -> str:
    parts = [
        ":".join([str(r["latitude"]), str(r["longitude"])] + [str(r[k]) for k in MONTH_KEYS])
        for r in rows
    ]
    return hashlib.sha256("|".join(parts).encode()).hexdigest()


# ---------------------------------------------------------------------------
# Core ETL logic
# ---------------------------------------------------------------------------


def run(
    csv_text: str,
    dataset_code: str,
    version_tag: str,
    db: DatabaseClient | None = None,
) -> ImportSummary:
    db = db or DatabaseClient()

    dataset = db.get_dataset_by_code(dataset_code)
    if dataset is None:
        raise DatasetNotFoundError(dataset_code)

    version = db.add_version(dataset.id, version_tag, status="processing")
    log.info("Importing %s version %r as id=%s", dataset_code, version_tag, version.id)

    try:
        rows = parse_grid_csv(csv_text)
    except ImportFormatError:
        db.update_version(version.id, status="failed")
        raise

    for start in range(0, len(rows), _BATCH_SIZE):
        batch = rows[start:start + _BATCH_SIZE]
        db.insert_points_bulk([{**r, "version_id": version.id} for r in batch])
    log.info("  Inserted %d point(s).", len(rows))

    checksum = checksum_rows(rows)
    db.update_version(version.id, status="active", row_count=len(rows), checksum_sha256=checksum)

    retired = db.retire_other_versions(dataset.id, keep_version_id=version.id)
    purged = db.delete_lookup_cache_for_versions(retired)
    if retired:
        log.info("  Retired version(s) %s; purged %d cache row(s).", retired, purged)

    log.info("Import complete: %d row(s), checksum=%s", len(rows), checksum[:16])
    return ImportSummary(
        version_id=version.id,
        row_count=len(rows),
        checksum=checksum,
        retired_version_ids=retired,
        purged_cache_rows=purged,
    )


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    parser = argparse.ArgumentParser(
        description="Import a monthly irradiance grid CSV as a new dataset version."
    )
    parser.add_argument("csv_path", help="Path to the grid CSV")
    parser.add_argument("--dataset", required=True, help="Dataset code, e.g. INPE_2017_SUNDATA")
    parser.add_argument("--tag", required=True, help="Version tag for this import")
    args = parser.parse_args()

    try:
        text = Path(args.csv_path).read_text(encoding="utf-8-sig")
        run(csv_text=text, dataset_code=args.dataset, version_tag=args.tag)
    except Exception as exc:
        log.exception("Irradiance import failed: %s", exc)
        sys.exit(1)
