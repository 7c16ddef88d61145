"""Periodic job: recompute month-to-date Performance Ratio for every plant.

Results are logged, not persisted; the PR record is recomputed on every
run.  Alert classification needs rolling history that this job does not
keep, so it is left to downstream consumers.

Run from the repository root::

    python -m etl.performance [--date YYYY-MM-DD]
"""

from __future__ import annotations

import logging
import sys
from collections import Counter
from datetime import date

from api.services.performance_ratio import PerformanceRatioService

log = logging.getLogger("etl.performance")


def run(target_date: date | None = None, service: PerformanceRatioService | None = None) -> Counter:
    target_date = target_date or date.today()
    service = service or PerformanceRatioService()

    log.info("Running PR job as of %s", target_date.isoformat())
    results = service.get_stored_performance_ratios(as_of=target_date)
    if not results:
        log.warning("No plants found, nothing to do.")
        return Counter()

    for row in results:
        if row.pr_status == "ok":
            log.info(
                "  %s (%s): PR=%.1f%%  expected=%.1f kWh  actual=%.1f kWh  hsp=%s  confidence=%d",
                row.plant_id, row.name, row.pr_percent, row.expected_kwh,
                row.actual_kwh, row.hsp_provenance, row.confidence_score,
            )
        else:
            log.info("  %s (%s): %s", row.plant_id, row.name, row.pr_status)

    by_status = Counter(row.pr_status for row in results)
    log.info(
        "PR job complete: %d plant(s): %s",
        len(results),
        ", ".join(f"{status}={count}" for status, count in sorted(by_status.items())),
    )
    return by_status


if __name__ == "__main__":
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    parser = argparse.ArgumentParser(description="Recompute month-to-date PR for all plants.")
    parser.add_argument(
        "--date",
        metavar="YYYY-MM-DD",
        help="Reference date (default: today)",
        default=None,
    )
    args = parser.parse_args()

    target: date | None = None
    if args.date:
        try:
            target = date.fromisoformat(args.date)
        except ValueError:
            print(f"Invalid date: {args.date!r}. Expected YYYY-MM-DD.", file=sys.stderr)
            sys.exit(1)

    try:
        run(target_date=target)
    except Exception as exc:
        log.exception("PR job failed: %s", exc)
        sys.exit(1)
