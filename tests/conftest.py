"""Shared fixtures: a DatabaseClient bound to a fresh in-memory SQLite engine."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

import pytest

from api.db.client import DatabaseClient
from api.db.models import Base
from api.db.session import build_engine, build_session_factory
from lib.constants import MONTH_KEYS

SAO_PAULO_GHI = [5.3, 5.5, 4.9, 4.3, 3.6, 3.4, 3.5, 4.4, 4.6, 5.0, 5.4, 5.6]


@pytest.fixture
def db():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield DatabaseClient(session_factory=build_session_factory(engine))
    engine.dispose()


def point_row(lat: float, lon: float, ghi: list[float], dhi: Optional[list[float]] = None) -> dict:
    row = {"latitude": lat, "longitude": lon, "unit": "kwh_m2_day"}
    row.update(dict(zip(MONTH_KEYS, ghi)))
    for i, key in enumerate(MONTH_KEYS):
        row[f"dhi_{key}"] = dhi[i] if dhi is not None else None
    return row


@pytest.fixture
def seed_version(db) -> Callable[..., int]:
    """Create (dataset if needed) + version + points; return the version id."""

    def _seed(
        code: str = "INPE_2017_SUNDATA",
        tag: str = "v1",
        status: str = "active",
        points: Optional[list[dict]] = None,
        ingested_at: Optional[datetime] = None,
    ) -> int:
        dataset = db.get_dataset_by_code(code) or db.add_dataset(code)
        extra = {"ingested_at": ingested_at} if ingested_at is not None else {}
        version = db.add_version(dataset.id, tag, status=status, **extra)
        if points is None:
            points = [point_row(-23.5, -46.6, SAO_PAULO_GHI)]
        db.insert_points_bulk([{**p, "version_id": version.id} for p in points])
        return version.id

    return _seed
