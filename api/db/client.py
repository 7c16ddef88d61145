from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session, sessionmaker

from api.db.models import (
    EnergyReading,
    IrradianceDailyCache,
    IrradianceDataset,
    IrradianceDatasetVersion,
    IrradianceLookupCache,
    IrradiancePoint,
    IrradiancePremise,
    Plant,
    TenantIrradianceConfig,
)
from api.db.session import get_session
from lib.geo_util import haversine_km, within_radius_deg


class DatabaseClient:
    """Typed interface for reading and writing irradiance and plant data.

    All methods open and close their own session using the shared
    :func:`~api.db.session.get_session` context manager, so no session
    management is required by the caller.  Pass *session_factory* to bind
    the client to a different engine (tests use an in-memory SQLite one).
    """

    def __init__(self, session_factory: Optional[sessionmaker[Session]] = None) -> None:
        self._session_factory = session_factory

    def _session(self):
        return get_session(self._session_factory)

    # ------------------------------------------------------------------
    # Datasets & versions
    # ------------------------------------------------------------------

    def add_dataset(self, code: str, name: str | None = None) -> IrradianceDataset:
        with self._session() as db:
            dataset = IrradianceDataset(code=code, name=name)
            db.add(dataset)
            db.flush()  # populate id before session closes
            db.expunge(dataset)
        return dataset

    def get_dataset_by_code(self, code: str) -> IrradianceDataset | None:
        with self._session() as db:
            dataset = db.execute(
                select(IrradianceDataset).where(IrradianceDataset.code == code)
            ).scalar_one_or_none()
            if dataset is not None:
                db.expunge(dataset)
        return dataset

    def add_version(self, dataset_id: int, version_tag: str, status: str = "processing", **extra) -> IrradianceDatasetVersion:
        with self._session() as db:
            version = IrradianceDatasetVersion(
                dataset_id=dataset_id, version_tag=version_tag, status=status, **extra
            )
            db.add(version)
            db.flush()
            db.expunge(version)
        return version

    def get_version(self, version_id: int) -> IrradianceDatasetVersion | None:
        with self._session() as db:
            version = db.get(IrradianceDatasetVersion, version_id)
            if version is not None:
                db.expunge(version)
        return version

    def get_latest_active_version(self, dataset_id: int) -> IrradianceDatasetVersion | None:
        """Most recently ingested ``active`` version; ties broken by highest id."""
        with self._session() as db:
            version = db.execute(
                select(IrradianceDatasetVersion)
                .where(
                    IrradianceDatasetVersion.dataset_id == dataset_id,
                    IrradianceDatasetVersion.status == "active",
                )
                .order_by(
                    IrradianceDatasetVersion.ingested_at.desc(),
                    IrradianceDatasetVersion.id.desc(),
                )
                .limit(1)
            ).scalar_one_or_none()
            if version is not None:
                db.expunge(version)
        return version

    def update_version(self, version_id: int, **values) -> None:
        with self._session() as db:
            db.execute(
                update(IrradianceDatasetVersion)
                .where(IrradianceDatasetVersion.id == version_id)
                .values(**values)
            )

    def retire_other_versions(self, dataset_id: int, keep_version_id: int) -> list[int]:
        """Mark every other active version of *dataset_id* retired; return their ids."""
        with self._session() as db:
            ids = db.execute(
                select(IrradianceDatasetVersion.id).where(
                    IrradianceDatasetVersion.dataset_id == dataset_id,
                    IrradianceDatasetVersion.status == "active",
                    IrradianceDatasetVersion.id != keep_version_id,
                )
            ).scalars().all()
            if ids:
                db.execute(
                    update(IrradianceDatasetVersion)
                    .where(IrradianceDatasetVersion.id.in_(ids))
                    .values(status="retired")
                    .execution_options(synchronize_session=False)
                )
        return list(ids)

    def get_tenant_config(self, tenant_id: str) -> TenantIrradianceConfig | None:
        with self._session() as db:
            config = db.get(TenantIrradianceConfig, tenant_id)
            if config is not None:
                db.expunge(config)
        return config

    def upsert_tenant_config(
        self,
        tenant_id: str,
        dataset_code: str,
        version_id: int | None = None,
        lookup_method: str = "nearest",
    ) -> None:
        values = dict(dataset_code=dataset_code, version_id=version_id, lookup_method=lookup_method)
        with self._session() as db:
            stmt = (
                sqlite_insert(TenantIrradianceConfig)
                .values(tenant_id=tenant_id, **values)
                .on_conflict_do_update(index_elements=["tenant_id"], set_=values)
            )
            db.execute(stmt)

    # ------------------------------------------------------------------
    # Grid points
    # ------------------------------------------------------------------

    def insert_points_bulk(self, rows: list[dict]) -> None:
        if not rows:
            return
        with self._session() as db:
            db.execute(sqlite_insert(IrradiancePoint), rows)

    def find_nearest_point(
        self,
        version_id: int,
        lat: float,
        lon: float,
        radius_deg: float,
    ) -> tuple[IrradiancePoint, float] | None:
        """Return the closest point of *version_id* within *radius_deg* and its distance in km."""
        with self._session() as db:
            rows = db.execute(
                select(IrradiancePoint).where(
                    IrradiancePoint.version_id == version_id,
                    IrradiancePoint.latitude.between(lat - radius_deg, lat + radius_deg),
                    IrradiancePoint.longitude.between(lon - radius_deg, lon + radius_deg),
                )
            ).scalars().all()
            for row in rows:
                db.expunge(row)

        candidates = [
            (haversine_km(lat, lon, p.latitude, p.longitude), p.id, p)
            for p in rows
            if within_radius_deg(lat, lon, p.latitude, p.longitude, radius_deg)
        ]
        if not candidates:
            return None
        distance_km, _, point = min(candidates, key=lambda c: (c[0], c[1]))
        return point, distance_km

    # ------------------------------------------------------------------
    # Lookup cache
    # ------------------------------------------------------------------

    def get_lookup_cache(
        self,
        version_id: int,
        lat_round: float,
        lon_round: float,
        method: str,
    ) -> IrradianceLookupCache | None:
        with self._session() as db:
            row = db.get(IrradianceLookupCache, (version_id, lat_round, lon_round, method))
            if row is not None:
                db.expunge(row)
        return row

    def upsert_lookup_cache(self, row: dict) -> None:
        update_cols = {
            col: getattr(sqlite_insert(IrradianceLookupCache).excluded, col)
            for col in ("series", "dhi_series", "point_lat", "point_lon", "distance_km", "unit")
        }
        with self._session() as db:
            stmt = (
                sqlite_insert(IrradianceLookupCache)
                .values(**row)
                .on_conflict_do_update(
                    index_elements=["version_id", "lat_round", "lon_round", "method"],
                    set_=update_cols,
                )
            )
            db.execute(stmt)

    def delete_lookup_cache_for_versions(self, version_ids: list[int]) -> int:
        if not version_ids:
            return 0
        with self._session() as db:
            result = db.execute(
                delete(IrradianceLookupCache)
                .where(IrradianceLookupCache.version_id.in_(version_ids))
                .execution_options(synchronize_session=False)
            )
            deleted = result.rowcount or 0
        return deleted

    # ------------------------------------------------------------------
    # HSP sources
    # ------------------------------------------------------------------

    def upsert_daily_hsp_bulk(self, rows: list[dict]) -> None:
        if not rows:
            return
        with self._session() as db:
            stmt = sqlite_insert(IrradianceDailyCache).on_conflict_do_update(
                index_elements=["latitude", "longitude", "day"],
                set_={
                    "hsp_kwh_m2": sqlite_insert(IrradianceDailyCache).excluded.hsp_kwh_m2,
                    "confidence": sqlite_insert(IrradianceDailyCache).excluded.confidence,
                },
            )
            db.execute(stmt, rows)

    def get_daily_hsp_near(
        self,
        lat: float,
        lon: float,
        day: date,
        box_deg: float,
    ) -> list[IrradianceDailyCache]:
        with self._session() as db:
            rows = db.execute(
                select(IrradianceDailyCache).where(
                    IrradianceDailyCache.day == day,
                    IrradianceDailyCache.latitude.between(lat - box_deg, lat + box_deg),
                    IrradianceDailyCache.longitude.between(lon - box_deg, lon + box_deg),
                )
            ).scalars().all()
            for row in rows:
                db.expunge(row)
        return list(rows)

    def upsert_premises_bulk(self, rows: list[dict]) -> None:
        if not rows:
            return
        with self._session() as db:
            stmt = sqlite_insert(IrradiancePremise).on_conflict_do_update(
                index_elements=["region", "month"],
                set_={"hsp_kwh_m2": sqlite_insert(IrradiancePremise).excluded.hsp_kwh_m2},
            )
            db.execute(stmt, rows)

    def get_premise(self, region: str, month: int) -> IrradiancePremise | None:
        with self._session() as db:
            row = db.get(IrradiancePremise, (region, month))
            if row is not None:
                db.expunge(row)
        return row

    # ------------------------------------------------------------------
    # Plants & readings
    # ------------------------------------------------------------------

    def add_plant(self, **values) -> Plant:
        with self._session() as db:
            plant = Plant(**values)
            db.add(plant)
            db.flush()
            db.expunge(plant)
        return plant

    def list_plants(self) -> list[Plant]:
        with self._session() as db:
            rows = db.execute(select(Plant).order_by(Plant.plant_id)).scalars().all()
            for row in rows:
                db.expunge(row)
        return list(rows)

    def upsert_readings_bulk(self, rows: list[dict]) -> None:
        if not rows:
            return
        with self._session() as db:
            stmt = sqlite_insert(EnergyReading).on_conflict_do_update(
                index_elements=["plant_id", "day"],
                set_={
                    "energy_kwh": sqlite_insert(EnergyReading).excluded.energy_kwh,
                    "peak_power_kw": sqlite_insert(EnergyReading).excluded.peak_power_kw,
                },
            )
            db.execute(stmt, rows)

    def get_readings(self, start: date, end: date) -> list[EnergyReading]:
        with self._session() as db:
            rows = db.execute(
                select(EnergyReading)
                .where(EnergyReading.day >= start, EnergyReading.day <= end)
                .order_by(EnergyReading.plant_id, EnergyReading.day)
            ).scalars().all()
            for row in rows:
                db.expunge(row)
        return list(rows)
