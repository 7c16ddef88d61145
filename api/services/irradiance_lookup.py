from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from api.db.client import DatabaseClient
from api.services.dataset_resolver import DatasetResolver, IrradianceResolutionError
from api.solar.transposition import TranspositionResult, optimal_tilt, transpose
from lib.constants import CACHE_COORD_DECIMALS, IRRADIANCE_UNIT, LOOKUP_RADIUS_DEG
from lib.geo_util import round_coord
from lib.types import GridPoint, MonthlySeries

log = logging.getLogger(__name__)


class NoDataInRadiusError(IrradianceResolutionError):
    def __init__(self, lat: float, lon: float, version_id: int, radius_deg: float) -> None:
        self.lat = lat
        self.lon = lon
        self.version_id = version_id
        self.radius_deg = radius_deg
        super().__init__(
            f"No irradiance data within {radius_deg}° of ({lat}, {lon}) in version {version_id}"
        )


@dataclass(frozen=True)
class PointLookup:
    series: MonthlySeries
    dhi_series: Optional[MonthlySeries]
    point: GridPoint
    distance_km: float
    unit: str
    cache_hit: bool


@dataclass(frozen=True)
class IrradianceLookupResult:
    dataset_code: str
    version_id: int
    version_tag: str
    method: str
    series: MonthlySeries
    dhi_series: Optional[MonthlySeries]
    annual_average: float
    unit: str
    point: GridPoint
    distance_km: float
    cache_hit: bool
    resolved_at: str


@dataclass(frozen=True)
class TiltedIrradiance:
    lookup: IrradianceLookupResult
    transposition: TranspositionResult
    tilt_deg: float


def _dhi_from_record(data: Optional[dict]) -> Optional[MonthlySeries]:
    if not data:
        return None
    prefix = "dhi_" if any(k.startswith("dhi_") for k in data) else ""
    dhi = MonthlySeries.from_mapping(data, prefix=prefix)
    return dhi if dhi.has_positive() else None


def build_audit_payload(result: IrradianceLookupResult) -> dict[str, Any]:
    """Snapshot of a lookup for embedding in proposals and reports.

    Downstream consumers read these keys verbatim; do not rename or add.
    """
    return {
        "dataset_code": result.dataset_code,
        "version_id": result.version_id,
        "version_tag": result.version_tag,
        "method": result.method,
        "lat": result.point.latitude,
        "lon": result.point.longitude,
        "distance_km": result.distance_km,
        "series": result.series.as_dict(),
        "annual_avg": result.annual_average,
        "unit": result.unit,
        "cache_hit": result.cache_hit,
        "resolved_at": result.resolved_at,
    }


class IrradianceLookupService:
    """Nearest-point irradiance lookup with a rounded-coordinate cache.

    Coordinates are rounded to 4 decimals before touching the cache.  A
    cache hit is returned verbatim.  On a miss the nearest stored point
    within 0.5° is used and written back to the cache on a best-effort
    basis: a failed write is logged and never fails the read.
    """

    def __init__(
        self,
        db: DatabaseClient | None = None,
        resolver: DatasetResolver | None = None,
    ) -> None:
        self._db = db or DatabaseClient()
        self._resolver = resolver or DatasetResolver(db=self._db)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _write_cache(self, row: dict) -> None:
        try:
            self._db.upsert_lookup_cache(row)
        except Exception as exc:  # noqa: BLE001
            log.warning(
                "Lookup cache write failed for version=%s (%.4f, %.4f), continuing: %s",
                row["version_id"], row["lat_round"], row["lon_round"], exc,
            )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def lookup(self, lat: float, lon: float, version_id: int, method: str) -> PointLookup:
        lat_r = round_coord(lat, CACHE_COORD_DECIMALS)
        lon_r = round_coord(lon, CACHE_COORD_DECIMALS)

        cached = self._db.get_lookup_cache(version_id, lat_r, lon_r, method)
        if cached is not None:
            return PointLookup(
                series=MonthlySeries.from_mapping(cached.series),
                dhi_series=_dhi_from_record(cached.dhi_series),
                point=GridPoint(cached.point_lat, cached.point_lon),
                distance_km=cached.distance_km,
                unit=cached.unit,
                cache_hit=True,
            )

        log.debug("Lookup cache miss for version=%s (%.4f, %.4f)", version_id, lat_r, lon_r)
        # The rounded coordinate is searched so that every caller sharing a
        # cache key gets the same point.
        nearest = self._db.find_nearest_point(version_id, lat_r, lon_r, LOOKUP_RADIUS_DEG)
        if nearest is None:
            raise NoDataInRadiusError(lat, lon, version_id, LOOKUP_RADIUS_DEG)

        point, distance_km = nearest
        series = MonthlySeries.from_mapping(point.ghi_dict())
        dhi_series = _dhi_from_record(point.dhi_dict())
        unit = point.unit or IRRADIANCE_UNIT

        self._write_cache(
            {
                "version_id": version_id,
                "lat_round": lat_r,
                "lon_round": lon_r,
                "method": method,
                "series": series.as_dict(),
                "dhi_series": dhi_series.as_dict() if dhi_series is not None else None,
                "point_lat": point.latitude,
                "point_lon": point.longitude,
                "distance_km": distance_km,
                "unit": unit,
            }
        )

        return PointLookup(
            series=series,
            dhi_series=dhi_series,
            point=GridPoint(point.latitude, point.longitude),
            distance_km=distance_km,
            unit=unit,
            cache_hit=False,
        )

    def get_monthly_irradiance(
        self,
        lat: float,
        lon: float,
        tenant_id: str | None = None,
        dataset_code_override: str | None = None,
        version_id_override: int | None = None,
    ) -> IrradianceLookupResult:
        resolved = self._resolver.resolve(
            tenant_id=tenant_id,
            dataset_code_override=dataset_code_override,
            version_id_override=version_id_override,
        )
        found = self.lookup(lat, lon, resolved.version_id, resolved.lookup_method)

        return IrradianceLookupResult(
            dataset_code=resolved.dataset_code,
            version_id=resolved.version_id,
            version_tag=resolved.version_tag,
            method=resolved.lookup_method,
            series=found.series,
            dhi_series=found.dhi_series,
            annual_average=found.series.annual_average(),
            unit=found.unit,
            point=found.point,
            distance_km=found.distance_km,
            cache_hit=found.cache_hit,
            resolved_at=datetime.now(timezone.utc).isoformat(),
        )

    def get_tilted_irradiance(
        self,
        lat: float,
        lon: float,
        tilt_deg: float | None = None,
        azimuth_deviation_deg: float = 0.0,
        albedo: float = 0.2,
        tenant_id: str | None = None,
        dataset_code_override: str | None = None,
        version_id_override: int | None = None,
    ) -> TiltedIrradiance:
        """Lookup followed by transposition; tilt defaults to :func:`optimal_tilt`."""
        result = self.get_monthly_irradiance(lat, lon, tenant_id, dataset_code_override, version_id_override)
        tilt = float(optimal_tilt(lat)) if tilt_deg is None else tilt_deg

        return TiltedIrradiance(
            lookup=result,
            transposition=transpose(
                result.series,
                result.dhi_series,
                latitude=lat,
                tilt_deg=tilt,
                azimuth_deviation_deg=azimuth_deviation_deg,
                albedo=albedo,
            ),
            tilt_deg=tilt,
        )
