from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Date, DateTime, Float, ForeignKey, Integer, SmallInteger, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from lib.constants import MONTH_KEYS


class Base(DeclarativeBase):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class _MonthlyColumns:
    """GHI m01..m12 and optional DHI dhi_m01..dhi_m12, kWh/m²/day."""

    m01: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    m02: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    m03: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    m04: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    m05: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    m06: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    m07: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    m08: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    m09: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    m10: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    m11: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    m12: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    dhi_m01: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    dhi_m02: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    dhi_m03: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    dhi_m04: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    dhi_m05: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    dhi_m06: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    dhi_m07: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    dhi_m08: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    dhi_m09: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    dhi_m10: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    dhi_m11: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    dhi_m12: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    def ghi_dict(self) -> dict[str, float]:
        return {k: getattr(self, k) for k in MONTH_KEYS}

    def dhi_dict(self) -> dict[str, Optional[float]]:
        return {f"dhi_{k}": getattr(self, f"dhi_{k}") for k in MONTH_KEYS}


# ---------------------------------------------------------------------------
# Irradiance catalogue
# ---------------------------------------------------------------------------


class IrradianceDataset(Base):
    """A named irradiance source, e.g. ``INPE_2017_SUNDATA``."""

    __tablename__ = "irradiance_datasets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    versions: Mapped[list[IrradianceDatasetVersion]] = relationship(
        "IrradianceDatasetVersion", back_populates="dataset", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<IrradianceDataset id={self.id} code={self.code!r}>"


class IrradianceDatasetVersion(Base):
    """One ingested snapshot of a dataset.

    At most one version per dataset is expected to be ``active``; readers
    tolerate violations by taking the most recently ingested.
    """

    __tablename__ = "irradiance_dataset_versions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    dataset_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("irradiance_datasets.id", ondelete="CASCADE"),
        nullable=False,
    )
    version_tag: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="processing")
    ingested_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    row_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    checksum_sha256: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    dataset: Mapped[IrradianceDataset] = relationship("IrradianceDataset", back_populates="versions")

    def __repr__(self) -> str:
        return (
            f"<IrradianceDatasetVersion id={self.id} dataset={self.dataset_id}"
            f" tag={self.version_tag!r} status={self.status}>"
        )


class IrradiancePoint(_MonthlyColumns, Base):
    """Monthly irradiance at one grid point of a dataset version."""

    __tablename__ = "irradiance_points_monthly"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    version_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("irradiance_dataset_versions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(16), nullable=False, default="kwh_m2_day")

    def __repr__(self) -> str:
        return f"<IrradiancePoint version={self.version_id} lat={self.latitude} lon={self.longitude}>"


class IrradianceLookupCache(Base):
    """Resolved nearest-point series keyed by rounded coordinate."""

    __tablename__ = "irradiance_lookup_cache"

    version_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    lat_round: Mapped[float] = mapped_column(Float, primary_key=True)
    lon_round: Mapped[float] = mapped_column(Float, primary_key=True)
    method: Mapped[str] = mapped_column(String(32), primary_key=True)

    series: Mapped[dict] = mapped_column(JSON, nullable=False)
    dhi_series: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    point_lat: Mapped[float] = mapped_column(Float, nullable=False)
    point_lon: Mapped[float] = mapped_column(Float, nullable=False)
    distance_km: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(16), nullable=False, default="kwh_m2_day")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)

    def __repr__(self) -> str:
        return (
            f"<IrradianceLookupCache version={self.version_id}"
            f" lat={self.lat_round} lon={self.lon_round} method={self.method!r}>"
        )


class TenantIrradianceConfig(Base):
    """Per-tenant dataset choice; ``version_id`` NULL means "use the active version"."""

    __tablename__ = "tenant_irradiance_config"

    tenant_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    dataset_code: Mapped[str] = mapped_column(String(64), nullable=False)
    version_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    lookup_method: Mapped[str] = mapped_column(String(32), nullable=False, default="nearest")

    def __repr__(self) -> str:
        return f"<TenantIrradianceConfig tenant={self.tenant_id!r} dataset={self.dataset_code!r}>"


# ---------------------------------------------------------------------------
# Peak-sun-hours sources
# ---------------------------------------------------------------------------


class IrradianceDailyCache(Base):
    """Daily HSP observed or fetched for a location."""

    __tablename__ = "irradiance_daily_cache"

    latitude: Mapped[float] = mapped_column(Float, primary_key=True)
    longitude: Mapped[float] = mapped_column(Float, primary_key=True)
    day: Mapped[date] = mapped_column(Date, primary_key=True)
    hsp_kwh_m2: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    confidence: Mapped[str] = mapped_column(String(8), nullable=False, default="medium")

    def __repr__(self) -> str:
        return (
            f"<IrradianceDailyCache lat={self.latitude} lon={self.longitude}"
            f" day={self.day} hsp={self.hsp_kwh_m2} conf={self.confidence}>"
        )


class IrradiancePremise(Base):
    """Monthly HSP premise per macro-region; the national row uses region ``brasil``."""

    __tablename__ = "irradiance_premises"

    region: Mapped[str] = mapped_column(String(16), primary_key=True)
    month: Mapped[int] = mapped_column(SmallInteger, primary_key=True)
    hsp_kwh_m2: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    def __repr__(self) -> str:
        return f"<IrradiancePremise region={self.region} month={self.month} hsp={self.hsp_kwh_m2}>"


# ---------------------------------------------------------------------------
# Plants
# ---------------------------------------------------------------------------


class Plant(Base):
    """A monitored PV plant."""

    __tablename__ = "plants"

    plant_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    installed_power_kwp: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    shading_loss_percent: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    soiling_loss_percent: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    other_loss_percent: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    readings: Mapped[list[EnergyReading]] = relationship(
        "EnergyReading", back_populates="plant", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Plant id={self.plant_id!r} name={self.name!r} kwp={self.installed_power_kwp}>"


class EnergyReading(Base):
    """Daily energy per plant, already normalised to kWh by the provider adapters."""

    __tablename__ = "energy_readings"

    plant_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("plants.plant_id", ondelete="CASCADE"),
        primary_key=True,
    )
    day: Mapped[date] = mapped_column(Date, primary_key=True)
    energy_kwh: Mapped[float] = mapped_column(Float, nullable=False)
    peak_power_kw: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    plant: Mapped[Plant] = relationship("Plant", back_populates="readings")

    def __repr__(self) -> str:
        return f"<EnergyReading plant={self.plant_id!r} day={self.day} kwh={self.energy_kwh}>"
