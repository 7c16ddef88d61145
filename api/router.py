from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from api.db.client import DatabaseClient
from api.services.alerts import classify_alert
from api.services.dataset_resolver import IrradianceResolutionError
from api.services.hsp import HspService
from api.services.irradiance_lookup import IrradianceLookupService, build_audit_payload
from api.services.performance_ratio import PerformanceRatioService
from api.solar.transposition import transpose
from lib.types import (
    AlertLayer,
    DhiSource,
    HspConfidence,
    HspSource,
    MonthlySeries,
    PlantInput,
    PlantLosses,
    PrStatus,
    ReadingInput,
    TranspositionMethod,
)

router = APIRouter()

_db = DatabaseClient()
_lookup_service = IrradianceLookupService(db=_db)
_hsp_service = HspService(db=_db)
_pr_service = PerformanceRatioService(db=_db, hsp_service=_hsp_service)


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class MonthlySeriesModel(BaseModel):
    m01: float = Field(ge=0)
    m02: float = Field(ge=0)
    m03: float = Field(ge=0)
    m04: float = Field(ge=0)
    m05: float = Field(ge=0)
    m06: float = Field(ge=0)
    m07: float = Field(ge=0)
    m08: float = Field(ge=0)
    m09: float = Field(ge=0)
    m10: float = Field(ge=0)
    m11: float = Field(ge=0)
    m12: float = Field(ge=0)

    def to_series(self) -> MonthlySeries:
        return MonthlySeries.from_mapping(self.model_dump())


class TransposeRequest(BaseModel):
    ghi: MonthlySeriesModel
    dhi: Optional[MonthlySeriesModel] = None
    latitude: float = Field(ge=-90, le=90)
    tilt_deg: float = Field(ge=0, le=90)
    azimuth_deviation_deg: float = 0.0
    albedo: float = Field(default=0.2, ge=0, le=1)


class TransposeResponse(BaseModel):
    poa: MonthlySeriesModel
    poa_annual_avg: float
    ghi_annual_avg: float
    gain_factor: float
    method: TranspositionMethod
    dhi_source: DhiSource


class HspResponse(BaseModel):
    value: Optional[float]
    source: HspSource
    confidence: HspConfidence


class LossesModel(BaseModel):
    shading_percent: float = Field(default=8.0, ge=0, lt=100)
    soiling_percent: float = Field(default=5.0, ge=0, lt=100)
    other_percent: float = Field(default=12.0, ge=0, lt=100)


class PlantModel(BaseModel):
    plant_id: str
    name: str
    installed_power_kwp: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    losses: Optional[LossesModel] = None


class ReadingModel(BaseModel):
    plant_id: str
    energy_kwh: float
    peak_power_kw: Optional[float] = None


class PerformanceRatioRequest(BaseModel):
    plants: list[PlantModel]
    readings: list[ReadingModel]
    as_of: Optional[date] = None


class PerformanceRatioResponse(BaseModel):
    plant_id: str
    name: str
    kwp: Optional[float]
    expected_kwh: Optional[float]
    actual_kwh: float
    pr_percent: Optional[float]
    pr_status: PrStatus
    hsp_kwh_m2: Optional[float]
    hsp_provenance: HspSource
    deviation_percent: Optional[float]
    confidence_score: int


class ClassifyAlertRequest(BaseModel):
    confidence_score: int = Field(ge=0, le=100)
    pr_status: PrStatus
    deviation_percent: Optional[float] = None
    consecutive_days: int = Field(default=0, ge=0)
    is_offline: bool = False
    is_zero_gen_with_high_hsp: bool = False


class AlertClassificationResponse(BaseModel):
    layer: AlertLayer
    reason: str
    blocked: bool


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("/irradiance")
def monthly_irradiance(
    lat: float = Query(ge=-90, le=90),
    lon: float = Query(ge=-180, le=180),
    tenant_id: Optional[str] = None,
    dataset_code: Optional[str] = None,
    version_id: Optional[int] = None,
):
    """Resolve the monthly GHI series for a location and return its audit payload."""
    try:
        result = _lookup_service.get_monthly_irradiance(
            lat,
            lon,
            tenant_id=tenant_id,
            dataset_code_override=dataset_code,
            version_id_override=version_id,
        )
    except IrradianceResolutionError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return build_audit_payload(result)


@router.post("/irradiance/transpose", response_model=TransposeResponse)
def transpose_series(body: TransposeRequest):
    result = transpose(
        body.ghi.to_series(),
        body.dhi.to_series() if body.dhi is not None else None,
        latitude=body.latitude,
        tilt_deg=body.tilt_deg,
        azimuth_deviation_deg=body.azimuth_deviation_deg,
        albedo=body.albedo,
    )
    return TransposeResponse(
        poa=MonthlySeriesModel(**result.poa.as_dict()),
        poa_annual_avg=result.poa_annual_avg,
        ghi_annual_avg=result.ghi_annual_avg,
        gain_factor=result.gain_factor,
        method=result.method,
        dhi_source=result.dhi_source,
    )


@router.get("/hsp/daily", response_model=HspResponse)
def daily_hsp(lat: float, lon: float, day: date):
    result = _hsp_service.get_daily_hsp(lat, lon, day)
    return HspResponse(value=result.value, source=result.source, confidence=result.confidence)


@router.get("/hsp/monthly", response_model=HspResponse)
def monthly_hsp(lat: float, lon: float, month: int = Query(ge=1, le=12)):
    result = _hsp_service.get_monthly_avg_hsp(lat, lon, month)
    return HspResponse(value=result.value, source=result.source, confidence=result.confidence)


@router.post("/performance-ratios", response_model=list[PerformanceRatioResponse])
def performance_ratios(body: PerformanceRatioRequest):
    """Compute month-to-date PR for a caller-supplied roster and readings."""
    plants = [
        PlantInput(
            plant_id=p.plant_id,
            name=p.name,
            installed_power_kwp=p.installed_power_kwp,
            latitude=p.latitude,
            longitude=p.longitude,
            losses=PlantLosses(**p.losses.model_dump()) if p.losses else None,
        )
        for p in body.plants
    ]
    readings = [ReadingInput(**r.model_dump()) for r in body.readings]
    results = _pr_service.get_performance_ratios(plants, readings, as_of=body.as_of)
    return [PerformanceRatioResponse(**vars(r)) for r in results]


@router.get("/plants/performance", response_model=list[PerformanceRatioResponse])
def stored_performance(as_of: Optional[date] = None):
    """Month-to-date PR for every stored plant."""
    results = _pr_service.get_stored_performance_ratios(as_of=as_of)
    return [PerformanceRatioResponse(**vars(r)) for r in results]


@router.post("/alerts/classify", response_model=AlertClassificationResponse)
def alerts_classify(body: ClassifyAlertRequest):
    result = classify_alert(
        confidence_score=body.confidence_score,
        pr_status=body.pr_status,
        deviation_percent=body.deviation_percent,
        consecutive_days=body.consecutive_days,
        is_offline=body.is_offline,
        is_zero_gen_with_high_hsp=body.is_zero_gen_with_high_hsp,
    )
    return AlertClassificationResponse(layer=result.layer, reason=result.reason, blocked=result.blocked)
