from lib.types import MonthKey


MONTH_KEYS: tuple[MonthKey, ...] = (
    "m01", "m02", "m03", "m04", "m05", "m06",
    "m07", "m08", "m09", "m10", "m11", "m12",
)

# Representative day-of-year for each calendar month (Klein, 1977)
MID_MONTH_DOY: tuple[int, ...] = (17, 47, 75, 105, 135, 162, 198, 228, 258, 288, 318, 344)

SOLAR_CONSTANT_KW_M2: float = 1.361
HOURS_IN_DAY: int = 24

IRRADIANCE_UNIT: str = "kwh_m2_day"
CACHE_COORD_DECIMALS: int = 4           # ~11 m
LOOKUP_RADIUS_DEG: float = 0.5          # ~55 km
HSP_CACHE_BOX_DEG: float = 0.1
NATIONAL_REGION: str = "brasil"
