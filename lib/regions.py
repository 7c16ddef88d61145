"""Fixed latitude/longitude → Brazilian macro-region table.

The boundaries are a coarse geographic heuristic used only to pick the
regional HSP premise.  They are evaluated top to bottom and the first
matching row wins; coordinates matching no row fall into ``DEFAULT_REGION``.
Changing a row changes which premise every plant in that box falls back to.

The northern Paraná row stops at the Paraná river (about 54.3°W) so that
southern Mato Grosso do Sul stays in ``centro_oeste``.  Towns hugging the
river on the Mato Grosso do Sul bank (e.g. Mundo Novo) still classify as ``sul``.
"""

from __future__ import annotations

from dataclasses import dataclass

from lib.types import Region


@dataclass(frozen=True)
class RegionBox:
    region: Region
    lat_min: float
    lat_max: float
    lon_min: float
    lon_max: float

    def contains(self, lat: float, lon: float) -> bool:
        return self.lat_min <= lat <= self.lat_max and self.lon_min <= lon <= self.lon_max


REGION_TABLE: tuple[RegionBox, ...] = (
    RegionBox("sul", -90.0, -25.0, -180.0, 180.0),
    RegionBox("sul", -25.0, -22.5, -54.3, -48.0),
    RegionBox("nordeste", -18.5, 90.0, -46.0, 180.0),
    RegionBox("norte", -13.0, 90.0, -180.0, -46.0),
    RegionBox("centro_oeste", -90.0, 90.0, -180.0, -47.0),
)

DEFAULT_REGION: Region = "sudeste"


def classify_region(lat: float, lon: float) -> Region:
    for box in REGION_TABLE:
        if box.contains(lat, lon):
            return box.region
    return DEFAULT_REGION
