"""Geographic bounding box for the single supported map region."""

from __future__ import annotations

from pydantic import BaseModel, model_validator


class MapBounds(BaseModel):
    """A south-west / north-east bounding box in WGS84 degrees."""

    south: float
    west: float
    north: float
    east: float

    @model_validator(mode="after")
    def _check_order(self) -> MapBounds:
        if self.south > self.north or self.west > self.east:
            raise ValueError("bounds must be given as south <= north and west <= east")
        return self

    def contains(self, lat: float, lng: float) -> bool:
        """True when the coordinate lies inside the box (edges included)."""
        return self.south <= lat <= self.north and self.west <= lng <= self.east

    def as_viewbox(self) -> str:
        """Render as a Nominatim ``viewbox`` parameter (left,top,right,bottom)."""
        return f"{self.west},{self.north},{self.east},{self.south}"

    @property
    def center(self) -> tuple[float, float]:
        return ((self.south + self.north) / 2, (self.west + self.east) / 2)
