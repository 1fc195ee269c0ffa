from pydantic import BaseModel, Field, field_validator
from typing import Optional, List


# --- Location Record (row of the projects table) ---
class ProjectLocation(BaseModel):
    id: str
    external_id: Optional[str] = None
    address: str = ""
    zipcode: str = ""
    city: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    status: Optional[str] = None

    @field_validator("id", "external_id", mode="before")
    @classmethod
    def coerce_identifier(cls, v):
        # external ids are stored as numbers in some imports
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def display_address(self) -> str:
        """Single-line label, e.g. 'Hauptstr. 1, 10115 Berlin'."""
        locality = " ".join(part for part in (self.zipcode, self.city) if part)
        return ", ".join(part for part in (self.address, locality) if part)

    class Config:
        from_attributes = True


# --- User Position (query input, validated at the HTTP boundary) ---
class UserPosition(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


# --- Ranked Result ---
class NearbyProject(ProjectLocation):
    distance: float = Field(..., ge=0, description="Meters from the user position")


# --- API Response Models ---
class NearbySearchResponse(BaseModel):
    position: UserPosition
    radius_meters: float
    count: int
    projects: List[NearbyProject]


class ProjectList(BaseModel):
    count: int
    projects: List[ProjectLocation]
