from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime


# --- Where the employee was when clocking in or out ---
class TimeEntryLocation(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: Optional[str] = None


# --- Request Models ---
class ClockInRequest(BaseModel):
    project_id: str = Field(..., min_length=1)
    task: Optional[str] = Field(None, max_length=255)
    location: Optional[TimeEntryLocation] = None

    @field_validator("project_id", "task")
    @classmethod
    def strip_text_fields(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            return v.strip()
        return v


class ClockOutRequest(BaseModel):
    location: Optional[TimeEntryLocation] = None


# --- Database Model (row of the time_entries table) ---
class TimeEntry(BaseModel):
    id: str
    employee: str
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[float] = Field(None, description="Hours, 2 decimals")
    task: Optional[str] = None
    project_id: Optional[str] = None
    project_external_id: Optional[str] = None
    project_address: Optional[str] = None
    location: Optional[TimeEntryLocation] = None
    end_location: Optional[TimeEntryLocation] = None

    @field_validator("id", "employee", "project_id", "project_external_id", mode="before")
    @classmethod
    def coerce_identifier(cls, v):
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @property
    def is_active(self) -> bool:
        return self.end_time is None

    class Config:
        from_attributes = True
