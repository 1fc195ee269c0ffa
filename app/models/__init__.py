# app/models/__init__.py

from .auth import UserInToken
from .general import GeocodeResult
from .projects import (
    ProjectLocation,
    UserPosition,
    NearbyProject,
    NearbySearchResponse,
    ProjectList,
)

UserInToken.model_rebuild()

GeocodeResult.model_rebuild()

ProjectLocation.model_rebuild()
UserPosition.model_rebuild()
NearbyProject.model_rebuild()
NearbySearchResponse.model_rebuild()
ProjectList.model_rebuild()
from .time_entries import (  # noqa: E402
    TimeEntryLocation,
    ClockInRequest,
    ClockOutRequest,
    TimeEntry,
)

TimeEntryLocation.model_rebuild()
ClockInRequest.model_rebuild()
ClockOutRequest.model_rebuild()
TimeEntry.model_rebuild()
