from fastapi import APIRouter, Depends

from evcharge.api.deps import get_station_service
from evcharge.services.stations import StationService

router = APIRouter()


@router.get("/station/list", tags=["stations"])  # /api/station/list
def station_list(stations: StationService = Depends(get_station_service)):
    """Listado público: sin password ni email."""
    return {"success": True, "stations": [s.to_response() for s in stations.list_public()]}
