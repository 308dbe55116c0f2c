from typing import List
import logging
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from routemate.api.dependencies import get_route_planner
from routemate.api.v1.models import AddressInput, SheetImportRequest
from routemate.core.exceptions import NotFoundError, SheetImportError, ValidationError
from routemate.core.settings import Settings, get_settings
from routemate.models.route import RouteWithAddresses
from routemate.services.planner import RoutePlanner


logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/routes", response_model=List[RouteWithAddresses])
async def list_routes(planner: RoutePlanner = Depends(get_route_planner)):
    """Route history, newest first, each with its stops."""
    try:
        return await planner.list_routes()
    except Exception as e:
        logger.error(f"Unexpected error listing routes: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to load routes.")


@router.get("/routes/{route_id}", response_model=RouteWithAddresses)
async def get_route(route_id: int, planner: RoutePlanner = Depends(get_route_planner)):
    """A single route with its stops in travel order."""
    try:
        return await planner.get_route(route_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected error loading route {route_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to load route.")


@router.post("/plan-route", response_model=RouteWithAddresses)
async def plan_route(request: AddressInput, planner: RoutePlanner = Depends(get_route_planner)):
    """Plan a route from a manually entered start, waypoints and end."""
    logger.info(f"Received plan request with {len(request.waypoints)} waypoints")
    try:
        return await planner.plan_manual(request.start_point, request.waypoints, request.end_point)
    except ValidationError as e:
        logger.warning(f"Invalid plan request: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected error planning route: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Route planning failed.")


@router.post("/upload-csv", response_model=RouteWithAddresses)
async def upload_csv(
    file: UploadFile = File(..., description="CSV file with an address column"),
    planner: RoutePlanner = Depends(get_route_planner),
    settings: Settings = Depends(get_settings),
):
    """Plan a route from an uploaded CSV file."""
    filename = file.filename or ""
    if file.content_type != "text/csv" and not filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Only CSV files are accepted.")

    content = await file.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="CSV file is too large.")

    logger.info(f"Received CSV upload '{filename}' ({len(content)} bytes)")
    try:
        return await planner.plan_from_csv(content)
    except ValidationError as e:
        logger.warning(f"Rejected CSV upload '{filename}': {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected error processing CSV '{filename}': {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="CSV processing failed.")


@router.post("/import-sheet", response_model=RouteWithAddresses)
async def import_sheet(request: SheetImportRequest, planner: RoutePlanner = Depends(get_route_planner)):
    """Plan a route from a publicly shared Google Sheet."""
    logger.info(f"Received sheet import request for '{request.url}'")
    try:
        return await planner.plan_from_sheet(request.url)
    except ValidationError as e:
        logger.warning(f"Rejected sheet import '{request.url}': {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except SheetImportError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected error importing sheet '{request.url}': {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Google Sheet import failed.")
