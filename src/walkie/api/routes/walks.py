"""
Walk lifecycle routes.

The phone's geolocation watch posts each fix to /walks/samples and each
watch failure to /walks/errors. Handlers are async so every mutation runs
on the event loop, one at a time.
"""
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel, Field

from walkie.analysis.geo import GeoPoint, points_to_latlngs
from walkie.analysis.track import TrackSnapshot, WalkRecord
from walkie.errors import CapabilityUnavailable, InvalidState, PositionUnavailable
from walkie.render.charts import render_track_png
from walkie.tracking.controller import WalkController

router = APIRouter()


class SampleRequest(BaseModel):
    lat: float = Field(allow_inf_nan=False)
    lng: float = Field(allow_inf_nan=False)
    timestamp: Optional[datetime] = None  # when the device took the fix


class PositionErrorRequest(BaseModel):
    message: str
    reason: str = "position_unavailable"  # "permission_denied" | "position_unavailable" | "timeout"


class SnapshotResponse(BaseModel):
    distance_km: float
    elapsed_sec: float
    avg_speed_kmh: float
    pace_sec_per_km: Optional[float]
    goal_progress_pct: int
    goal_reached: bool
    point_count: int


class CurrentWalkResponse(SnapshotResponse):
    goal_km: float
    started_at: datetime
    last_point: Optional[List[float]]
    last_error: Optional[str]
    path: List[List[float]]


class WalkRecordResponse(BaseModel):
    date: str
    km: float
    sec: int
    avg: float


def get_controller(request: Request) -> WalkController:
    return request.app.state.controller


def _snapshot_response(snapshot: TrackSnapshot) -> SnapshotResponse:
    return SnapshotResponse(**snapshot.to_dict())


def _record_response(record: WalkRecord) -> WalkRecordResponse:
    return WalkRecordResponse(**record.to_json())


@router.post("/start", response_model=SnapshotResponse, status_code=201)
async def start_walk(controller: WalkController = Depends(get_controller)):
    """Begin a walk. 409 if one is already running, 503 without a position source."""
    try:
        snapshot = controller.start()
    except CapabilityUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    except InvalidState as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return _snapshot_response(snapshot)


@router.post("/samples", response_model=SnapshotResponse)
async def post_sample(
    sample: SampleRequest,
    request: Request,
    controller: WalkController = Depends(get_controller),
):
    """Feed one fix. Returns the metrics after it (unchanged if the fix was stale)."""
    if not controller.active:
        raise HTTPException(status_code=409, detail="No walk in progress")
    fix_time = sample.timestamp
    if fix_time is not None and fix_time.tzinfo is None:
        fix_time = fix_time.replace(tzinfo=timezone.utc)
    request.app.state.source.push(GeoPoint(lat=sample.lat, lng=sample.lng), fix_time=fix_time)
    return _snapshot_response(controller.last_snapshot)


@router.post("/errors", status_code=202)
async def post_position_error(
    body: PositionErrorRequest,
    request: Request,
    controller: WalkController = Depends(get_controller),
):
    """Report a geolocation failure. The walk stays active."""
    if not controller.active:
        raise HTTPException(status_code=409, detail="No walk in progress")
    request.app.state.source.fail(PositionUnavailable(body.message, reason=body.reason))
    return {"message": "Position error recorded", "reason": body.reason}


@router.get("/current", response_model=CurrentWalkResponse)
async def current_walk(controller: WalkController = Depends(get_controller)):
    """Live metrics plus the path drawn so far and the last position (for recentering)."""
    try:
        session = controller.session
    except InvalidState as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    snapshot = session.snapshot()
    last = session.last_point
    return CurrentWalkResponse(
        **snapshot.to_dict(),
        goal_km=session.goal_km,
        started_at=session.started_at,
        last_point=[last.lat, last.lng] if last else None,
        last_error=controller.last_error.message if controller.last_error else None,
        path=points_to_latlngs(session.points),
    )


@router.get("/current/track.png")
async def current_track_png(controller: WalkController = Depends(get_controller)):
    try:
        session = controller.session
    except InvalidState as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    png, caption = render_track_png(session.points, title="Current walk")
    return Response(content=png, media_type="image/png", headers={"X-Caption": caption})


@router.post("/stop", response_model=WalkRecordResponse)
async def stop_walk(controller: WalkController = Depends(get_controller)):
    """Finish the walk, save it to history and return the record."""
    try:
        record = controller.stop()
    except InvalidState as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return _record_response(record)


@router.get("/history", response_model=List[WalkRecordResponse])
def list_history(request: Request, limit: Optional[int] = None):
    """Saved walks, most recent first."""
    if limit is None:
        limit = request.app.state.settings.history_display_limit
    records = request.app.state.history.list(limit=max(0, limit))
    return [_record_response(r) for r in records]
