"""
Memory API endpoints - Inspect, feed, export and erase the health memory.
"""

from datetime import date

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ..core import HealthMemory
from ..errors import ClientError
from ..models import InsightCreate, MetricsUpdate
from .deps import get_health_memory

router = APIRouter(prefix="/api/memory", tags=["memory"])


@router.get("/profile")
async def get_profile(memory: HealthMemory = Depends(get_health_memory)):
    return memory.get_health_profile().model_dump(mode="json")


@router.get("/context")
async def get_context(memory: HealthMemory = Depends(get_health_memory)):
    """The prompt block the assistant currently sees ("" when nothing is known)."""
    return {"context": memory.build_health_context()}


@router.get("/export")
async def export_profile(memory: HealthMemory = Depends(get_health_memory)):
    """Download the whole health memory as one JSON document."""
    return JSONResponse(
        content=memory.export(),
        headers={"Content-Disposition": 'attachment; filename="health-memory.json"'},
    )


@router.post("/insights")
async def add_insight(
    insight: InsightCreate,
    memory: HealthMemory = Depends(get_health_memory),
):
    try:
        stored = await memory.add_insight(insight.text, insight.category, insight.source)
    except ValidationError as e:
        raise ClientError("Invalid insight", details=[err["msg"] for err in e.errors()])
    return {"success": True, "insight": stored.model_dump(mode="json")}


@router.put("/metrics")
async def update_metrics(
    update: MetricsUpdate,
    memory: HealthMemory = Depends(get_health_memory),
):
    """
    Record tracker readings, stamped with today's date.

    Blood pressure needs both systolic and diastolic.
    """
    today = date.today().isoformat()
    snapshots = {}
    if update.weight is not None:
        snapshots["weight"] = {"value": update.weight, "date": today}
    if update.height is not None:
        snapshots["height"] = {"value": update.height, "date": today}
    if (update.systolic is None) != (update.diastolic is None):
        raise ClientError("Blood pressure needs both systolic and diastolic")
    if update.systolic is not None:
        snapshots["blood_pressure"] = {
            "systolic": update.systolic, "diastolic": update.diastolic, "date": today,
        }
    if update.sleep_hours is not None:
        snapshots["sleep_avg"] = {"hours": update.sleep_hours, "date": today}
    if update.water_cups is not None:
        snapshots["water_avg"] = {"cups": update.water_cups, "date": today}

    if not snapshots:
        raise ClientError("No metrics provided")

    metrics = await memory.update_metrics(snapshots)
    return {"success": True, "metrics": metrics.model_dump(mode="json")}


@router.delete("")
async def clear_memory(memory: HealthMemory = Depends(get_health_memory)):
    await memory.clear_health_memory()
    return {"success": True}
