"""Daily distance goal routes."""
from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from walkie.analysis.pace import format_goal

router = APIRouter()


class GoalRequest(BaseModel):
    goal_km: float = Field(gt=0, allow_inf_nan=False)


class GoalResponse(BaseModel):
    goal_km: float
    label: str


@router.get("", response_model=GoalResponse)
def get_goal(request: Request):
    goal_km = request.app.state.goal.get()
    return GoalResponse(goal_km=goal_km, label=format_goal(goal_km))


@router.put("", response_model=GoalResponse)
def set_goal(body: GoalRequest, request: Request):
    """Takes effect from the next walk started; a walk in progress keeps its goal."""
    goal_km = request.app.state.goal.set(body.goal_km)
    return GoalResponse(goal_km=goal_km, label=format_goal(goal_km))
