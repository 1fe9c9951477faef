"""Health index route."""
from typing import Dict

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from walkie.analysis.health import HealthInputs, evaluate
from walkie.errors import InvalidInput

router = APIRouter()


class HealthScoreRequest(BaseModel):
    age: float = Field(allow_inf_nan=False)
    weight_kg: float = Field(allow_inf_nan=False)
    active_minutes: float = Field(allow_inf_nan=False)
    body_condition_score: float = Field(allow_inf_nan=False)
    sleep_hours: float = Field(allow_inf_nan=False)
    resting_heart_rate: float = Field(allow_inf_nan=False)


class HealthScoreResponse(BaseModel):
    score: int
    tier: str
    label: str
    image: str
    factors: Dict[str, float]


@router.post("/score", response_model=HealthScoreResponse)
def score(body: HealthScoreRequest, request: Request):
    """Score the submitted form values with the configured weight profile."""
    try:
        inputs = HealthInputs.from_mapping(body.model_dump())
        result = evaluate(inputs, profile=request.app.state.health_profile)
    except InvalidInput as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return HealthScoreResponse(
        score=result.score,
        tier=result.tier.value,
        label=result.label,
        image=result.image,
        factors=result.factors,
    )
