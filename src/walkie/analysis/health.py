"""
Dog health index: six manual inputs → score 0-100 → badge tier.

Heuristic model, not a veterinary diagnosis:
  - activity:   best around 60 active minutes/day
  - condition:  best around BCS 4.5 (ideal band 4-5 on the 1-9 scale)
  - sleep:      best around 12 hours/day
  - pulse:      best around 80 bpm resting
  - age:        no penalty up to 6 years, then -5%/year, floored at 0.6
  - weight:     neutral; there is no per-breed ideal to compare against

The four "closeness to ideal" factors use a Gaussian kernel peaking at 1.0.
Factor weights live in WEIGHT_PROFILES so they can be tuned without touching
the formula.
"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from walkie.analysis.track import round_half_up
from walkie.errors import InvalidInput


# ─── Factor table ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class GaussianFactor:
    """Ideal center and spread for one input."""
    mu: float
    sigma: float


ACTIVITY = GaussianFactor(mu=60.0, sigma=20.0)    # minutes/day
CONDITION = GaussianFactor(mu=4.5, sigma=1.2)     # BCS 1-9
SLEEP = GaussianFactor(mu=12.0, sigma=2.5)        # hours/day
PULSE = GaussianFactor(mu=80.0, sigma=12.0)       # bpm at rest

AGE_GRACE_YEARS = 6.0
AGE_DECAY_PER_YEAR = 0.05
AGE_FACTOR_FLOOR = 0.6

_GAUSSIAN_CUTOFF_Z = 40.0


@dataclass(frozen=True)
class WeightProfile:
    """Per-factor weights. Must be non-negative and sum to 1.0."""
    activity: float
    condition: float
    sleep: float
    pulse: float
    age: float
    weight: float = 0.0

    def __post_init__(self):
        values = self.as_dict().values()
        if any(w < 0 for w in values):
            raise ValueError("Factor weights must be non-negative")
        if not math.isclose(sum(values), 1.0, abs_tol=1e-9):
            raise ValueError(f"Factor weights must sum to 1.0, got {sum(values)}")

    def as_dict(self) -> Dict[str, float]:
        return {
            "activity": self.activity,
            "condition": self.condition,
            "sleep": self.sleep,
            "pulse": self.pulse,
            "age": self.age,
            "weight": self.weight,
        }


WEIGHT_PROFILES: Dict[str, WeightProfile] = {
    # Weight factor dropped; its share moved to activity and age.
    "canonical": WeightProfile(
        activity=0.30, condition=0.28, sleep=0.16, pulse=0.18, age=0.08, weight=0.0,
    ),
    # Earlier weighting that still carried the (neutral) weight factor.
    "legacy": WeightProfile(
        activity=0.28, condition=0.28, sleep=0.16, pulse=0.18, age=0.05, weight=0.05,
    ),
}
DEFAULT_PROFILE = "canonical"


# ─── Tiers ────────────────────────────────────────────────────────────────────

class HealthTier(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    NEEDS_ATTENTION = "needs_attention"


# Lower bounds, checked top-down
_TIER_BOUNDARIES = [(80, HealthTier.EXCELLENT), (60, HealthTier.GOOD)]

TIER_BADGES: Dict[HealthTier, Dict[str, str]] = {
    HealthTier.EXCELLENT: {"label": "Ottimo", "image": "assets/images/happydog.png"},
    HealthTier.GOOD: {"label": "Buono", "image": "assets/images/healtydog.png"},
    HealthTier.NEEDS_ATTENTION: {"label": "Attenzione", "image": "assets/images/dogsection.png"},
}


# ─── Data ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class HealthInputs:
    age: float                   # years
    weight_kg: float
    active_minutes: float        # per day
    body_condition_score: float  # 1-9
    sleep_hours: float           # per day
    resting_heart_rate: float    # bpm

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "HealthInputs":
        """
        Build inputs from loosely typed form values.

        Every field is coerced to float; missing, non-numeric, NaN or infinite
        values raise InvalidInput naming the field.
        """
        return cls(**{name: _coerce(name, data.get(name)) for name in _FIELDS})


_FIELDS = (
    "age",
    "weight_kg",
    "active_minutes",
    "body_condition_score",
    "sleep_hours",
    "resting_heart_rate",
)


@dataclass(frozen=True)
class HealthResult:
    score: int
    tier: HealthTier
    factors: Dict[str, float]

    @property
    def label(self) -> str:
        return TIER_BADGES[self.tier]["label"]

    @property
    def image(self) -> str:
        return TIER_BADGES[self.tier]["image"]


# ─── Formula ──────────────────────────────────────────────────────────────────

def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def gaussian(x: float, mu: float, sigma: float) -> float:
    """exp(-0.5 * ((x - mu) / sigma)^2): 1.0 at x == mu, falling off either side."""
    z = (x - mu) / sigma
    # exp(-0.5 * 40**2) is already 0.0 in float; z * z can overflow past it
    if abs(z) > _GAUSSIAN_CUTOFF_Z:
        return 0.0
    return math.exp(-0.5 * z * z)


def age_factor(age: float) -> float:
    return clamp(1 - max(0.0, age - AGE_GRACE_YEARS) * AGE_DECAY_PER_YEAR, AGE_FACTOR_FLOOR, 1.0)


def factor_values(inputs: HealthInputs) -> Dict[str, float]:
    """Each factor normalized to [0, 1], keyed like WeightProfile fields."""
    _validate(inputs)
    return {
        "activity": clamp(gaussian(inputs.active_minutes, ACTIVITY.mu, ACTIVITY.sigma), 0.0, 1.0),
        "condition": clamp(gaussian(inputs.body_condition_score, CONDITION.mu, CONDITION.sigma), 0.0, 1.0),
        "sleep": clamp(gaussian(inputs.sleep_hours, SLEEP.mu, SLEEP.sigma), 0.0, 1.0),
        "pulse": clamp(gaussian(inputs.resting_heart_rate, PULSE.mu, PULSE.sigma), 0.0, 1.0),
        "age": age_factor(inputs.age),
        "weight": 1.0,
    }


def health_score(inputs: HealthInputs, profile: Optional[WeightProfile] = None) -> int:
    """
    Weighted sum of factor values, scaled to 0-100 and rounded.

    Raises:
        InvalidInput: if any input is not a finite number.
    """
    return _score(factor_values(inputs), profile or WEIGHT_PROFILES[DEFAULT_PROFILE])


def classify(score: int) -> HealthTier:
    """
    ≥ 80 → EXCELLENT, 60-79 → GOOD, < 60 → NEEDS_ATTENTION.
    Lower bounds are inclusive.
    """
    for boundary, tier in _TIER_BOUNDARIES:
        if score >= boundary:
            return tier
    return HealthTier.NEEDS_ATTENTION


def evaluate(inputs: HealthInputs, profile: Optional[WeightProfile] = None) -> HealthResult:
    """Score and classify in one call."""
    factors = factor_values(inputs)
    score = _score(factors, profile or WEIGHT_PROFILES[DEFAULT_PROFILE])
    return HealthResult(score=score, tier=classify(score), factors=factors)


def get_profile(name: str) -> WeightProfile:
    try:
        return WEIGHT_PROFILES[name]
    except KeyError:
        raise ValueError(
            f"Unknown health profile {name!r}; expected one of {sorted(WEIGHT_PROFILES)}"
        ) from None


# ─── Internal helpers ─────────────────────────────────────────────────────────

def _score(factors: Dict[str, float], profile: WeightProfile) -> int:
    weights = profile.as_dict()
    total = sum(factors[name] * weights[name] for name in weights)
    return int(clamp(round_half_up(total * 100), 0, 100))


def _coerce(name: str, value: Any) -> float:
    if isinstance(value, bool):
        raise InvalidInput(f"{name} must be a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(number):
        raise InvalidInput(f"{name} must be finite, got {value!r}")
    return number


def _validate(inputs: HealthInputs) -> None:
    for name in _FIELDS:
        _coerce(name, getattr(inputs, name))
