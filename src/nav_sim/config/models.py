import os
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False
    sample_every: int = 1


# ----------------- WAYPOINTS ---------------------


class SequencerModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    depot_return_offset_deg: float = 1e-6
    dedup_decimals: int = 6
    nudge_step_deg: float = 1e-7

    @field_validator("depot_return_offset_deg", "nudge_step_deg")
    @classmethod
    def _positive(cls, v: float, info: ValidationInfo) -> float:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @model_validator(mode="after")
    def _offset_survives_rounding(self):
        # the return-depot clone must not round back onto the depot
        if round(self.depot_return_offset_deg, self.dedup_decimals) == 0:
            raise ValueError("depot_return_offset_deg vanishes at dedup_decimals precision")
        return self


# ----------------- TRACKING ---------------------


class TrackingModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    arrival_threshold_m: float = 50.0
    smoothing_alpha: float = 0.3
    max_speed_kmh: float = 120.0
    min_elapsed_s: float = 1.0  # floor for average-speed division
    fallback_speed_kmh: float = 40.0  # ETA when the backend sends no duration

    @field_validator("smoothing_alpha")
    @classmethod
    def _alpha(cls, v: float) -> float:
        if not 0.0 < v <= 1.0:
            raise ValueError("smoothing_alpha must be in (0, 1]")
        return v

    @field_validator("arrival_threshold_m", "max_speed_kmh", "min_elapsed_s")
    @classmethod
    def _nonneg(cls, v: float, info: ValidationInfo) -> float:
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v


class SimulationModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    base_period_s: float = 1.0
    multipliers: tuple[int, ...] = (1, 2, 4)
    default_multiplier: int = 1

    @model_validator(mode="after")
    def _check(self):
        if self.base_period_s <= 0:
            raise ValueError("base_period_s must be > 0")
        if not self.multipliers or any(m <= 0 for m in self.multipliers):
            raise ValueError("multipliers must be positive")
        if self.default_multiplier not in self.multipliers:
            raise ValueError(f"default_multiplier must be one of {self.multipliers}")
        return self


# ----------------- ROUTING SERVICE ---------------------


class RoutingHttpModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["http"] = "http"
    base_url: str
    suggest_path: str = "/routes/suggest"
    timeout_s: float = 10.0
    headers: dict[str, str] = Field(default_factory=dict)

    @field_validator("base_url")
    @classmethod
    def _expand(cls, v: str) -> str:
        v = os.path.expandvars(v)
        if not v or "$" in v:
            raise ValueError("base_url is empty or references an unset variable")
        return v


class RoutingStaticModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["static"] = "static"
    response: dict[str, Any]


RoutingUnion = Annotated[RoutingHttpModel | RoutingStaticModel, Field(discriminator="kind")]


# ------------------------------------------------------------------


class AppModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = "nav-sim"
    run_id: str = "local"
    epoch: tuple[int, int, int, int, int, int] | None = None  # None => wall clock at build
    vehicle_type_id: str | None = None
    log: LogModel = LogModel()
    sequencer: SequencerModel = SequencerModel()
    tracking: TrackingModel = TrackingModel()
    simulation: SimulationModel = SimulationModel()
    routing: RoutingUnion | None = None
