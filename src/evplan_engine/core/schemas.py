"""Pydantic schemas for configuration and planning data."""

from datetime import datetime, timedelta
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_validator, model_validator

from evplan_engine.core.constants import DEFAULT_CHARGE_EFFICIENCY, DEFAULT_TARGET_SOC


class RateInterval(BaseModel):
    """A priced time window from a tariff or carbon forecast."""

    model_config = ConfigDict(frozen=True)

    start: AwareDatetime
    end: AwareDatetime
    price: float

    @model_validator(mode="after")
    def validate_order(self) -> "RateInterval":
        """Ensure the interval has a positive length."""
        if self.start >= self.end:
            raise ValueError(f"Interval start {self.start} must be before end {self.end}")
        return self

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


class EnergyGoal(BaseModel):
    """Charge a fixed amount of energy."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["energy"] = "energy"
    energy_kwh: float = Field(..., ge=0, description="Energy still to be charged in kWh")


class PercentageGoal(BaseModel):
    """Charge the vehicle to a target state of charge."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["soc"] = "soc"
    target_soc: Optional[float] = Field(default=None, ge=0, le=100, description="Target SoC in percent")

    @property
    def effective_target(self) -> float:
        """Target SoC, where an unset or zero target means a full charge."""
        if not self.target_soc:
            return DEFAULT_TARGET_SOC
        return self.target_soc


ChargingGoal = Annotated[Union[EnergyGoal, PercentageGoal], Field(discriminator="kind")]


class PlanState(BaseModel):
    """Planner memory carried from one tick to the next."""

    model_config = ConfigDict(frozen=True)

    active: bool = False
    active_slot_end: Optional[datetime] = None


class DecisionReason(str, Enum):
    """Rule that produced a plan activity decision."""

    NO_REQUIREMENT = "no_requirement"
    SLOT_ACTIVE = "slot_active"
    SLOT_TOO_SHORT = "slot_too_short"
    PAST_DEADLINE = "past_deadline"
    SLOT_CONTINUATION = "slot_continuation"
    SHORT_REMAINDER = "short_remainder"
    RESTART_IMMINENT = "restart_imminent"
    PLAN_PAUSED = "plan_paused"
    IDLE = "idle"
    PLANNER_ERROR = "planner_error"


class PlanDecision(BaseModel):
    """Outcome of one plan evaluation tick."""

    model_config = ConfigDict(frozen=True)

    active: bool
    state: PlanState
    projected_start: Optional[datetime] = None
    restart_imminent: bool = False
    required_duration: timedelta = timedelta()
    reason: DecisionReason


class ChargeRequest(BaseModel):
    """Per-tick inputs supplied by the owning control loop."""

    goal: ChargingGoal = Field(default_factory=PercentageGoal)
    target_time: Optional[AwareDatetime] = Field(default=None, description="Deadline for reaching the goal")
    current_soc: Optional[float] = Field(default=None, ge=0, le=100, description="Current vehicle SoC in percent")
    max_power_w: float = Field(..., ge=0, description="Current charging power ceiling in W")


class LoadpointConfig(BaseModel):
    """Charge point and vehicle configuration."""

    loadpoint_id: str = Field(..., description="Unique loadpoint identifier")
    max_power_w: float = Field(..., gt=0, description="Maximum charging power in W")
    capacity_kwh: float = Field(..., gt=0, description="Vehicle battery capacity in kWh")
    charge_efficiency: float = Field(
        default=DEFAULT_CHARGE_EFFICIENCY, gt=0, le=1, description="Round-trip charge efficiency"
    )
    small_slot_minutes: int = Field(default=10, ge=0, description="Slots shorter than this are not started")
    short_plan_minutes: int = Field(default=30, ge=0, description="Remaining work that keeps charging between slots")

    @property
    def small_slot_duration(self) -> timedelta:
        return timedelta(minutes=self.small_slot_minutes)

    @property
    def short_plan_duration(self) -> timedelta:
        return timedelta(minutes=self.short_plan_minutes)


class ScenarioConfig(BaseModel):
    """Simulation scenario configuration."""

    run_id: str = Field(..., description="Unique run identifier")
    start: AwareDatetime
    end: AwareDatetime
    tick_minutes: int = Field(default=5, gt=0, description="Control loop interval in minutes")
    target_time: Optional[AwareDatetime] = None
    initial_soc: float = Field(default=20.0, ge=0, le=100)
    goal: ChargingGoal = Field(default_factory=PercentageGoal)
    price_unit: str = Field(default="EUR/kWh")

    @field_validator("tick_minutes")
    @classmethod
    def validate_tick(cls, v: int) -> int:
        """Ensure ticks align with the hour."""
        if 60 % v != 0:
            raise ValueError(f"Tick {v} must divide 60 evenly")
        return v

    @model_validator(mode="after")
    def validate_window(self) -> "ScenarioConfig":
        if self.start >= self.end:
            raise ValueError(f"Scenario start {self.start} must be before end {self.end}")
        return self


class BundleMetadata(BaseModel):
    """Metadata for reproducibility tracking."""

    created_at: datetime = Field(default_factory=datetime.utcnow)
    evplan_version: str
