"""State of charge based remaining-duration models."""

from datetime import timedelta
from typing import Protocol


class RemainingDurationModel(Protocol):
    """Protocol for models that estimate time to reach a target SoC."""

    def remaining_charge_duration(
        self, current_soc: float, target_soc: float, max_power_w: float
    ) -> timedelta:
        ...


class CapacitySocModel:
    """Remaining duration from battery capacity at constant power.

    Charge curve effects near full are added separately by the estimator.
    """

    def __init__(self, capacity_kwh: float):
        if capacity_kwh <= 0:
            raise ValueError(f"Capacity must be positive, got {capacity_kwh}")
        self.capacity_kwh = capacity_kwh

    def remaining_charge_energy(self, current_soc: float, target_soc: float) -> float:
        """Energy in kWh the battery still needs to reach the target."""
        if target_soc <= current_soc:
            return 0.0
        return (target_soc - current_soc) / 100 * self.capacity_kwh

    def remaining_charge_duration(
        self, current_soc: float, target_soc: float, max_power_w: float
    ) -> timedelta:
        if max_power_w <= 0:
            return timedelta()
        energy_kwh = self.remaining_charge_energy(current_soc, target_soc)
        return timedelta(hours=energy_kwh * 1e3 / max_power_w)
