"""Canonical column names, units, thresholds and publication keys.

UNITS:
- Power: W (watts), as reported by chargers and meters
- Energy: kWh
- State of charge: percent (0-100)
- Prices: currency per kWh in the unit of the configured rate provider
- Durations: datetime.timedelta
- Timestamps: timezone-aware datetimes (UTC in bundles)

RATE TABLE COLUMNS:
- start: interval start (inclusive)
- end: interval end (exclusive)
- price: price or carbon intensity for the interval

A timestamp `now` lies inside an interval when start <= now < end.
"""

from datetime import timedelta

# Rate table columns
COL_START = "start"
COL_END = "end"
COL_PRICE = "price"

RATE_COLUMNS = [COL_START, COL_END, COL_PRICE]

# Simulation output columns
COL_TIMESTAMP = "timestamp"
COL_ACTIVE = "active"
COL_RESTART_IMMINENT = "restart_imminent"
COL_REASON = "reason"
COL_PROJECTED_START = "projected_start"
COL_REQUIRED_MINUTES = "required_minutes"
COL_POWER_W = "power_w"
COL_ENERGY_KWH = "energy_kwh"
COL_SOC = "soc"
COL_REMAINING_ENERGY_KWH = "remaining_energy_kwh"

# Remaining slot time below which a slot is not worth starting for
SMALL_SLOT_DURATION = timedelta(minutes=10)

# Remaining work below which an active plan keeps charging between slots
SHORT_PLAN_DURATION = timedelta(minutes=30)

# Default target when a percentage goal has none
DEFAULT_TARGET_SOC = 100.0

# Round-trip charge efficiency used when none is configured
DEFAULT_CHARGE_EFFICIENCY = 0.9

# Charge curve tapering bands: (soc threshold %, power threshold W, factor)
TAPER_HIGH_POWER = (80.0, 15000.0, 5.0)
TAPER_LOW_POWER = (90.0, 4000.0, 3.0)

# Publication keys
KEY_PLAN_ACTIVE = "planActive"
KEY_TARGET_TIME_ACTIVE = "targetTimeActive"
KEY_PROJECTED_START = "targetTimeProjectedStart"

# Tolerance for numerical comparisons
NUMERICAL_TOLERANCE = 1e-6
