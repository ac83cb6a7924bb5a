"""Rate provider implementations."""

from datetime import timedelta

import pandas as pd

from evplan_engine.core.clock import Clock
from evplan_engine.core.schemas import RateInterval


class StaticRateProvider:
    """Serves a fixed, already resolved rate table."""

    def __init__(self, rates: list[RateInterval], unit: str = "EUR/kWh"):
        self._rates = sorted(rates, key=lambda r: r.start)
        self._unit = unit

    def rates(self) -> list[RateInterval]:
        return list(self._rates)

    def unit(self) -> str:
        return self._unit


class DataFrameRateProvider:
    """Rate table backed by a dataframe.

    Expects start, end and price columns, as written by
    `evplan_engine.io.formats.write_parquet_rates`.
    """

    def __init__(self, rate_table: pd.DataFrame, unit: str = "EUR/kWh"):
        """Initialize with a rate table.

        Args:
            rate_table: DataFrame with start, end and price columns
            unit: Price unit of the table
        """
        from evplan_engine.io.formats import rates_from_frame

        self._rates = rates_from_frame(rate_table)
        self._unit = unit

    def rates(self) -> list[RateInterval]:
        return list(self._rates)

    def unit(self) -> str:
        return self._unit


class FixedPriceProvider:
    """Flat tariff provider.

    Returns a single interval at a constant price starting now and covering
    the forecast horizon.
    """

    def __init__(self, price: float, clock: Clock, unit: str = "EUR/kWh", horizon_hours: int = 48):
        self.price = price
        self.clock = clock
        self.horizon_hours = horizon_hours
        self._unit = unit

    def rates(self) -> list[RateInterval]:
        start = self.clock.now()
        end = start + timedelta(hours=self.horizon_hours)
        return [RateInterval(start=start, end=end, price=self.price)]

    def unit(self) -> str:
        return self._unit
