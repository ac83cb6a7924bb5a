"""Data format helpers for rate tables and Parquet I/O."""

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from evplan_engine.core.constants import COL_END, COL_PRICE, COL_START, RATE_COLUMNS
from evplan_engine.core.schemas import RateInterval


def ensure_columns(df: pd.DataFrame, required_columns: list[str]) -> None:
    """Ensure dataframe has required columns.

    Args:
        df: DataFrame to check
        required_columns: List of required column names

    Raises:
        ValueError: If any required columns are missing
    """
    missing = set(required_columns) - set(df.columns)
    if missing:
        raise ValueError(f"Missing required columns: {missing}")


def rates_from_frame(df: pd.DataFrame) -> list[RateInterval]:
    """Convert a rate table dataframe into rate intervals.

    Args:
        df: DataFrame with start, end and price columns

    Returns:
        Rate intervals in row order
    """
    ensure_columns(df, RATE_COLUMNS)

    starts = pd.to_datetime(df[COL_START], utc=True)
    ends = pd.to_datetime(df[COL_END], utc=True)

    return [
        RateInterval(start=start.to_pydatetime(), end=end.to_pydatetime(), price=float(price))
        for start, end, price in zip(starts, ends, df[COL_PRICE])
    ]


def rates_to_frame(rates: list[RateInterval]) -> pd.DataFrame:
    """Convert rate intervals into a rate table dataframe."""
    df = pd.DataFrame(
        [[rate.start, rate.end, rate.price] for rate in rates],
        columns=RATE_COLUMNS,
    )
    for col in [COL_START, COL_END]:
        df[col] = pd.to_datetime(df[col], utc=True)
    return df


def read_parquet_rates(path: str) -> pd.DataFrame:
    """Read a rate table from Parquet file.

    Args:
        path: Path to Parquet file

    Returns:
        DataFrame with UTC start and end columns
    """
    df = pd.read_parquet(path)
    ensure_columns(df, RATE_COLUMNS)

    for col in [COL_START, COL_END]:
        df[col] = pd.to_datetime(df[col], utc=True)

    return df


def write_parquet_rates(df: pd.DataFrame, path: str) -> None:
    """Write a rate table to Parquet file.

    Args:
        df: DataFrame with start, end and price columns
        path: Output path
    """
    ensure_columns(df, RATE_COLUMNS)

    table = pa.Table.from_pandas(df[RATE_COLUMNS], preserve_index=False)
    pq.write_table(table, path, compression="snappy")


def write_parquet_timeseries(df: pd.DataFrame, path: str) -> None:
    """Write a timestamp-indexed frame to Parquet file.

    Args:
        df: DataFrame with DatetimeIndex
        path: Output path
    """
    # Ensure index has the right name before resetting
    df_copy = df.copy()
    df_copy.index.name = "timestamp"

    # Reset index to save timestamp as column
    df_out = df_copy.reset_index()

    table = pa.Table.from_pandas(df_out)
    pq.write_table(table, path, compression="snappy")
