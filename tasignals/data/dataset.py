"""
OHLCV dataset container and series helpers.

Every indicator reads its inputs through OHLCVDataset, which holds a private
copy of the caller's data so no computation can alter caller-owned lists,
arrays or DataFrames.
"""
from typing import Any, Iterable, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from tasignals.exceptions import InvalidDataError, InsufficientDataError

FIELDS = ("open", "high", "low", "close", "volume")

# Accepted column spellings when building from a DataFrame
_ALIASES = {
    "open": ("open", "Open", "OPEN"),
    "high": ("high", "High", "HIGH"),
    "low": ("low", "Low", "LOW"),
    "close": ("close", "Close", "CLOSE", "Adj Close"),
    "volume": ("volume", "Volume", "VOLUME"),
}


def as_series(values: Any, name: Optional[str] = None) -> pd.Series:
    """
    Convert a sequence of numbers into a float64 Series (oldest first).

    The result never shares memory with the input.
    """
    if values is None:
        raise InvalidDataError(f"{name or 'series'} is missing")

    try:
        if isinstance(values, pd.Series):
            series = values.astype("float64").copy()
        else:
            series = pd.Series(np.asarray(list(values), dtype="float64"))
    except (TypeError, ValueError) as e:
        raise InvalidDataError(f"{name or 'series'} is not numeric: {e}") from e

    if name is not None:
        series.name = name
    return series


class OHLCVDataset:
    """
    One symbol's historical bars as parallel, index-aligned series.

    Any subset of open/high/low/close/volume may be present; indicators
    declare the fields they need through require().
    """

    __slots__ = ("_frame",)

    def __init__(self, frame: pd.DataFrame):
        self._frame = frame

    @classmethod
    def from_mapping(cls, data: Mapping[str, Iterable[float]]) -> "OHLCVDataset":
        """Build from a mapping with keys open/high/low/close/volume"""
        if data is None:
            raise InvalidDataError("dataset is missing")

        columns = {}
        for key in FIELDS:
            if key in data and data[key] is not None:
                columns[key] = as_series(data[key], name=key).reset_index(drop=True)

        lengths = {key: len(series) for key, series in columns.items()}
        if len(set(lengths.values())) > 1:
            raise InvalidDataError(f"dataset fields have different lengths: {lengths}")

        return cls(pd.DataFrame(columns))

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> "OHLCVDataset":
        """Build from a DataFrame with lower-case or capitalised OHLCV columns"""
        if df is None:
            raise InvalidDataError("dataset is missing")

        columns = {}
        for key, aliases in _ALIASES.items():
            for alias in aliases:
                if alias in df.columns:
                    columns[key] = as_series(df[alias], name=key)
                    break

        return cls(pd.DataFrame(columns, index=df.index))

    @classmethod
    def coerce(cls, data: Any) -> "OHLCVDataset":
        """Accept an OHLCVDataset, a DataFrame or a mapping"""
        if isinstance(data, OHLCVDataset):
            return data
        if isinstance(data, pd.DataFrame):
            return cls.from_dataframe(data)
        if isinstance(data, Mapping):
            return cls.from_mapping(data)
        raise InvalidDataError(f"unsupported dataset type: {type(data).__name__}")

    def __len__(self) -> int:
        return len(self._frame)

    def __repr__(self) -> str:
        return f"OHLCVDataset(fields={list(self.fields)}, bars={len(self)})"

    @property
    def fields(self) -> Sequence[str]:
        return tuple(self._frame.columns)

    @property
    def index(self) -> pd.Index:
        return self._frame.index

    def has(self, field: str) -> bool:
        return field in self._frame.columns

    def field(self, name: str) -> pd.Series:
        """Copy of one field"""
        if name not in self._frame.columns:
            raise InvalidDataError(f"dataset has no '{name}' field")
        return self._frame[name].copy()

    @property
    def open(self) -> pd.Series:
        return self.field("open")

    @property
    def high(self) -> pd.Series:
        return self.field("high")

    @property
    def low(self) -> pd.Series:
        return self.field("low")

    @property
    def close(self) -> pd.Series:
        return self.field("close")

    @property
    def volume(self) -> pd.Series:
        return self.field("volume")

    def require(self, fields: Iterable[str], min_length: int = 1, indicator: str = "indicator") -> None:
        """
        Check the fields an indicator needs.

        Raises:
            InvalidDataError: a field is missing or empty
            InsufficientDataError: fewer than min_length bars
        """
        for name in fields:
            if name not in self._frame.columns:
                raise InvalidDataError(f"{indicator} requires '{name}' data")
            if self._frame[name].empty:
                raise InvalidDataError(f"{indicator} requires non-empty '{name}' data")

        if len(self) < min_length:
            raise InsufficientDataError(indicator, min_length, len(self))

    def to_dataframe(self) -> pd.DataFrame:
        return self._frame.copy()
