"""
Moving Average Engine - smoothing functions shared by every indicator.

Includes:
- SMA (Simple Moving Average)
- EMA (Exponential Moving Average, seeded with the SMA of the first window)
- WMA (Weighted Moving Average)
- DEMA / TEMA (Double / Triple Exponential Moving Average)
- TRIMA (Triangular Moving Average)
- KAMA (Kaufman's Adaptive Moving Average)
- MAMA / FAMA (MESA Adaptive Moving Average)
- T3 (Tillson's sextuple-smoothed EMA)

All outputs keep the input's length and index; warm-up bars are NaN.
"""

import math
from enum import Enum
from typing import Any, Dict, Optional, Union

import numpy as np
import pandas as pd

from config.settings import (
    DEFAULT_MA_PERIOD,
    KAMA_FAST_PERIOD,
    KAMA_SLOW_PERIOD,
    MA_UNKNOWN_KIND_FALLBACK,
    MAMA_FAST_LIMIT,
    MAMA_SLOW_LIMIT,
    T3_PERIOD,
    T3_VOLUME_FACTOR,
)
from tasignals.data.dataset import as_series
from tasignals.exceptions import InsufficientDataError, InvalidDataError, UnknownVariantError
from tasignals.utils.logger import logger

from .cycle import hilbert_components
from .library import latest, returns_result, to_scalar

# MAMA needs 32 bars before the first defined value
MAMA_LOOKBACK = 32


class MovingAverageKind(Enum):
    """Supported moving-average algorithms"""
    SMA = "sma"
    EMA = "ema"
    WMA = "wma"
    DEMA = "dema"
    TEMA = "tema"
    TRIMA = "trima"
    KAMA = "kama"
    MAMA = "mama"
    T3 = "t3"

    @classmethod
    def resolve(cls, kind: Union["MovingAverageKind", str, None],
                allow_fallback: Optional[bool] = None) -> "MovingAverageKind":
        """
        Map a kind name onto the enum.

        Unknown names resolve to SMA with a warning when fallback is allowed
        (config MA_UNKNOWN_KIND_FALLBACK by default), otherwise raise
        UnknownVariantError.
        """
        if isinstance(kind, cls):
            return kind

        if allow_fallback is None:
            allow_fallback = MA_UNKNOWN_KIND_FALLBACK

        try:
            return cls(str(kind).strip().lower())
        except ValueError:
            if allow_fallback:
                logger.warning(f"Unknown moving average kind '{kind}', falling back to SMA")
                return cls.SMA
            raise UnknownVariantError(f"unknown moving average kind '{kind}'")


def min_length(kind: MovingAverageKind, period: int, **options) -> int:
    """Number of samples needed before the first defined value"""
    if kind in (MovingAverageKind.SMA, MovingAverageKind.EMA,
                MovingAverageKind.WMA, MovingAverageKind.TRIMA):
        return period
    if kind == MovingAverageKind.DEMA:
        return 2 * period - 1
    if kind == MovingAverageKind.TEMA:
        return 3 * period - 2
    if kind == MovingAverageKind.KAMA:
        return period + 1
    if kind == MovingAverageKind.MAMA:
        return MAMA_LOOKBACK + 1
    if kind == MovingAverageKind.T3:
        return 6 * (period - 1) + 1
    return period


def _check(name: str, values: pd.Series, required: int) -> None:
    if len(values) < required:
        raise InsufficientDataError(name, required, len(values))


def _sma(values: pd.Series, period: int) -> pd.Series:
    _check("SMA", values, period)
    return values.rolling(window=period).mean()


def _ema(values: pd.Series, period: int) -> pd.Series:
    _check("EMA", values, period)
    data = values.to_numpy(dtype=float)
    out = np.full(len(data), np.nan)
    alpha = 2.0 / (period + 1)

    out[period - 1] = data[:period].mean()
    for i in range(period, len(data)):
        out[i] = alpha * data[i] + (1 - alpha) * out[i - 1]

    return pd.Series(out, index=values.index)


def _ema_defined(values: pd.Series, period: int) -> pd.Series:
    """EMA over the defined (non-NaN) tail of a series"""
    return apply_to_defined(values, lambda tail: _ema(tail, period))


def _wma(values: pd.Series, period: int) -> pd.Series:
    _check("WMA", values, period)
    weights = np.arange(1, period + 1, dtype=float)
    total = weights.sum()
    return values.rolling(window=period).apply(lambda x: np.dot(x, weights) / total, raw=True)


def _dema(values: pd.Series, period: int) -> pd.Series:
    _check("DEMA", values, 2 * period - 1)
    ema1 = _ema(values, period)
    ema2 = _ema_defined(ema1, period)
    return 2 * ema1 - ema2


def _tema(values: pd.Series, period: int) -> pd.Series:
    _check("TEMA", values, 3 * period - 2)
    ema1 = _ema(values, period)
    ema2 = _ema_defined(ema1, period)
    ema3 = _ema_defined(ema2, period)
    return 3 * ema1 - 3 * ema2 + ema3


def _trima(values: pd.Series, period: int) -> pd.Series:
    _check("TRIMA", values, period)
    if period % 2 == 1:
        first = second = (period + 1) // 2
    else:
        first = period // 2
        second = period // 2 + 1
    return values.rolling(window=first).mean().rolling(window=second).mean()


def _kama(values: pd.Series, period: int,
          fast_period: int = KAMA_FAST_PERIOD, slow_period: int = KAMA_SLOW_PERIOD) -> pd.Series:
    _check("KAMA", values, period + 1)
    data = values.to_numpy(dtype=float)
    out = np.full(len(data), np.nan)

    fast = 2.0 / (fast_period + 1)
    slow = 2.0 / (slow_period + 1)
    path = np.abs(np.diff(data))

    kama = data[period - 1]
    for i in range(period, len(data)):
        change = abs(data[i] - data[i - period])
        volatility = path[i - period:i].sum()
        efficiency = change / volatility if volatility != 0 else 0.0
        smoothing = (efficiency * (fast - slow) + slow) ** 2
        kama = kama + smoothing * (data[i] - kama)
        out[i] = kama

    return pd.Series(out, index=values.index)


def _mama(values: pd.Series, fast_limit: float = MAMA_FAST_LIMIT,
          slow_limit: float = MAMA_SLOW_LIMIT) -> Dict[str, pd.Series]:
    """
    Ehlers' MESA Adaptive Moving Average.

    The smoothing constant follows the rate of change of the phase measured
    by a Hilbert-transform discriminator: fast phase changes push alpha
    towards fast_limit, slow ones towards slow_limit.
    """
    _check("MAMA", values, MAMA_LOOKBACK + 1)
    price = values.to_numpy(dtype=float)
    n = len(price)

    components = hilbert_components(price)
    i1 = components["i1"]
    q1 = components["q1"]

    phase = np.zeros(n)
    mama = np.zeros(n)
    fama = np.zeros(n)

    for i in range(n):
        if i1[i] != 0:
            phase[i] = math.degrees(math.atan(q1[i] / i1[i]))
        elif i > 0:
            phase[i] = phase[i - 1]

        delta_phase = max((phase[i - 1] if i > 0 else 0.0) - phase[i], 1.0)
        alpha = max(fast_limit / delta_phase, slow_limit)

        if i == 0:
            mama[i] = price[i]
            fama[i] = price[i]
        else:
            mama[i] = alpha * price[i] + (1 - alpha) * mama[i - 1]
            fama[i] = 0.5 * alpha * mama[i] + (1 - 0.5 * alpha) * fama[i - 1]

    mama[:MAMA_LOOKBACK] = np.nan
    fama[:MAMA_LOOKBACK] = np.nan

    return {
        "mama": pd.Series(mama, index=values.index),
        "fama": pd.Series(fama, index=values.index),
    }


def _t3(values: pd.Series, period: int = T3_PERIOD, volume_factor: float = T3_VOLUME_FACTOR) -> pd.Series:
    _check("T3", values, 6 * (period - 1) + 1)
    v = volume_factor
    c1 = -v ** 3
    c2 = 3 * v ** 2 + 3 * v ** 3
    c3 = -6 * v ** 2 - 3 * v - 3 * v ** 3
    c4 = 1 + 3 * v + v ** 3 + 3 * v ** 2

    e1 = _ema(values, period)
    e2 = _ema_defined(e1, period)
    e3 = _ema_defined(e2, period)
    e4 = _ema_defined(e3, period)
    e5 = _ema_defined(e4, period)
    e6 = _ema_defined(e5, period)

    return c1 * e6 + c2 * e5 + c3 * e4 + c4 * e3


def apply_to_defined(series: pd.Series, func) -> Any:
    """
    Run func over the series with its leading NaN warm-up removed, then
    re-align the output (Series or dict of Series) to the full index.
    """
    defined = series.notna().to_numpy()
    if not defined.any():
        raise InvalidDataError("series has no defined values")

    start = int(np.argmax(defined))
    result = func(series.iloc[start:])

    def realign(values: pd.Series) -> pd.Series:
        out = np.full(len(series), np.nan)
        out[start:] = values.to_numpy(dtype=float)
        return pd.Series(out, index=series.index)

    if isinstance(result, dict):
        return {key: realign(value) for key, value in result.items()}
    return realign(result)


def compute_ma(values: pd.Series, kind: Union[MovingAverageKind, str] = MovingAverageKind.SMA,
               period: int = DEFAULT_MA_PERIOD, allow_fallback: Optional[bool] = None,
               **options) -> Union[pd.Series, Dict[str, pd.Series]]:
    """
    Compute a moving average over a float Series.

    Raises:
        InsufficientDataError: not enough samples for the kind/period
        UnknownVariantError: unknown kind with fallback disabled
    """
    kind = MovingAverageKind.resolve(kind, allow_fallback)
    if period is None or period < 1:
        raise InvalidDataError(f"{kind.name} period must be a positive integer, got {period}")

    if kind == MovingAverageKind.SMA:
        return _sma(values, period)
    if kind == MovingAverageKind.EMA:
        return _ema(values, period)
    if kind == MovingAverageKind.WMA:
        return _wma(values, period)
    if kind == MovingAverageKind.DEMA:
        return _dema(values, period)
    if kind == MovingAverageKind.TEMA:
        return _tema(values, period)
    if kind == MovingAverageKind.TRIMA:
        return _trima(values, period)
    if kind == MovingAverageKind.KAMA:
        return _kama(values, period,
                     fast_period=options.get("fast_period", KAMA_FAST_PERIOD),
                     slow_period=options.get("slow_period", KAMA_SLOW_PERIOD))
    if kind == MovingAverageKind.MAMA:
        return _mama(values,
                     fast_limit=options.get("fast_limit", MAMA_FAST_LIMIT),
                     slow_limit=options.get("slow_limit", MAMA_SLOW_LIMIT))
    return _t3(values, period, volume_factor=options.get("volume_factor", T3_VOLUME_FACTOR))


def _finish(values: Union[pd.Series, Dict[str, pd.Series]], return_all: bool):
    if return_all:
        return values
    if isinstance(values, dict):
        return {key: to_scalar(latest(series)) for key, series in values.items()}
    return to_scalar(latest(values))


@returns_result("MovingAverage")
def moving_average(series, kind: Union[MovingAverageKind, str] = MovingAverageKind.SMA,
                   time_period: int = DEFAULT_MA_PERIOD, return_all: bool = False,
                   allow_fallback: Optional[bool] = None, **options):
    """
    Moving average of a numeric series.

    Args:
        series: Sequence of floats, oldest first
        kind: MovingAverageKind or its name
        time_period: Window length
        return_all: Full series (True) or the latest value (False)
        allow_fallback: Resolve unknown kinds to SMA (defaults to config)
        **options: fast_period/slow_period (KAMA), fast_limit/slow_limit
            (MAMA), volume_factor (T3)

    Returns:
        IndicatorResult with a Series, a scalar, or for MAMA a
        {"mama", "fama"} dict of either.
    """
    values = as_series(series, name="series")
    if values.empty:
        raise InvalidDataError("moving average requires a non-empty series")

    return _finish(compute_ma(values, kind, time_period, allow_fallback, **options), return_all)


def sma(series, time_period: int = DEFAULT_MA_PERIOD, return_all: bool = False):
    """Simple Moving Average"""
    return moving_average(series, MovingAverageKind.SMA, time_period, return_all)


def ema(series, time_period: int = DEFAULT_MA_PERIOD, return_all: bool = False):
    """Exponential Moving Average; more weight on the latest data"""
    return moving_average(series, MovingAverageKind.EMA, time_period, return_all)


def wma(series, time_period: int = DEFAULT_MA_PERIOD, return_all: bool = False):
    """Weighted Moving Average; weights 1..period from oldest to newest"""
    return moving_average(series, MovingAverageKind.WMA, time_period, return_all)


def dema(series, time_period: int = DEFAULT_MA_PERIOD, return_all: bool = False):
    """Double Exponential Moving Average"""
    return moving_average(series, MovingAverageKind.DEMA, time_period, return_all)


def tema(series, time_period: int = DEFAULT_MA_PERIOD, return_all: bool = False):
    """Triple Exponential Moving Average"""
    return moving_average(series, MovingAverageKind.TEMA, time_period, return_all)


def trima(series, time_period: int = DEFAULT_MA_PERIOD, return_all: bool = False):
    """Triangular Moving Average; weight concentrated at the window's center"""
    return moving_average(series, MovingAverageKind.TRIMA, time_period, return_all)


def kama(series, time_period: int = DEFAULT_MA_PERIOD, return_all: bool = False):
    """Kaufman's Adaptive Moving Average"""
    return moving_average(series, MovingAverageKind.KAMA, time_period, return_all)


def mama(series, fast_limit: float = MAMA_FAST_LIMIT, slow_limit: float = MAMA_SLOW_LIMIT,
         return_all: bool = False):
    """MESA Adaptive Moving Average; returns {"mama", "fama"}"""
    return moving_average(series, MovingAverageKind.MAMA, MAMA_LOOKBACK + 1, return_all,
                          fast_limit=fast_limit, slow_limit=slow_limit)


def t3(series, time_period: int = T3_PERIOD, volume_factor: float = T3_VOLUME_FACTOR,
       return_all: bool = False):
    """T3 Moving Average"""
    return moving_average(series, MovingAverageKind.T3, time_period, return_all,
                          volume_factor=volume_factor)
