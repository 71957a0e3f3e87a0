"""
Trend Indicators - Trend and market-regime indicators computed natively.

Includes:
- High-Low Index (HLI)
- Market Meanness Index (MMI)
- Elder Ray (Bull/Bear power)
"""

from typing import Optional

import numpy as np
import pandas as pd

from config.settings import (
    ELDER_EMA_PERIOD,
    HLI_MA_PERIOD,
    HLI_PERIOD,
    MACD_FAST,
    MACD_SIGNAL,
    MACD_SLOW,
)
from tasignals.data.dataset import OHLCVDataset
from tasignals.exceptions import InvalidDataError

from .library import is_missing, latest, returns_result, round_half_away, to_scalar
from .moving_averages import MovingAverageKind, compute_ma
from .provider import IndicatorProvider, get_default_provider


def record_high_percent(high: np.ndarray, low: np.ndarray, time_period: int) -> np.ndarray:
    """
    Record High Percent = New Highs / (New Highs + New Lows) x 100

    The window for bar i starts at i and extends forward time_period bars
    (shorter near the end of the data). A bar is a new high when its high
    exceeds every earlier high in the window, a new low when its low is at
    or below every earlier low in the window.
    """
    total = len(high)
    rhp = np.zeros(total)

    for index in range(total):
        window_high = high[index:index + time_period]
        window_low = low[index:index + time_period]

        highwater = -np.inf
        new_highs = 0
        for value in window_high:
            if value > highwater:
                new_highs += 1
                highwater = value

        lowwater = np.inf
        new_lows = 0
        for value in window_low:
            if value <= lowwater:
                new_lows += 1
                lowwater = value

        records = new_highs + new_lows
        rhp[index] = 100.0 * new_highs / records if records else 0.0

    return rhp


@returns_result("HLI")
def high_low_index(data, time_period: int = HLI_PERIOD, ma_period: int = HLI_MA_PERIOD,
                   return_all: bool = False):
    """
    High-Low Index

    SMA(ma_period) of the Record High Percent.
    Readings consistently above 70 usually coincide with a strong uptrend,
    readings consistently below 30 with a strong downtrend.

    Returns:
        Full series, or the latest value rounded to an integer
    """
    dataset = OHLCVDataset.coerce(data)
    dataset.require(["high", "low"], min_length=ma_period, indicator="HLI")

    rhp = record_high_percent(dataset.high.to_numpy(dtype=float),
                              dataset.low.to_numpy(dtype=float), time_period)
    values = compute_ma(pd.Series(rhp, index=dataset.index), MovingAverageKind.SMA, ma_period)

    if return_all:
        return values

    current = latest(values)
    if is_missing(current):
        raise InvalidDataError("HLI has no defined value for the latest bar")
    return round_half_away(current)


@returns_result("MMI")
def market_meanness_index(data) -> float:
    """
    Market Meanness Index - tendency to revert to the mean.

    Counts closes above the average that rose from the previous close and
    closes below the average that fell from it:
    MMI = 100 * (rises + falls) / (n - 1)

    - MMI > 75: not trending
    - MMI < 75: trending
    """
    dataset = OHLCVDataset.coerce(data)
    dataset.require(["close"], min_length=2, indicator="MMI")

    closes = dataset.close.to_numpy(dtype=float)
    size = len(closes)
    average = closes.mean()

    rises, falls = 0, 0
    current = 0.0

    for close in closes:
        if close > average and close > current:
            rises += 1
        elif close < average and close < current:
            falls += 1

        current = close

    return 100.0 * (rises + falls) / (size - 1)


@returns_result("ElderRay")
def elder_ray(data, macd_fast_period: int = MACD_FAST, macd_slow_period: int = MACD_SLOW,
              macd_signal_period: int = MACD_SIGNAL, ema_period: int = ELDER_EMA_PERIOD,
              provider: Optional[IndicatorProvider] = None):
    """
    Elder Ray - Bull/Bear power

    The EMA (13 bars by default) stands for the consensus market value.
    Bull Power = high - EMA, Bear Power = low - EMA; the MACD histogram
    (raw - signal) is returned alongside for confirmation.

    Returns:
        {"macd", "ema", "bull", "bear", "high", "low"} latest values
    """
    dataset = OHLCVDataset.coerce(data)
    dataset.require(["high", "low", "close"], min_length=max(macd_slow_period, ema_period),
                    indicator="ElderRay")

    provider = provider or get_default_provider()
    macds = provider.compute("MACD", dataset, {
        "fast_period": macd_fast_period,
        "slow_period": macd_slow_period,
        "signal_period": macd_signal_period,
    })
    macd = latest(macds["raw"]) - latest(macds["signal"])
    if is_missing(macd):
        raise InvalidDataError("ElderRay needs a defined MACD signal line")

    ema_current = latest(compute_ma(dataset.close, MovingAverageKind.EMA, ema_period))

    current_high = latest(dataset.high)
    current_low = latest(dataset.low)

    return {
        "macd": to_scalar(macd),
        "ema": to_scalar(ema_current),
        "bull": to_scalar(current_high - ema_current),
        "bear": to_scalar(current_low - ema_current),
        "high": to_scalar(current_high),
        "low": to_scalar(current_low),
    }
