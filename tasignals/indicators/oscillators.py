"""
Oscillator Indicators - Momentum-based indicators computed natively.

Includes:
- Stochastic RSI (stochastic transform of the provider's RSI)
- Awesome Oscillator
"""

from typing import Optional

import numpy as np
import pandas as pd

from config.settings import AO_LONG_PERIOD, AO_SHORT_PERIOD, STOCH_RSI_PERIOD
from tasignals.data.dataset import OHLCVDataset
from tasignals.exceptions import InsufficientDataError

from .library import latest, returns_result, to_scalar
from .moving_averages import MovingAverageKind, apply_to_defined, compute_ma
from .provider import IndicatorProvider, get_default_provider


def _stochastic_window(rsi: pd.Series, period: int) -> pd.Series:
    if len(rsi) < period:
        raise InsufficientDataError("StochRSI", period, len(rsi))

    values = rsi.to_numpy(dtype=float)
    out = np.full(len(values), np.nan)

    for i in range(period - 1, len(values)):
        window = values[i - period + 1:i + 1]
        high, low = window.max(), window.min()
        out[i] = round((values[i] - low) / (high - low), 2) if high != low else 0.0

    return pd.Series(out, index=rsi.index)


@returns_result("StochRSI")
def stoch_rsi(data, time_period: int = STOCH_RSI_PERIOD, return_all: bool = False,
              provider: Optional[IndicatorProvider] = None):
    """
    Stochastic RSI

    Position of the latest RSI inside the range of the last
    ``time_period`` RSI values, on a 0-1 scale.
    - above 0.80: overbought
    - below 0.20: oversold

    Computed from the provider's RSI rather than a dedicated StochRSI
    function.
    """
    dataset = OHLCVDataset.coerce(data)
    dataset.require(["close"], min_length=time_period + 1, indicator="StochRSI")

    provider = provider or get_default_provider()
    rsi = provider.compute("RSI", dataset, {"time_period": time_period})

    values = apply_to_defined(rsi, lambda tail: _stochastic_window(tail, time_period))
    return values if return_all else to_scalar(latest(values))


@returns_result("AwesomeOscillator")
def awesome_oscillator(data, long_period: int = AO_LONG_PERIOD, short_period: int = AO_SHORT_PERIOD,
                       return_all: bool = False):
    """
    Awesome Oscillator (AO)

    AO = SMA(mid, short) - SMA(mid, long) with mid = (high - low) / 2,
    following https://www.tradingview.com/wiki/Awesome_Oscillator_(AO).
    A momentum indicator; the signal layer watches its zero-line crossover.

    The mid series is built locally; the caller's dataset is left untouched.

    Returns:
        {"previous", "current"} oscillator values, or the full series
        when return_all is set
    """
    dataset = OHLCVDataset.coerce(data)
    dataset.require(["high", "low"], min_length=long_period + 1, indicator="AwesomeOscillator")

    mid = (dataset.high - dataset.low) / 2
    oscillator = (compute_ma(mid, MovingAverageKind.SMA, short_period)
                  - compute_ma(mid, MovingAverageKind.SMA, long_period))

    if return_all:
        return oscillator

    return {
        "previous": to_scalar(oscillator.iloc[-2]),
        "current": to_scalar(oscillator.iloc[-1]),
    }
