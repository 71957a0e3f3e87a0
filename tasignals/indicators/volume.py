"""
Volume Indicators - Volume-based technical indicators.

Includes:
- OBV (On-Balance Volume)
"""

import numpy as np
import pandas as pd

from tasignals.data.dataset import OHLCVDataset

from .library import latest, returns_result, to_scalar


@returns_result("OBV")
def obv(data, return_all: bool = True):
    """
    On-Balance Volume (OBV)

    Cumulative volume indicator that adds volume on up days and
    subtracts on down days. Measures buying/selling pressure; volume
    is assumed to precede price on confirmation, divergence and breakouts.

    Args:
        data: OHLCV dataset (close and volume are used)
        return_all: Full series (default) or the latest value

    Returns:
        IndicatorResult with the OBV series or its latest value
    """
    dataset = OHLCVDataset.coerce(data)
    dataset.require(["close", "volume"], indicator="OBV")

    close = dataset.close.to_numpy(dtype=float)
    volume = dataset.volume.to_numpy(dtype=float)

    values = np.empty(len(close))
    values[0] = volume[0]

    for i in range(1, len(close)):
        if close[i] > close[i-1]:
            values[i] = values[i-1] + volume[i]
        elif close[i] < close[i-1]:
            values[i] = values[i-1] - volume[i]
        else:
            values[i] = values[i-1]

    series = pd.Series(values, index=dataset.index, name="OBV")
    return series if return_all else to_scalar(latest(series))
