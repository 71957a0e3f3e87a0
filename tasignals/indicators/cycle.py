"""
Cycle Indicators - Ehlers' Hilbert Transform family.

hilbert_components() runs the homodyne discriminator shared by every
cycle measurement: the 4-bar weighted price, its in-phase / quadrature
components and the measured dominant cycle period. MAMA, the sinewave,
the instantaneous trendline and the trend-vs-cycle mode build on it.

Indicators:
- HT_SINE: sine / lead sine of the dominant cycle phase
- HT_TRENDLINE: instantaneous trendline
- HT_TRENDMODE: 1 while trending, 0 while cycling
"""

import math
from typing import Dict

import numpy as np
import pandas as pd

from tasignals.exceptions import InsufficientDataError

# Bars before the cycle measurements settle
HT_LOOKBACK = 63

# Price this far from the trendline (relative) forces trend mode
HT_TREND_DEVIATION = 0.015


def _lag(arr, i: int, k: int) -> float:
    return arr[i - k] if i - k >= 0 else 0.0


def _hilbert(arr, i: int, adjust: float) -> float:
    return (0.0962 * arr[i] + 0.5769 * _lag(arr, i, 2)
            - 0.5769 * _lag(arr, i, 4) - 0.0962 * _lag(arr, i, 6)) * adjust


def hilbert_components(price: np.ndarray) -> Dict[str, np.ndarray]:
    """
    Homodyne discriminator over a price array (oldest first).

    Returns:
        Dict of arrays: smooth, i1, q1, period, smooth_period
    """
    n = len(price)

    smooth = np.zeros(n)
    detrender = np.zeros(n)
    i1 = np.zeros(n)
    q1 = np.zeros(n)
    i2 = np.zeros(n)
    q2 = np.zeros(n)
    re = np.zeros(n)
    im = np.zeros(n)
    period = np.zeros(n)
    smooth_period = np.zeros(n)

    for i in range(n):
        smooth[i] = (4 * price[i] + 3 * _lag(price, i, 1)
                     + 2 * _lag(price, i, 2) + _lag(price, i, 3)) / 10.0
        adjust = 0.075 * _lag(period, i, 1) + 0.54

        detrender[i] = _hilbert(smooth, i, adjust)
        q1[i] = _hilbert(detrender, i, adjust)
        i1[i] = _lag(detrender, i, 3)

        j_i = _hilbert(i1, i, adjust)
        j_q = _hilbert(q1, i, adjust)

        i2[i] = 0.2 * (i1[i] - j_q) + 0.8 * _lag(i2, i, 1)
        q2[i] = 0.2 * (q1[i] + j_i) + 0.8 * _lag(q2, i, 1)

        re[i] = 0.2 * (i2[i] * _lag(i2, i, 1) + q2[i] * _lag(q2, i, 1)) + 0.8 * _lag(re, i, 1)
        im[i] = 0.2 * (i2[i] * _lag(q2, i, 1) - q2[i] * _lag(i2, i, 1)) + 0.8 * _lag(im, i, 1)

        prev_period = _lag(period, i, 1)
        current = prev_period
        if im[i] != 0 and re[i] != 0:
            angle = math.degrees(math.atan(im[i] / re[i]))
            if angle != 0:
                current = 360.0 / angle
        if prev_period > 0:
            current = min(current, 1.5 * prev_period)
            current = max(current, 0.67 * prev_period)
        current = min(max(current, 6.0), 50.0)
        period[i] = 0.2 * current + 0.8 * prev_period
        smooth_period[i] = 0.33 * period[i] + 0.67 * _lag(smooth_period, i, 1)

    return {
        "smooth": smooth,
        "i1": i1,
        "q1": q1,
        "period": period,
        "smooth_period": smooth_period,
    }


def _dc_phase(smooth: np.ndarray, i: int, smooth_period: float, previous: float) -> float:
    """Dominant cycle phase in degrees from a one-cycle DFT of the smoothed price"""
    cycle = int(smooth_period + 0.5)
    real = 0.0
    imag = 0.0
    for k in range(min(cycle, i + 1)):
        angle = math.radians(k * 360.0 / cycle)
        real += math.sin(angle) * smooth[i - k]
        imag += math.cos(angle) * smooth[i - k]

    phase = previous
    if abs(imag) > 0:
        phase = math.degrees(math.atan(real / imag))
    elif real < 0:
        phase -= 90.0
    elif real > 0:
        phase += 90.0

    phase += 90.0
    # Compensate for the one bar lag of the smoothed price
    phase += 360.0 / smooth_period
    if imag < 0:
        phase += 180.0
    if phase > 315.0:
        phase -= 360.0
    return phase


def cycle_state(price: np.ndarray) -> Dict[str, np.ndarray]:
    """
    Per-bar cycle measurements.

    Returns:
        Dict of arrays: smooth, smooth_period, phase, sine, lead_sine,
        trendline and trend_mode
    """
    components = hilbert_components(price)
    smooth = components["smooth"]
    smooth_period = components["smooth_period"]
    n = len(price)

    phase = np.zeros(n)
    sine = np.zeros(n)
    lead_sine = np.zeros(n)
    i_trend = np.zeros(n)
    trendline = np.zeros(n)
    trend_mode = np.zeros(n)

    days_in_trend = 0
    for i in range(n):
        phase[i] = _dc_phase(smooth, i, smooth_period[i], _lag(phase, i, 1))
        sine[i] = math.sin(math.radians(phase[i]))
        lead_sine[i] = math.sin(math.radians(phase[i] + 45.0))

        cycle = int(smooth_period[i] + 0.5)
        if cycle > 0:
            i_trend[i] = price[max(0, i - cycle + 1):i + 1].sum() / cycle
        trendline[i] = (4 * i_trend[i] + 3 * _lag(i_trend, i, 1)
                        + 2 * _lag(i_trend, i, 2) + _lag(i_trend, i, 3)) / 10.0

        trend = 1
        if i > 0:
            crossed_up = sine[i] > lead_sine[i] and sine[i - 1] <= lead_sine[i - 1]
            crossed_down = sine[i] < lead_sine[i] and sine[i - 1] >= lead_sine[i - 1]
            if crossed_up or crossed_down:
                days_in_trend = 0
                trend = 0
        days_in_trend += 1
        if days_in_trend < 0.5 * smooth_period[i]:
            trend = 0

        change = phase[i] - _lag(phase, i, 1)
        if 0.67 * 360.0 / smooth_period[i] < change < 1.5 * 360.0 / smooth_period[i]:
            trend = 0

        if trendline[i] != 0 and abs((smooth[i] - trendline[i]) / trendline[i]) >= HT_TREND_DEVIATION:
            trend = 1
        trend_mode[i] = trend

    return {
        "smooth": smooth,
        "smooth_period": smooth_period,
        "phase": phase,
        "sine": sine,
        "lead_sine": lead_sine,
        "trendline": trendline,
        "trend_mode": trend_mode,
    }


def _settled(name: str, values: np.ndarray, index: pd.Index) -> pd.Series:
    series = pd.Series(values, index=index, name=name)
    series.iloc[:HT_LOOKBACK] = np.nan
    return series


def _state(name: str, close: pd.Series) -> Dict[str, np.ndarray]:
    if len(close) <= HT_LOOKBACK:
        raise InsufficientDataError(name, HT_LOOKBACK + 1, len(close))
    return cycle_state(close.to_numpy(dtype=float))


def ht_sine(close: pd.Series) -> Dict[str, pd.Series]:
    """Hilbert Transform - SineWave: {"sine", "lead_sine"}"""
    state = _state("HT_SINE", close)
    return {
        "sine": _settled("sine", state["sine"], close.index),
        "lead_sine": _settled("lead_sine", state["lead_sine"], close.index),
    }


def ht_trendline(close: pd.Series) -> pd.Series:
    """Hilbert Transform - Instantaneous Trendline"""
    state = _state("HT_TRENDLINE", close)
    return _settled("trendline", state["trendline"], close.index)


def ht_trendmode(close: pd.Series) -> pd.Series:
    """Hilbert Transform - Trend vs Cycle Mode (1 = trend, 0 = cycle)"""
    state = _state("HT_TRENDMODE", close)
    return _settled("trend_mode", state["trend_mode"], close.index)
