"""
Provider-backed indicator calculations.

Each function validates the dataset, asks the indicator provider for the
series and returns an IndicatorResult holding either the full series
(return_all=True) or the latest value. RSI, MFI, CCI, CMO and Aroon
Oscillator latest values are rounded to integers.
"""

from typing import Any, Dict, Iterable, Optional

import pandas as pd

from config.settings import (
    ADX_PERIOD,
    AROON_PERIOD,
    ATR_PERIOD,
    BBANDS_DEVIATIONS_DOWN,
    BBANDS_DEVIATIONS_UP,
    BBANDS_PERIOD,
    CCI_PERIOD,
    CMO_PERIOD,
    HT_TRENDLINE_LOOKBACK,
    HT_TRENDLINE_WMA_PERIOD,
    MACD_FAST,
    MACD_SIGNAL,
    MACD_SLOW,
    MFI_PERIOD,
    ROC_PERIOD,
    RSI_PERIOD,
    SAR_ACCELERATION,
    SAR_MAXIMUM,
    STOCH_FAST_D_PERIOD,
    STOCH_FAST_K_PERIOD,
    STOCH_SLOW_D_PERIOD,
    STOCH_SLOW_K_PERIOD,
    ULTOSC_PERIODS,
    WILLR_PERIOD,
)
from tasignals.data.dataset import OHLCVDataset
from tasignals.exceptions import InsufficientDataError, InvalidDataError

from .library import is_missing, latest, returns_result, round_half_away, to_scalar
from .moving_averages import MovingAverageKind, compute_ma
from .provider import IndicatorProvider, get_default_provider

HLC = ("high", "low", "close")


def _compute(name: str, data, params: Dict[str, Any], fields: Iterable[str],
             min_length: int, provider: Optional[IndicatorProvider]):
    dataset = OHLCVDataset.coerce(data)
    dataset.require(fields, min_length=min_length, indicator=name)
    return (provider or get_default_provider()).compute(name, dataset, params)


def _latest_value(name: str, series: pd.Series, rounded: bool = False):
    value = latest(series)
    if is_missing(value):
        raise InvalidDataError(f"{name} has no defined value for the latest bar")
    return round_half_away(value) if rounded else to_scalar(value)


def _finish(name: str, values, return_all: bool, rounded: bool = False):
    if return_all:
        return values
    if isinstance(values, dict):
        return {key: _latest_value(name, series) for key, series in values.items()}
    return _latest_value(name, values, rounded)


@returns_result("ATR")
def atr(data, time_period: int = ATR_PERIOD, return_all: bool = False,
        provider: Optional[IndicatorProvider] = None):
    """Average True Range"""
    values = _compute("ATR", data, {"time_period": time_period}, HLC, time_period, provider)
    return _finish("ATR", values, return_all)


@returns_result("ADX")
def adx(data, time_period: int = ADX_PERIOD, return_all: bool = False,
        provider: Optional[IndicatorProvider] = None):
    """
    Average Directional Movement Index

    Strength of the trend on a 0-100 scale; needs at least twice the
    period in bars.
    """
    values = _compute("ADX", data, {"time_period": time_period}, HLC, 2 * time_period, provider)
    return _finish("ADX", values, return_all)


@returns_result("PLUS_DI")
def plus_di(data, time_period: int = ADX_PERIOD, return_all: bool = False,
            provider: Optional[IndicatorProvider] = None):
    values = _compute("PLUS_DI", data, {"time_period": time_period}, HLC, time_period + 1, provider)
    return _finish("PLUS_DI", values, return_all)


@returns_result("MINUS_DI")
def minus_di(data, time_period: int = ADX_PERIOD, return_all: bool = False,
             provider: Optional[IndicatorProvider] = None):
    values = _compute("MINUS_DI", data, {"time_period": time_period}, HLC, time_period + 1, provider)
    return _finish("MINUS_DI", values, return_all)


@returns_result("BBANDS")
def bollinger_bands(data, time_period: int = BBANDS_PERIOD,
                    deviations_up: float = BBANDS_DEVIATIONS_UP,
                    deviations_down: float = BBANDS_DEVIATIONS_DOWN,
                    ma_type=MovingAverageKind.SMA, return_all: bool = False,
                    provider: Optional[IndicatorProvider] = None):
    """
    Bollinger Bands

    Returns:
        {"upper", "middle", "lower"} series or latest values
    """
    values = _compute("BBANDS", data, {
        "time_period": time_period,
        "deviations_up": deviations_up,
        "deviations_down": deviations_down,
        "ma_type": MovingAverageKind.resolve(ma_type),
    }, ["close"], time_period, provider)
    return _finish("BBANDS", values, return_all)


@returns_result("MACD")
def macd(data, fast_period: int = MACD_FAST, slow_period: int = MACD_SLOW,
         signal_period: int = MACD_SIGNAL, return_all: bool = False,
         provider: Optional[IndicatorProvider] = None):
    """
    Moving Average Convergence Divergence

    Returns:
        {"raw", "signal", "hist"} series or latest values
    """
    values = _compute("MACD", data, {
        "fast_period": fast_period,
        "slow_period": slow_period,
        "signal_period": signal_period,
    }, ["close"], slow_period, provider)
    return _finish("MACD", values, return_all)


@returns_result("MACDEXT")
def macd_ext(data, fast_period: int = MACD_FAST, fast_ma=MovingAverageKind.SMA,
             slow_period: int = MACD_SLOW, slow_ma=MovingAverageKind.SMA,
             signal_period: int = MACD_SIGNAL, signal_ma=MovingAverageKind.SMA,
             return_all: bool = False, provider: Optional[IndicatorProvider] = None):
    """MACD with controllable moving-average types and periods"""
    values = _compute("MACDEXT", data, {
        "fast_period": fast_period,
        "fast_ma": MovingAverageKind.resolve(fast_ma),
        "slow_period": slow_period,
        "slow_ma": MovingAverageKind.resolve(slow_ma),
        "signal_period": signal_period,
        "signal_ma": MovingAverageKind.resolve(signal_ma),
    }, ["close"], slow_period, provider)
    return _finish("MACDEXT", values, return_all)


@returns_result("RSI")
def rsi(data, time_period: int = RSI_PERIOD, return_all: bool = False,
        provider: Optional[IndicatorProvider] = None):
    """Relative Strength Index; latest value rounded to an integer"""
    values = _compute("RSI", data, {"time_period": time_period}, ["close"], time_period + 1, provider)
    return _finish("RSI", values, return_all, rounded=True)


@returns_result("STOCH")
def stoch(data, fast_k_period: int = STOCH_FAST_K_PERIOD, slow_k_period: int = STOCH_SLOW_K_PERIOD,
          slow_k_ma=MovingAverageKind.SMA, slow_d_period: int = STOCH_SLOW_D_PERIOD,
          slow_d_ma=MovingAverageKind.SMA, return_all: bool = False,
          provider: Optional[IndicatorProvider] = None):
    """
    Slow Stochastic

    Returns:
        {"slow_k", "slow_d"} series or latest values
    """
    values = _compute("STOCH", data, {
        "fast_k_period": fast_k_period,
        "slow_k_period": slow_k_period,
        "slow_k_ma": MovingAverageKind.resolve(slow_k_ma),
        "slow_d_period": slow_d_period,
        "slow_d_ma": MovingAverageKind.resolve(slow_d_ma),
    }, HLC, fast_k_period, provider)
    return _finish("STOCH", values, return_all)


@returns_result("STOCHF")
def stoch_f(data, fast_k_period: int = STOCH_FAST_K_PERIOD, fast_d_period: int = STOCH_FAST_D_PERIOD,
            fast_d_ma=MovingAverageKind.SMA, return_all: bool = False,
            provider: Optional[IndicatorProvider] = None):
    """
    Fast Stochastic

    Returns:
        {"fast_k", "fast_d"} series or latest values
    """
    values = _compute("STOCHF", data, {
        "fast_k_period": fast_k_period,
        "fast_d_period": fast_d_period,
        "fast_d_ma": MovingAverageKind.resolve(fast_d_ma),
    }, HLC, fast_k_period, provider)
    return _finish("STOCHF", values, return_all)


@returns_result("MFI")
def mfi(data, time_period: int = MFI_PERIOD, return_all: bool = False,
        provider: Optional[IndicatorProvider] = None):
    """Money Flow Index; latest value rounded to an integer"""
    values = _compute("MFI", data, {"time_period": time_period},
                      ["high", "low", "close", "volume"], time_period + 1, provider)
    return _finish("MFI", values, return_all, rounded=True)


@returns_result("SAR")
def parabolic_sar(data, acceleration_factor: float = SAR_ACCELERATION, maximum: float = SAR_MAXIMUM,
                  return_all: bool = True, provider: Optional[IndicatorProvider] = None):
    """Parabolic Stop And Reversal"""
    values = _compute("SAR", data, {
        "acceleration_factor": acceleration_factor,
        "maximum": maximum,
    }, ["high", "low"], 2, provider)
    return _finish("SAR", values, return_all)


@returns_result("CCI")
def cci(data, time_period: int = CCI_PERIOD, return_all: bool = False,
        provider: Optional[IndicatorProvider] = None):
    """Commodity Channel Index; latest value rounded to an integer"""
    values = _compute("CCI", data, {"time_period": time_period}, HLC, time_period, provider)
    return _finish("CCI", values, return_all, rounded=True)


@returns_result("CMO")
def cmo(data, time_period: int = CMO_PERIOD, return_all: bool = False,
        provider: Optional[IndicatorProvider] = None):
    """Chande Momentum Oscillator; latest value rounded to an integer"""
    values = _compute("CMO", data, {"time_period": time_period}, ["close"], time_period + 1, provider)
    return _finish("CMO", values, return_all, rounded=True)


@returns_result("AROONOSC")
def aroon_osc(data, time_period: int = AROON_PERIOD, return_all: bool = False,
              provider: Optional[IndicatorProvider] = None):
    """Aroon Oscillator; latest value rounded to an integer"""
    values = _compute("AROONOSC", data, {"time_period": time_period},
                      ["high", "low"], time_period + 1, provider)
    return _finish("AROONOSC", values, return_all, rounded=True)


@returns_result("ROC")
def roc(data, time_period: int = ROC_PERIOD, return_all: bool = False,
        provider: Optional[IndicatorProvider] = None):
    """
    Price Rate of Change

    ROC = [(Close - Close n periods ago) / (Close n periods ago)] * 100
    """
    values = _compute("ROC", data, {"time_period": time_period}, ["close"], time_period + 1, provider)
    return _finish("ROC", values, return_all)


@returns_result("WILLR")
def will_r(data, time_period: int = WILLR_PERIOD, return_all: bool = False,
           provider: Optional[IndicatorProvider] = None):
    """
    Williams %R

    %R = (Highest High - Close) / (Highest High - Lowest Low) x -100
    """
    values = _compute("WILLR", data, {"time_period": time_period}, HLC, time_period, provider)
    return _finish("WILLR", values, return_all)


@returns_result("ULTOSC")
def ult_osc(data, first_period: int = ULTOSC_PERIODS[0], second_period: int = ULTOSC_PERIODS[1],
            third_period: int = ULTOSC_PERIODS[2], return_all: bool = False,
            provider: Optional[IndicatorProvider] = None):
    """
    Ultimate Oscillator

    BP = Close - Minimum(Low or Prior Close)
    TR = Maximum(High or Prior Close) - Minimum(Low or Prior Close)
    UO = 100 x [(4 x Average7) + (2 x Average14) + Average28] / (4 + 2 + 1)
    """
    longest = max(first_period, second_period, third_period)
    values = _compute("ULTOSC", data, {
        "first_period": first_period,
        "second_period": second_period,
        "third_period": third_period,
    }, HLC, longest + 1, provider)
    return _finish("ULTOSC", values, return_all)


@returns_result("HT_SINE")
def ht_sine(data, return_all: bool = True, provider: Optional[IndicatorProvider] = None):
    """
    Hilbert Transform - Sinewave

    Returns:
        {"sine", "lead_sine"} series or latest values
    """
    values = _compute("HT_SINE", data, {}, ["close"], 1, provider)
    return _finish("HT_SINE", values, return_all)


@returns_result("HT_TRENDLINE")
def ht_trend_line(data, wma_period: int = HT_TRENDLINE_WMA_PERIOD,
                  lookback: int = HT_TRENDLINE_LOOKBACK,
                  provider: Optional[IndicatorProvider] = None):
    """
    Hilbert Transform - Instantaneous Trendline compared with WMA(4)

    Returns:
        {"uptrend", "downtrend", "declared"}: the number of the last
        ``lookback`` bars where the WMA sits above / below the trendline,
        and the latest relative deviation (WMA - trendline) / trendline
    """
    trendline = _compute("HT_TRENDLINE", data, {}, ["close"], max(wma_period, lookback), provider)
    dataset = OHLCVDataset.coerce(data)
    wma = compute_ma(dataset.close, MovingAverageKind.WMA, wma_period)

    recent_wma = wma.to_numpy(dtype=float)[-lookback:]
    recent_htl = pd.Series(trendline).to_numpy(dtype=float)[-lookback:]
    if len(recent_htl) < lookback or pd.isna(recent_wma).any() or pd.isna(recent_htl).any():
        raise InsufficientDataError("HT_TRENDLINE", lookback, int((~pd.isna(recent_htl)).sum()))

    uptrend = int((recent_wma > recent_htl).sum())
    downtrend = int((recent_wma < recent_htl).sum())
    declared = (recent_wma[-1] - recent_htl[-1]) / recent_htl[-1] if recent_htl[-1] != 0 else 0.0

    return {"uptrend": uptrend, "downtrend": downtrend, "declared": float(declared)}


@returns_result("HT_TRENDMODE")
def ht_trend_mode(data, return_all: bool = False, provider: Optional[IndicatorProvider] = None):
    """Hilbert Transform - Trend vs Cycle Mode (1 = trend, 0 = cycle)"""
    values = _compute("HT_TRENDMODE", data, {}, ["close"], 1, provider)
    return _finish("HT_TRENDMODE", values, return_all)
