"""
Indicator Provider - standard indicators consumed by the signal layer.

IndicatorProvider is the collaborator boundary: compute(name, dataset, params)
returns a Series or a dict of named Series aligned to the dataset's bars.

PandasIndicatorProvider implements the standard set with pandas/numpy:
- ATR, ADX, PLUS_DI, MINUS_DI
- BBANDS (upper/middle/lower)
- MACD, MACDEXT (raw/signal/hist)
- RSI, MFI, CCI, CMO, AROONOSC, ROC, WILLR, ULTOSC
- STOCH (slow_k/slow_d), STOCHF (fast_k/fast_d)
- SAR
- HT_SINE (sine/lead_sine), HT_TRENDLINE, HT_TRENDMODE
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Mapping, Optional, Union

import numpy as np
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
from tasignals.exceptions import InsufficientDataError, UnsupportedIndicatorError
from tasignals.utils.logger import logger

from .cycle import ht_sine, ht_trendline, ht_trendmode
from .moving_averages import MovingAverageKind, apply_to_defined, compute_ma

ProviderOutput = Union[pd.Series, Dict[str, pd.Series]]

class IndicatorProvider(ABC):
    """Computes standard indicators from an OHLCV dataset"""

    @abstractmethod
    def compute(self, name: str, dataset: OHLCVDataset,
                params: Optional[Mapping[str, Any]] = None) -> ProviderOutput:
        """
        Compute one indicator.

        Args:
            name: Indicator name (e.g. 'RSI', 'BBANDS')
            dataset: Input bars
            params: Indicator parameters

        Returns:
            Full Series, or dict of named Series

        Raises:
            UnsupportedIndicatorError: name is not handled by this provider
        """

    def supports(self, name: str) -> bool:
        return False


def _safe_ratio(numerator: pd.Series, denominator: pd.Series) -> pd.Series:
    """numerator / denominator, 0 where the denominator is 0"""
    ratio = numerator / denominator.where(denominator != 0)
    return ratio.where(denominator != 0, 0.0).where(denominator.notna())


def _true_range(df: pd.DataFrame) -> pd.Series:
    high_low = df["high"] - df["low"]
    high_close = (df["high"] - df["close"].shift()).abs()
    low_close = (df["low"] - df["close"].shift()).abs()
    return pd.concat([high_low, high_close, low_close], axis=1).max(axis=1)


def _ma_line(series: pd.Series, kind, period: int) -> pd.Series:
    """Single moving-average line (MAMA contributes its mama line)"""
    line = compute_ma(series, kind, period)
    if isinstance(line, dict):
        return line["mama"]
    return line


def _smooth(series: pd.Series, kind, period: int) -> pd.Series:
    return apply_to_defined(series, lambda tail: _ma_line(tail, kind, period))


class PandasIndicatorProvider(IndicatorProvider):
    """Default provider built on pandas rolling/ewm operations"""

    def __init__(self):
        self._handlers: Dict[str, Callable[[pd.DataFrame, Dict[str, Any]], ProviderOutput]] = {
            "ATR": self._atr,
            "ADX": self._adx,
            "PLUS_DI": self._plus_di,
            "MINUS_DI": self._minus_di,
            "BBANDS": self._bbands,
            "MACD": self._macd,
            "MACDEXT": self._macd_ext,
            "RSI": self._rsi,
            "STOCH": self._stoch,
            "STOCHF": self._stoch_f,
            "SAR": self._sar,
            "CCI": self._cci,
            "CMO": self._cmo,
            "AROONOSC": self._aroon_osc,
            "ROC": self._roc,
            "WILLR": self._will_r,
            "ULTOSC": self._ult_osc,
            "MFI": self._mfi,
            "HT_SINE": self._ht_sine,
            "HT_TRENDLINE": self._ht_trendline,
            "HT_TRENDMODE": self._ht_trendmode,
        }

    def supports(self, name: str) -> bool:
        return name.upper() in self._handlers

    def compute(self, name: str, dataset: OHLCVDataset,
                params: Optional[Mapping[str, Any]] = None) -> ProviderOutput:
        key = name.upper()
        handler = self._handlers.get(key)
        if handler is None:
            raise UnsupportedIndicatorError(f"unknown indicator '{name}'")

        logger.debug(f"Computing {key} with params {dict(params or {})}")
        return handler(dataset.to_dataframe(), dict(params or {}))

    # ---- volatility / trend ----

    def _atr(self, df: pd.DataFrame, params: Dict[str, Any]) -> pd.Series:
        period = params.get("time_period", ATR_PERIOD)
        # Wilder's smoothing
        return _true_range(df).ewm(alpha=1/period, min_periods=period).mean()

    def _directional(self, df: pd.DataFrame, period: int) -> Dict[str, pd.Series]:
        tr = _true_range(df)

        up_move = df["high"] - df["high"].shift()
        down_move = df["low"].shift() - df["low"]

        plus_dm = up_move.where((up_move > down_move) & (up_move > 0), 0)
        minus_dm = down_move.where((down_move > up_move) & (down_move > 0), 0)

        atr = tr.ewm(alpha=1/period, min_periods=period).mean()
        plus_di = 100 * _safe_ratio(plus_dm.ewm(alpha=1/period, min_periods=period).mean(), atr)
        minus_di = 100 * _safe_ratio(minus_dm.ewm(alpha=1/period, min_periods=period).mean(), atr)

        dx = 100 * _safe_ratio((plus_di - minus_di).abs(), plus_di + minus_di)
        adx = dx.ewm(alpha=1/period, min_periods=period).mean()

        return {"adx": adx, "plus_di": plus_di, "minus_di": minus_di}

    def _adx(self, df: pd.DataFrame, params: Dict[str, Any]) -> pd.Series:
        return self._directional(df, params.get("time_period", ADX_PERIOD))["adx"]

    def _plus_di(self, df: pd.DataFrame, params: Dict[str, Any]) -> pd.Series:
        return self._directional(df, params.get("time_period", ADX_PERIOD))["plus_di"]

    def _minus_di(self, df: pd.DataFrame, params: Dict[str, Any]) -> pd.Series:
        return self._directional(df, params.get("time_period", ADX_PERIOD))["minus_di"]

    def _bbands(self, df: pd.DataFrame, params: Dict[str, Any]) -> Dict[str, pd.Series]:
        period = params.get("time_period", BBANDS_PERIOD)
        up = params.get("deviations_up", BBANDS_DEVIATIONS_UP)
        down = params.get("deviations_down", BBANDS_DEVIATIONS_DOWN)
        ma_type = params.get("ma_type", MovingAverageKind.SMA)

        middle = _ma_line(df["close"], ma_type, period)
        # Population standard deviation over the same window
        std = df["close"].rolling(window=period).std(ddof=0)

        return {
            "upper": middle + up * std,
            "middle": middle,
            "lower": middle - down * std,
        }

    def _macd_lines(self, close: pd.Series, fast: int, fast_ma, slow: int, slow_ma,
                    signal_period: int, signal_ma) -> Dict[str, pd.Series]:
        if len(close) < slow:
            raise InsufficientDataError("MACD", slow, len(close))

        raw = _ma_line(close, fast_ma, fast) - _ma_line(close, slow_ma, slow)
        signal = _smooth(raw, signal_ma, signal_period)

        return {"raw": raw, "signal": signal, "hist": raw - signal}

    def _macd(self, df: pd.DataFrame, params: Dict[str, Any]) -> Dict[str, pd.Series]:
        return self._macd_lines(
            df["close"],
            params.get("fast_period", MACD_FAST), MovingAverageKind.EMA,
            params.get("slow_period", MACD_SLOW), MovingAverageKind.EMA,
            params.get("signal_period", MACD_SIGNAL), MovingAverageKind.EMA,
        )

    def _macd_ext(self, df: pd.DataFrame, params: Dict[str, Any]) -> Dict[str, pd.Series]:
        return self._macd_lines(
            df["close"],
            params.get("fast_period", MACD_FAST), params.get("fast_ma", MovingAverageKind.SMA),
            params.get("slow_period", MACD_SLOW), params.get("slow_ma", MovingAverageKind.SMA),
            params.get("signal_period", MACD_SIGNAL), params.get("signal_ma", MovingAverageKind.SMA),
        )

    def _sar(self, df: pd.DataFrame, params: Dict[str, Any]) -> pd.Series:
        af_start = params.get("acceleration_factor", SAR_ACCELERATION)
        af_increment = af_start
        af_max = params.get("maximum", SAR_MAXIMUM)

        high = df["high"].to_numpy(dtype=float)
        low = df["low"].to_numpy(dtype=float)
        n = len(high)

        psar = np.full(n, np.nan)
        if n == 0:
            return pd.Series(psar, index=df.index)

        af = af_start
        ep = low[0]
        psar[0] = high[0]
        direction = -1  # Start bearish

        for i in range(1, n):
            prev_psar = psar[i-1]
            prior_low = low[i-2] if i > 1 else low[i-1]
            prior_high = high[i-2] if i > 1 else high[i-1]

            if direction == 1:  # Uptrend
                psar[i] = min(prev_psar + af * (ep - prev_psar), low[i-1], prior_low)

                if low[i] < psar[i]:
                    direction = -1
                    psar[i] = ep
                    af = af_start
                    ep = low[i]
                elif high[i] > ep:
                    ep = high[i]
                    af = min(af + af_increment, af_max)
            else:  # Downtrend
                psar[i] = max(prev_psar - af * (prev_psar - ep), high[i-1], prior_high)

                if high[i] > psar[i]:
                    direction = 1
                    psar[i] = ep
                    af = af_start
                    ep = high[i]
                elif low[i] < ep:
                    ep = low[i]
                    af = min(af + af_increment, af_max)

        return pd.Series(psar, index=df.index)

    # ---- oscillators ----

    def _rsi(self, df: pd.DataFrame, params: Dict[str, Any]) -> pd.Series:
        period = params.get("time_period", RSI_PERIOD)

        delta = df["close"].diff()
        gain = delta.clip(lower=0)
        loss = (-delta).clip(lower=0)

        avg_gain = gain.ewm(alpha=1/period, min_periods=period).mean()
        avg_loss = loss.ewm(alpha=1/period, min_periods=period).mean()

        return 100 * _safe_ratio(avg_gain, avg_gain + avg_loss)

    def _stoch_k(self, df: pd.DataFrame, period: int) -> pd.Series:
        low_min = df["low"].rolling(window=period).min()
        high_max = df["high"].rolling(window=period).max()
        return 100 * _safe_ratio(df["close"] - low_min, high_max - low_min)

    def _stoch(self, df: pd.DataFrame, params: Dict[str, Any]) -> Dict[str, pd.Series]:
        fast_k = self._stoch_k(df, params.get("fast_k_period", STOCH_FAST_K_PERIOD))
        slow_k = _smooth(fast_k, params.get("slow_k_ma", MovingAverageKind.SMA),
                         params.get("slow_k_period", STOCH_SLOW_K_PERIOD))
        slow_d = _smooth(slow_k, params.get("slow_d_ma", MovingAverageKind.SMA),
                         params.get("slow_d_period", STOCH_SLOW_D_PERIOD))
        return {"slow_k": slow_k, "slow_d": slow_d}

    def _stoch_f(self, df: pd.DataFrame, params: Dict[str, Any]) -> Dict[str, pd.Series]:
        fast_k = self._stoch_k(df, params.get("fast_k_period", STOCH_FAST_K_PERIOD))
        fast_d = _smooth(fast_k, params.get("fast_d_ma", MovingAverageKind.SMA),
                         params.get("fast_d_period", STOCH_FAST_D_PERIOD))
        return {"fast_k": fast_k, "fast_d": fast_d}

    def _cci(self, df: pd.DataFrame, params: Dict[str, Any]) -> pd.Series:
        period = params.get("time_period", CCI_PERIOD)

        # Typical Price
        tp = (df["high"] + df["low"] + df["close"]) / 3
        tp_sma = tp.rolling(window=period).mean()

        # Mean Absolute Deviation
        mad = tp.rolling(window=period).apply(lambda x: np.abs(x - x.mean()).mean(), raw=True)

        return _safe_ratio(tp - tp_sma, 0.015 * mad)

    def _cmo(self, df: pd.DataFrame, params: Dict[str, Any]) -> pd.Series:
        period = params.get("time_period", CMO_PERIOD)

        delta = df["close"].diff()
        up = delta.clip(lower=0).rolling(window=period).sum()
        down = (-delta).clip(lower=0).rolling(window=period).sum()

        return 100 * _safe_ratio(up - down, up + down)

    def _aroon_osc(self, df: pd.DataFrame, params: Dict[str, Any]) -> pd.Series:
        period = params.get("time_period", AROON_PERIOD)
        window = period + 1

        # Position of the extreme inside the window, period = most recent bar
        high_position = df["high"].rolling(window=window).apply(
            lambda x: len(x) - 1 - np.argmax(x[::-1]), raw=True)
        low_position = df["low"].rolling(window=window).apply(
            lambda x: len(x) - 1 - np.argmin(x[::-1]), raw=True)

        aroon_up = 100 * high_position / period
        aroon_down = 100 * low_position / period
        return aroon_up - aroon_down

    def _roc(self, df: pd.DataFrame, params: Dict[str, Any]) -> pd.Series:
        period = params.get("time_period", ROC_PERIOD)
        previous = df["close"].shift(period)
        return 100 * _safe_ratio(df["close"] - previous, previous)

    def _will_r(self, df: pd.DataFrame, params: Dict[str, Any]) -> pd.Series:
        period = params.get("time_period", WILLR_PERIOD)

        high_max = df["high"].rolling(window=period).max()
        low_min = df["low"].rolling(window=period).min()

        return -100 * _safe_ratio(high_max - df["close"], high_max - low_min)

    def _ult_osc(self, df: pd.DataFrame, params: Dict[str, Any]) -> pd.Series:
        first = params.get("first_period", ULTOSC_PERIODS[0])
        second = params.get("second_period", ULTOSC_PERIODS[1])
        third = params.get("third_period", ULTOSC_PERIODS[2])

        prior_close = df["close"].shift()
        true_low = pd.concat([df["low"], prior_close], axis=1).min(axis=1)
        true_high = pd.concat([df["high"], prior_close], axis=1).max(axis=1)

        # First bar has no prior close
        buying_pressure = (df["close"] - true_low).iloc[1:]
        true_range = (true_high - true_low).iloc[1:]

        def average(period: int) -> pd.Series:
            return _safe_ratio(buying_pressure.rolling(window=period).sum(),
                               true_range.rolling(window=period).sum())

        uo = 100 * (4 * average(first) + 2 * average(second) + average(third)) / 7
        return uo.reindex(df.index)

    def _mfi(self, df: pd.DataFrame, params: Dict[str, Any]) -> pd.Series:
        period = params.get("time_period", MFI_PERIOD)

        # Typical Price
        tp = (df["high"] + df["low"] + df["close"]) / 3

        # Raw Money Flow
        raw_mf = tp * df["volume"]

        # Money Flow Direction
        tp_change = tp.diff()
        positive_mf = raw_mf.where(tp_change > 0, 0)
        negative_mf = raw_mf.where(tp_change < 0, 0)

        # Sum over period (first bar has no direction)
        positive_sum = positive_mf.iloc[1:].rolling(window=period).sum()
        negative_sum = negative_mf.iloc[1:].rolling(window=period).sum()

        mfi = 100 * _safe_ratio(positive_sum, positive_sum + negative_sum)
        return mfi.reindex(df.index)

    # ---- cycle ----

    def _ht_sine(self, df: pd.DataFrame, params: Dict[str, Any]) -> Dict[str, pd.Series]:
        return ht_sine(df["close"])

    def _ht_trendline(self, df: pd.DataFrame, params: Dict[str, Any]) -> pd.Series:
        return ht_trendline(df["close"])

    def _ht_trendmode(self, df: pd.DataFrame, params: Dict[str, Any]) -> pd.Series:
        return ht_trendmode(df["close"])


_default_provider: Optional[PandasIndicatorProvider] = None


def get_default_provider() -> PandasIndicatorProvider:
    """Shared default provider (stateless, safe to reuse)"""
    global _default_provider
    if _default_provider is None:
        _default_provider = PandasIndicatorProvider()
    return _default_provider
