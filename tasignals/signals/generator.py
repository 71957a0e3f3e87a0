"""
Signal Generator - computes an indicator over a dataset and evaluates it.

Each method takes an OHLCV dataset (OHLCVDataset, DataFrame or mapping),
computes the indicator through the native set or the indicator provider,
applies the matching evaluator rule and returns an IndicatorResult holding
the signal code. Computation failures come back as failure results.

Usage:
    generator = SignalGenerator(sink=LoggingSink(verbose=True))
    result = generator.rsi(df, time_period=14, low=40, high=70)
    if result.ok:
        print(result.value)
"""

from typing import Any, Dict, List, Optional

from config.settings import (
    ADX_HIGH,
    ADX_LOW,
    ADX_PERIOD,
    AO_LONG_PERIOD,
    AO_SHORT_PERIOD,
    AROON_HIGH,
    AROON_LOW,
    AROON_PERIOD,
    ATR_MULTIPLE,
    ATR_PERIOD,
    BBANDS_DEVIATIONS_DOWN,
    BBANDS_DEVIATIONS_UP,
    BBANDS_PERIOD,
    CCI_HIGH,
    CCI_LOW,
    CCI_PERIOD,
    CMO_HIGH,
    CMO_LOW,
    CMO_PERIOD,
    ELDER_EMA_PERIOD,
    EMA_LONG_PERIOD,
    EMA_MEDIUM_PERIOD,
    EMA_SHORT_PERIOD,
    HLI_HIGH,
    HLI_LOW,
    HLI_MA_PERIOD,
    HLI_PERIOD,
    HT_TRENDLINE_INDICATOR,
    HT_TRENDLINE_LOOKBACK,
    HT_TRENDLINE_WMA_PERIOD,
    HT_TRENDMODE_INDICATOR,
    MACD_FAST,
    MACD_SIGNAL,
    MACD_SLOW,
    MFI_HIGH,
    MFI_LOW,
    MFI_PERIOD,
    MMI_INDICATOR,
    ROC_HIGH,
    ROC_LOW,
    ROC_PERIOD,
    RSI_HIGH,
    RSI_LOW,
    RSI_PERIOD,
    SAR_ACCELERATION,
    SAR_MAXIMUM,
    STOCH_FAST_D_PERIOD,
    STOCH_FAST_K_PERIOD,
    STOCH_HIGH,
    STOCH_LOW,
    STOCH_RSI_HIGH,
    STOCH_RSI_LOW,
    STOCH_RSI_PERIOD,
    STOCH_SLOW_D_PERIOD,
    STOCH_SLOW_K_PERIOD,
    ULTOSC_HIGH,
    ULTOSC_LOW,
    ULTOSC_PERIODS,
    WILLR_HIGH,
    WILLR_LOW,
    WILLR_PERIOD,
)
from tasignals.data.dataset import OHLCVDataset
from tasignals.indicators import calculations
from tasignals.indicators.library import (
    IndicatorResult,
    Observation,
    ObservationSink,
    emit,
    returns_result,
    to_scalar,
)
from tasignals.indicators.moving_averages import MovingAverageKind, compute_ma
from tasignals.indicators.oscillators import awesome_oscillator, stoch_rsi
from tasignals.indicators.provider import IndicatorProvider
from tasignals.indicators.trend import elder_ray, high_low_index, market_meanness_index
from tasignals.indicators.volume import obv

from .evaluator import EvaluationMode, evaluate


def tail(values, count: int) -> List[Any]:
    """Last ``count`` samples (oldest first), None-padded at the front"""
    if values is None:
        return [None] * count
    samples = list(values)[-count:]
    return [None] * (count - len(samples)) + [to_scalar(v) for v in samples]


class SignalGenerator:
    """
    Dataset-level signal generation.

    Holds only its collaborators: the indicator provider and an optional
    observation sink. Methods are safe to call concurrently.
    """

    def __init__(self, provider: Optional[IndicatorProvider] = None,
                 sink: Optional[ObservationSink] = None):
        self.provider = provider
        self.sink = sink

    def _signal(self, name: str, parameters: Dict[str, Any], current, previous=None,
                context=None, **rule_params) -> IndicatorResult:
        code = int(evaluate(name, current, previous, context, **rule_params))

        inputs = {"current": current}
        if previous is not None:
            inputs["previous"] = previous
        if context:
            inputs.update(context)

        emit(self.sink, Observation(
            indicator=name,
            parameters={**parameters, **rule_params},
            inputs=inputs,
            result=code,
        ))
        return IndicatorResult.success(code)

    # ===========================
    # VOLATILITY
    # ===========================

    @returns_result("ATR")
    def atr(self, data, time_period: int = ATR_PERIOD, multiple: float = ATR_MULTIPLE) -> IndicatorResult:
        """Breakout when the close clears the previous close by one ATR"""
        dataset = OHLCVDataset.coerce(data)
        result = calculations.atr(dataset, time_period=time_period, provider=self.provider)
        if result.failed:
            return result

        previous_close, close = tail(dataset.close, 2)
        return self._signal("ATR", {"time_period": time_period}, result.value,
                            context={"close": close, "previous_close": previous_close},
                            multiple=multiple)

    @returns_result("BBANDS")
    def bollinger_bands(self, data, time_period: int = BBANDS_PERIOD,
                        deviations_up: float = BBANDS_DEVIATIONS_UP,
                        deviations_down: float = BBANDS_DEVIATIONS_DOWN,
                        ma_type=MovingAverageKind.SMA) -> IndicatorResult:
        dataset = OHLCVDataset.coerce(data)
        kind = MovingAverageKind.resolve(ma_type)
        result = calculations.bollinger_bands(
            dataset, time_period=time_period, deviations_up=deviations_up,
            deviations_down=deviations_down, ma_type=kind, provider=self.provider,
        )
        if result.failed:
            return result

        (close,) = tail(dataset.close, 1)
        return self._signal("BBANDS", {
            "time_period": time_period,
            "deviations_up": deviations_up,
            "deviations_down": deviations_down,
            "ma_type": kind.value,
        }, result.value, context={"close": close})

    # ===========================
    # TREND
    # ===========================

    def adx(self, data, time_period: int = ADX_PERIOD, low: float = ADX_LOW,
            high: float = ADX_HIGH) -> IndicatorResult:
        result = calculations.adx(data, time_period=time_period, provider=self.provider)
        if result.failed:
            return result
        return self._signal("ADX", {"time_period": time_period}, result.value, low=low, high=high)

    def macd(self, data, fast_period: int = MACD_FAST, slow_period: int = MACD_SLOW,
             signal_period: int = MACD_SIGNAL) -> IndicatorResult:
        """Histogram sign: raw above signal buys, below sells"""
        result = calculations.macd(data, fast_period=fast_period, slow_period=slow_period,
                                   signal_period=signal_period, provider=self.provider)
        if result.failed:
            return result
        return self._signal("MACD", {
            "fast_period": fast_period,
            "slow_period": slow_period,
            "signal_period": signal_period,
        }, result.value)

    @returns_result("MACDEXT")
    def macd_ext(self, data, fast_period: int = MACD_FAST, fast_ma=MovingAverageKind.SMA,
                 slow_period: int = MACD_SLOW, slow_ma=MovingAverageKind.SMA,
                 signal_period: int = MACD_SIGNAL, signal_ma=MovingAverageKind.SMA) -> IndicatorResult:
        fast_ma = MovingAverageKind.resolve(fast_ma)
        slow_ma = MovingAverageKind.resolve(slow_ma)
        signal_ma = MovingAverageKind.resolve(signal_ma)
        result = calculations.macd_ext(
            data, fast_period=fast_period, fast_ma=fast_ma, slow_period=slow_period,
            slow_ma=slow_ma, signal_period=signal_period, signal_ma=signal_ma,
            provider=self.provider,
        )
        if result.failed:
            return result
        return self._signal("MACDEXT", {
            "fast_period": fast_period,
            "fast_ma": fast_ma.value,
            "slow_period": slow_period,
            "slow_ma": slow_ma.value,
            "signal_period": signal_period,
            "signal_ma": signal_ma.value,
        }, result.value)

    @returns_result("SAR")
    def parabolic_sar(self, data, acceleration_factor: float = SAR_ACCELERATION,
                      maximum: float = SAR_MAXIMUM) -> IndicatorResult:
        """Three SAR points above the last high sell, below the last low buy"""
        dataset = OHLCVDataset.coerce(data)
        result = calculations.parabolic_sar(dataset, acceleration_factor=acceleration_factor,
                                            maximum=maximum, return_all=True, provider=self.provider)
        if result.failed:
            return result

        earlier, prior, current = tail(result.value, 3)
        (high,) = tail(dataset.high, 1)
        (low,) = tail(dataset.low, 1)
        return self._signal("SAR", {"acceleration_factor": acceleration_factor, "maximum": maximum},
                            current, [earlier, prior], context={"high": high, "low": low})

    @returns_result("FSAR")
    def fsar(self, data, acceleration_factor: float = SAR_ACCELERATION,
             maximum: float = SAR_MAXIMUM) -> IndicatorResult:
        """Forex SAR: SAR flipping sides around a new candle of the opposite colour"""
        dataset = OHLCVDataset.coerce(data)
        dataset.require(["open", "high", "low", "close"], min_length=3, indicator="FSAR")
        result = calculations.parabolic_sar(dataset, acceleration_factor=acceleration_factor,
                                            maximum=maximum, return_all=True, provider=self.provider)
        if result.failed:
            return result

        earlier, prior, current = tail(result.value, 3)
        return self._signal("FSAR", {"acceleration_factor": acceleration_factor, "maximum": maximum},
                            current, [earlier, prior], context={
                                "open": tail(dataset.open, 3),
                                "high": tail(dataset.high, 3),
                                "low": tail(dataset.low, 3),
                                "close": tail(dataset.close, 3),
                            })

    def aroon_osc(self, data, time_period: int = AROON_PERIOD, low: float = AROON_LOW,
                  high: float = AROON_HIGH) -> IndicatorResult:
        result = calculations.aroon_osc(data, time_period=time_period, provider=self.provider)
        if result.failed:
            return result
        return self._signal("AROONOSC", {"time_period": time_period}, result.value, low=low, high=high)

    def hli(self, data, time_period: int = HLI_PERIOD, ma_period: int = HLI_MA_PERIOD,
            low: float = HLI_LOW, high: float = HLI_HIGH) -> IndicatorResult:
        """High-Low Index: consistently above high is a strong uptrend"""
        result = high_low_index(data, time_period=time_period, ma_period=ma_period)
        if result.failed:
            return result
        return self._signal("HLI", {"time_period": time_period, "ma_period": ma_period},
                            result.value, low=low, high=high)

    def er(self, data, macd_fast_period: int = MACD_FAST, macd_slow_period: int = MACD_SLOW,
           macd_signal_period: int = MACD_SIGNAL, ema_period: int = ELDER_EMA_PERIOD) -> IndicatorResult:
        """Elder Ray bull/bear power"""
        result = elder_ray(data, macd_fast_period=macd_fast_period, macd_slow_period=macd_slow_period,
                           macd_signal_period=macd_signal_period, ema_period=ema_period,
                           provider=self.provider)
        if result.failed:
            return result
        return self._signal("ER", {
            "macd_fast_period": macd_fast_period,
            "macd_slow_period": macd_slow_period,
            "macd_signal_period": macd_signal_period,
            "ema_period": ema_period,
        }, result.value)

    def mmi(self, data, indicator: float = MMI_INDICATOR) -> IndicatorResult:
        """Market Meanness Index: below the indicator the market is trending"""
        result = market_meanness_index(data)
        if result.failed:
            return result
        return self._signal("MMI", {}, result.value, indicator=indicator)

    @returns_result("EMA_CROSSOVER")
    def ema_crossover(self, data, short_period: int = EMA_SHORT_PERIOD, long_period: int = EMA_LONG_PERIOD,
                      compare_with_previous: bool = True) -> IndicatorResult:
        """
        Short EMA crossing the long EMA.

        Upward cross buys, downward cross sells; with compare_with_previous
        disabled the current order of the two averages decides.
        """
        dataset = OHLCVDataset.coerce(data)
        dataset.require(["close"], min_length=max(short_period, long_period) + 1, indicator="EMA_CROSSOVER")

        prev_short, short = tail(compute_ma(dataset.close, MovingAverageKind.EMA, short_period), 2)
        prev_long, long = tail(compute_ma(dataset.close, MovingAverageKind.EMA, long_period), 2)

        return self._signal("EMA_CROSSOVER", {"short_period": short_period, "long_period": long_period},
                            {"short": short, "long": long},
                            {"short": prev_short, "long": prev_long},
                            compare_with_previous=compare_with_previous)

    @returns_result("EMA_TRIPLE_CROSSOVER")
    def ema_triple_crossover(self, data, short_period: int = EMA_SHORT_PERIOD,
                             medium_period: int = EMA_MEDIUM_PERIOD, long_period: int = EMA_LONG_PERIOD,
                             compare_with_previous: bool = True) -> IndicatorResult:
        dataset = OHLCVDataset.coerce(data)
        longest = max(short_period, medium_period, long_period)
        dataset.require(["close"], min_length=longest + 1, indicator="EMA_TRIPLE_CROSSOVER")

        prev_short, short = tail(compute_ma(dataset.close, MovingAverageKind.EMA, short_period), 2)
        prev_medium, medium = tail(compute_ma(dataset.close, MovingAverageKind.EMA, medium_period), 2)
        prev_long, long = tail(compute_ma(dataset.close, MovingAverageKind.EMA, long_period), 2)

        return self._signal("EMA_TRIPLE_CROSSOVER", {
            "short_period": short_period,
            "medium_period": medium_period,
            "long_period": long_period,
        }, {"short": short, "medium": medium, "long": long},
            {"short": prev_short, "medium": prev_medium, "long": prev_long},
            compare_with_previous=compare_with_previous)

    # ===========================
    # MOMENTUM
    # ===========================

    def rsi(self, data, time_period: int = RSI_PERIOD, low: float = RSI_LOW,
            high: float = RSI_HIGH) -> IndicatorResult:
        """RSI crossing up through high sells, down through low buys"""
        result = calculations.rsi(data, time_period=time_period, return_all=True, provider=self.provider)
        if result.failed:
            return result

        previous, current = tail(result.value, 2)
        return self._signal("RSI", {"time_period": time_period}, current, previous, low=low, high=high)

    def stoch(self, data, fast_k_period: int = STOCH_FAST_K_PERIOD, slow_k_period: int = STOCH_SLOW_K_PERIOD,
              slow_k_ma=MovingAverageKind.SMA, slow_d_period: int = STOCH_SLOW_D_PERIOD,
              slow_d_ma=MovingAverageKind.SMA, low: float = STOCH_LOW, high: float = STOCH_HIGH) -> IndicatorResult:
        result = calculations.stoch(
            data, fast_k_period=fast_k_period, slow_k_period=slow_k_period, slow_k_ma=slow_k_ma,
            slow_d_period=slow_d_period, slow_d_ma=slow_d_ma, provider=self.provider,
        )
        if result.failed:
            return result
        return self._signal("STOCH", {
            "fast_k_period": fast_k_period,
            "slow_k_period": slow_k_period,
            "slow_d_period": slow_d_period,
        }, result.value, low=low, high=high)

    def stoch_f(self, data, fast_k_period: int = STOCH_FAST_K_PERIOD, fast_d_period: int = STOCH_FAST_D_PERIOD,
                fast_d_ma=MovingAverageKind.SMA, low: float = STOCH_LOW, high: float = STOCH_HIGH) -> IndicatorResult:
        result = calculations.stoch_f(data, fast_k_period=fast_k_period, fast_d_period=fast_d_period,
                                      fast_d_ma=fast_d_ma, provider=self.provider)
        if result.failed:
            return result
        return self._signal("STOCHF", {"fast_k_period": fast_k_period, "fast_d_period": fast_d_period},
                            result.value, low=low, high=high)

    def awesome_oscillator(self, data, long_period: int = AO_LONG_PERIOD,
                           short_period: int = AO_SHORT_PERIOD) -> IndicatorResult:
        """Zero-line cross, reported as +/-100"""
        result = awesome_oscillator(data, long_period=long_period, short_period=short_period)
        if result.failed:
            return result
        return self._signal("AO", {"long_period": long_period, "short_period": short_period},
                            result.value["current"], result.value["previous"])

    def cci(self, data, time_period: int = CCI_PERIOD, low: float = CCI_LOW,
            high: float = CCI_HIGH) -> IndicatorResult:
        result = calculations.cci(data, time_period=time_period, provider=self.provider)
        if result.failed:
            return result
        return self._signal("CCI", {"time_period": time_period}, result.value, low=low, high=high)

    def cmo(self, data, time_period: int = CMO_PERIOD, low: float = CMO_LOW,
            high: float = CMO_HIGH) -> IndicatorResult:
        result = calculations.cmo(data, time_period=time_period, provider=self.provider)
        if result.failed:
            return result
        return self._signal("CMO", {"time_period": time_period}, result.value, low=low, high=high)

    def stoch_rsi(self, data, time_period: int = STOCH_RSI_PERIOD, low: float = STOCH_RSI_LOW,
                  high: float = STOCH_RSI_HIGH) -> IndicatorResult:
        result = stoch_rsi(data, time_period=time_period, provider=self.provider)
        if result.failed:
            return result
        return self._signal("STOCHRSI", {"time_period": time_period}, result.value, low=low, high=high)

    def roc(self, data, time_period: int = ROC_PERIOD, low: float = ROC_LOW,
            high: float = ROC_HIGH) -> IndicatorResult:
        result = calculations.roc(data, time_period=time_period, provider=self.provider)
        if result.failed:
            return result
        return self._signal("ROC", {"time_period": time_period}, result.value, low=low, high=high)

    def will_r(self, data, time_period: int = WILLR_PERIOD, low: float = WILLR_LOW,
               high: float = WILLR_HIGH) -> IndicatorResult:
        result = calculations.will_r(data, time_period=time_period, provider=self.provider)
        if result.failed:
            return result
        return self._signal("WILLR", {"time_period": time_period}, result.value, low=low, high=high)

    def ult_osc(self, data, first_period: int = ULTOSC_PERIODS[0], second_period: int = ULTOSC_PERIODS[1],
                third_period: int = ULTOSC_PERIODS[2], low: float = ULTOSC_LOW,
                high: float = ULTOSC_HIGH) -> IndicatorResult:
        result = calculations.ult_osc(data, first_period=first_period, second_period=second_period,
                                      third_period=third_period, provider=self.provider)
        if result.failed:
            return result
        return self._signal("ULTOSC", {
            "first_period": first_period,
            "second_period": second_period,
            "third_period": third_period,
        }, result.value, low=low, high=high)

    # ===========================
    # VOLUME
    # ===========================

    def mfi(self, data, time_period: int = MFI_PERIOD, low: float = MFI_LOW,
            high: float = MFI_HIGH) -> IndicatorResult:
        result = calculations.mfi(data, time_period=time_period, provider=self.provider)
        if result.failed:
            return result
        return self._signal("MFI", {"time_period": time_period}, result.value, low=low, high=high)

    def obv(self, data) -> IndicatorResult:
        """Three strictly rising OBV samples buy, three strictly falling sell"""
        result = obv(data, return_all=True)
        if result.failed:
            return result

        earlier, prior, current = tail(result.value, 3)
        return self._signal("OBV", {}, current, [earlier, prior])

    # ===========================
    # CYCLE (Hilbert transform)
    # ===========================

    def ht_sine(self, data, mode=EvaluationMode.SIGNAL) -> IndicatorResult:
        """Lead sine / sine crossover (signal mode) or sign agreement (trend mode)"""
        result = calculations.ht_sine(data, return_all=True, provider=self.provider)
        if result.failed:
            return result

        prev_sine, sine = tail(result.value["sine"], 2)
        prev_lead, lead = tail(result.value["lead_sine"], 2)
        mode = EvaluationMode.resolve(mode)
        return self._signal("HT_SINE", {}, {"sine": sine, "lead_sine": lead},
                            {"sine": prev_sine, "lead_sine": prev_lead}, mode=mode.value)

    def ht_trend_line(self, data, wma_period: int = HT_TRENDLINE_WMA_PERIOD,
                      indicator: float = HT_TRENDLINE_INDICATOR,
                      lookback: int = HT_TRENDLINE_LOOKBACK) -> IndicatorResult:
        result = calculations.ht_trend_line(data, wma_period=wma_period, lookback=lookback,
                                            provider=self.provider)
        if result.failed:
            return result
        return self._signal("HT_TRENDLINE", {"wma_period": wma_period}, result.value,
                            indicator=indicator, lookback=lookback)

    def ht_trend_mode(self, data, indicator: float = HT_TRENDMODE_INDICATOR,
                      mode=EvaluationMode.SIGNAL) -> IndicatorResult:
        """
        Trend vs cycle mode.

        In trend mode the result is the number of trailing bars sharing
        the latest mode value rather than a signal code.
        """
        result = calculations.ht_trend_mode(data, return_all=True, provider=self.provider)
        if result.failed:
            return result

        modes = [to_scalar(m) for m in result.value.dropna()]
        current = modes[-1] if modes else None
        return self._signal("HT_TRENDMODE", {}, current, modes[:-1], indicator=indicator,
                            mode=EvaluationMode.resolve(mode).value)
