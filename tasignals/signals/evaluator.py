"""
Signal Evaluator - reduces indicator readings to discrete trading signals.

Every rule is a pure function of the latest indicator sample(s) and,
where the rule needs it, the latest raw price bar:

    evaluate_<indicator>(current, previous=None, context=None, **bands)

``current`` / ``previous`` are scalars or dicts of named values;
multi-sample rules take ``previous`` as a sequence of earlier samples
(most recent last). ``context`` carries raw prices such as ``close``,
``previous_close``, ``high`` and ``low``.

Rules return Signal.BUY (1), Signal.SELL (-1) or Signal.HOLD (0), except
the Awesome Oscillator (+/-100) and the HT trend-mode "trend" evaluation,
which returns a run length. Any missing (None/NaN) input yields HOLD.
"""

from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

from config.settings import (
    ADX_HIGH,
    ADX_LOW,
    AROON_HIGH,
    AROON_LOW,
    ATR_MULTIPLE,
    CCI_HIGH,
    CCI_LOW,
    CMO_HIGH,
    CMO_LOW,
    HLI_HIGH,
    HLI_LOW,
    HT_TRENDLINE_INDICATOR,
    HT_TRENDLINE_LOOKBACK,
    HT_TRENDMODE_INDICATOR,
    MFI_HIGH,
    MFI_LOW,
    MMI_INDICATOR,
    ROC_HIGH,
    ROC_LOW,
    RSI_HIGH,
    RSI_LOW,
    STOCH_HIGH,
    STOCH_LOW,
    STOCH_RSI_HIGH,
    STOCH_RSI_LOW,
    ULTOSC_HIGH,
    ULTOSC_LOW,
    WILLR_HIGH,
    WILLR_LOW,
)
from tasignals.exceptions import UnsupportedIndicatorError
from tasignals.indicators.library import (
    AO_BEARISH,
    AO_BULLISH,
    IndicatorCategory,
    IndicatorMetadata,
    Signal,
    is_missing,
    round_half_away,
)


class EvaluationMode(Enum):
    """How the Hilbert cycle rules read their input"""
    SIGNAL = "signal"
    TREND = "trend"

    @classmethod
    def resolve(cls, mode) -> "EvaluationMode":
        if isinstance(mode, cls):
            return mode
        return cls(str(mode).lower())


def _missing(*values) -> bool:
    for value in values:
        if isinstance(value, Mapping):
            if _missing(*value.values()):
                return True
        elif isinstance(value, (list, tuple)):
            if _missing(*value):
                return True
        elif is_missing(value):
            return True
    return False


def _context(context: Optional[Mapping[str, Any]], *keys: str):
    context = context or {}
    return tuple(context.get(key) for key in keys)


def _earlier(previous, count: int) -> Tuple:
    """Last ``count`` samples of a previous-value sequence, None-padded"""
    if previous is None:
        return (None,) * count
    if not isinstance(previous, (list, tuple)):
        previous = [previous]
    samples = list(previous)[-count:]
    return tuple([None] * (count - len(samples)) + samples)


def _overbought_sells(value, low, high) -> Signal:
    """Above high is overbought (sell), below low is oversold (buy)"""
    if _missing(value):
        return Signal.HOLD
    if value > high:
        return Signal.SELL
    elif value < low:
        return Signal.BUY
    return Signal.HOLD


# ===========================
# BREAKOUT / BAND RULES
# ===========================

def evaluate_atr(current, previous=None, context=None, multiple: float = ATR_MULTIPLE) -> Signal:
    """
    ATR breakout

    A close above previous close + ATR is a breakout (buy); any close below
    that level sells. A close exactly on it holds.
    """
    close, previous_close = _context(context, "close", "previous_close")
    if _missing(current, close, previous_close):
        return Signal.HOLD

    reach = current * multiple if multiple is not None else current

    if close > previous_close + reach:
        return Signal.BUY
    elif close < previous_close + reach:
        return Signal.SELL
    return Signal.HOLD


def evaluate_adx(current, previous=None, context=None, low: float = ADX_LOW, high: float = ADX_HIGH) -> Signal:
    """Strong trend (> high) sells, weak trend (< low) buys"""
    return _overbought_sells(current, low, high)


def evaluate_bollinger_bands(current, previous=None, context=None) -> Signal:
    """Bollinger bounce: buy at or below the lower band, sell at or above the upper band"""
    (close,) = _context(context, "close")
    current = current or {}
    upper, lower = current.get("upper"), current.get("lower")
    if _missing(close, upper, lower):
        return Signal.HOLD

    if close <= lower:
        return Signal.BUY
    elif close >= upper:
        return Signal.SELL
    return Signal.HOLD


def evaluate_macd(current, previous=None, context=None) -> Signal:
    """
    Sign of raw - signal.

    ``current`` is either the difference itself or a dict with
    ``raw`` and ``signal``.
    """
    if isinstance(current, Mapping):
        if _missing(current.get("raw"), current.get("signal")):
            return Signal.HOLD
        current = current["raw"] - current["signal"]

    if _missing(current):
        return Signal.HOLD
    if current < 0:
        return Signal.SELL
    elif current > 0:
        return Signal.BUY
    return Signal.HOLD


def evaluate_rsi(current, previous=None, context=None, low: float = RSI_LOW, high: float = RSI_HIGH) -> Signal:
    """
    RSI level crossing

    Fires only on the bar where RSI crosses a band: up through high
    sells, down through low buys. Readings are rounded to integers.
    """
    if _missing(current, previous):
        return Signal.HOLD

    current, previous = round_half_away(current), round_half_away(previous)

    if previous < high and current > high:
        return Signal.SELL
    elif previous > low and current < low:
        return Signal.BUY
    return Signal.HOLD


def _dual_band(k, d, low, high) -> Signal:
    if _missing(k, d):
        return Signal.HOLD
    if k < low and d < low:
        return Signal.BUY
    elif k > high and d > high:
        return Signal.SELL
    return Signal.HOLD


def evaluate_stoch(current, previous=None, context=None, low: float = STOCH_LOW, high: float = STOCH_HIGH) -> Signal:
    """Slow %K and %D both below low buy, both above high sell"""
    current = current or {}
    return _dual_band(current.get("slow_k"), current.get("slow_d"), low, high)


def evaluate_stoch_f(current, previous=None, context=None, low: float = STOCH_LOW, high: float = STOCH_HIGH) -> Signal:
    current = current or {}
    return _dual_band(current.get("fast_k"), current.get("fast_d"), low, high)


def evaluate_awesome_oscillator(current, previous=None, context=None) -> int:
    """Zero-line cross: +100 bullish, -100 bearish"""
    if _missing(current, previous):
        return Signal.HOLD

    if previous <= 0 < current:
        return AO_BULLISH
    elif previous >= 0 > current:
        return AO_BEARISH
    return Signal.HOLD


def evaluate_mfi(current, previous=None, context=None, low: float = MFI_LOW, high: float = MFI_HIGH) -> Signal:
    return _overbought_sells(current, low, high)


# ===========================
# MULTI-SAMPLE RULES
# ===========================

def evaluate_obv(current, previous=None, context=None) -> Signal:
    """Three strictly rising OBV samples buy, three strictly falling sell"""
    earlier, prior = _earlier(previous, 2)
    if _missing(current, prior, earlier):
        return Signal.HOLD

    if current > prior > earlier:
        return Signal.BUY
    elif current < prior < earlier:
        return Signal.SELL
    return Signal.HOLD


def evaluate_parabolic_sar(current, previous=None, context=None) -> Signal:
    """Last three SAR points above the latest high sell, below the latest low buy"""
    earlier, prior = _earlier(previous, 2)
    high, low = _context(context, "high", "low")
    if _missing(current, prior, earlier, high, low):
        return Signal.HOLD

    sars = (earlier, prior, current)
    if all(sar > high for sar in sars):
        return Signal.SELL
    elif all(sar < low for sar in sars):
        return Signal.BUY
    return Signal.HOLD


def evaluate_fsar(current, previous=None, context=None) -> Signal:
    """
    Forex SAR

    ``context`` holds ``open``, ``high``, ``low`` and ``close`` sequences
    of the last three bars (oldest first). A bar is bullish when it
    closes above its open and bearish when it closes below.

    Buy when the prior SAR sat above its bar after a bearish candle (on
    either of the two prior bars) and the current SAR sits below a new
    bullish candle. Sell on the mirror image.
    """
    (prior_sar,) = _earlier(previous, 1)
    opens, highs, lows, closes = _context(context, "open", "high", "low", "close")
    if _missing(current, prior_sar, opens, highs, lows, closes) or len(closes) < 3:
        return Signal.HOLD

    bullish = [c > o for o, c in zip(opens[-3:], closes[-3:])]
    bearish = [c < o for o, c in zip(opens[-3:], closes[-3:])]

    prior_above = prior_sar > highs[-2]
    prior_below = prior_sar < lows[-2]
    above = current > highs[-1]
    below = current < lows[-1]

    if prior_above and (bearish[0] or bearish[1]) and below and bullish[2]:
        return Signal.BUY
    elif prior_below and (bullish[0] or bullish[1]) and above and bearish[2]:
        return Signal.SELL
    return Signal.HOLD


# ===========================
# THRESHOLD RULES
# ===========================

def evaluate_cci(current, previous=None, context=None, low: float = CCI_LOW, high: float = CCI_HIGH) -> Signal:
    return _overbought_sells(current, low, high)


def evaluate_cmo(current, previous=None, context=None, low: float = CMO_LOW, high: float = CMO_HIGH) -> Signal:
    return _overbought_sells(current, low, high)


def evaluate_aroon_osc(current, previous=None, context=None, low: float = AROON_LOW, high: float = AROON_HIGH) -> Signal:
    """Aroon Oscillator follows the trend: below low sells, above high buys"""
    if _missing(current):
        return Signal.HOLD
    if current < low:
        return Signal.SELL
    elif current > high:
        return Signal.BUY
    return Signal.HOLD


def evaluate_stoch_rsi(current, previous=None, context=None,
                       low: float = STOCH_RSI_LOW, high: float = STOCH_RSI_HIGH) -> Signal:
    return _overbought_sells(current, low, high)


def evaluate_roc(current, previous=None, context=None, low: float = ROC_LOW, high: float = ROC_HIGH) -> Signal:
    return _overbought_sells(current, low, high)


def evaluate_will_r(current, previous=None, context=None, low: float = WILLR_LOW, high: float = WILLR_HIGH) -> Signal:
    """Williams %R: -80..-100 oversold (buy), 0..-20 overbought (sell), bands inclusive"""
    if _missing(current):
        return Signal.HOLD
    if current <= low:
        return Signal.BUY
    elif current >= high:
        return Signal.SELL
    return Signal.HOLD


def evaluate_ult_osc(current, previous=None, context=None, low: float = ULTOSC_LOW, high: float = ULTOSC_HIGH) -> Signal:
    if _missing(current):
        return Signal.HOLD
    if current <= low:
        return Signal.BUY
    elif current >= high:
        return Signal.SELL
    return Signal.HOLD


def evaluate_hli(current, previous=None, context=None, low: float = HLI_LOW, high: float = HLI_HIGH) -> Signal:
    """High-Low Index above high is a strong uptrend (buy), below low a strong downtrend (sell)"""
    if _missing(current):
        return Signal.HOLD
    if current > high:
        return Signal.BUY
    elif current < low:
        return Signal.SELL
    return Signal.HOLD


def evaluate_elder_ray(current, previous=None, context=None) -> Signal:
    """Bull power with the high above the MACD buys, bear power with the low below it sells"""
    if _missing(current):
        return Signal.HOLD

    if current["bull"] > 0 and current["high"] > current["macd"]:
        return Signal.BUY
    elif current["bear"] < 0 and current["low"] < current["macd"]:
        return Signal.SELL
    return Signal.HOLD


def evaluate_mmi(current, previous=None, context=None, indicator: float = MMI_INDICATOR) -> Signal:
    """MMI below the indicator means trending (buy), above means mean-reverting (sell)"""
    if _missing(current):
        return Signal.HOLD
    if current < indicator:
        return Signal.BUY
    elif current > indicator:
        return Signal.SELL
    return Signal.HOLD


# ===========================
# HILBERT CYCLE RULES
# ===========================

def evaluate_ht_sine(current, previous=None, context=None, mode=EvaluationMode.SIGNAL) -> Signal:
    """
    Hilbert Transform - Sinewave

    signal mode: lead sine crossing above the sine buys, crossing below sells.
    trend mode: all four samples negative is an uptrend (buy), all
    positive a downtrend (sell).
    """
    if previous is None or _missing(current, previous):
        return Signal.HOLD

    sine, lead = current["sine"], current["lead_sine"]
    prev_sine, prev_lead = previous["sine"], previous["lead_sine"]

    if EvaluationMode.resolve(mode) is EvaluationMode.TREND:
        samples = (sine, prev_sine, lead, prev_lead)
        if all(v < 0 for v in samples):
            return Signal.BUY
        elif all(v > 0 for v in samples):
            return Signal.SELL
        return Signal.HOLD

    if lead > sine and prev_lead <= prev_sine:
        return Signal.BUY
    elif lead < sine and prev_lead >= prev_sine:
        return Signal.SELL
    return Signal.HOLD


def evaluate_ht_trend_line(current, previous=None, context=None,
                           indicator: float = HT_TRENDLINE_INDICATOR,
                           lookback: int = HT_TRENDLINE_LOOKBACK) -> Signal:
    """
    Hilbert Transform - Instantaneous Trendline

    ``current`` is {"uptrend", "downtrend", "declared"}: bar counts of
    WMA above / below the trendline over the lookback and the latest
    relative deviation (WMA - trendline) / trendline.
    """
    if _missing(current):
        return Signal.HOLD

    if current["uptrend"] >= lookback or current["declared"] >= indicator:
        return Signal.BUY
    elif current["downtrend"] >= lookback or current["declared"] <= -indicator:
        return Signal.SELL
    return Signal.HOLD


def evaluate_ht_trend_mode(current, previous=None, context=None,
                           indicator: float = HT_TRENDMODE_INDICATOR,
                           mode=EvaluationMode.SIGNAL) -> int:
    """
    Hilbert Transform - Trend vs Cycle Mode

    signal mode: 1 while trending (latest == indicator), 0 while cycling.
    trend mode: number of trailing samples, the latest included, equal
    to the latest value.
    """
    if _missing(current):
        return Signal.HOLD

    if EvaluationMode.resolve(mode) is EvaluationMode.TREND:
        periods = 1
        for value in reversed(list(previous or [])):
            if value != current:
                break
            periods += 1
        return periods

    return Signal.BUY if current == indicator else Signal.HOLD


# ===========================
# CROSSOVER RULES
# ===========================

def evaluate_ema_crossover(current, previous=None, context=None, compare_with_previous: bool = True) -> Signal:
    """
    Short EMA crossing the long EMA upwards buys, downwards sells.

    With compare_with_previous disabled only the current order counts.
    """
    current = current or {}
    short, long = current.get("short"), current.get("long")
    if _missing(short, long):
        return Signal.HOLD

    if not compare_with_previous:
        if short > long:
            return Signal.BUY
        elif short < long:
            return Signal.SELL
        return Signal.HOLD

    if previous is None or _missing(previous):
        return Signal.HOLD
    prev_short, prev_long = previous["short"], previous["long"]

    if prev_short <= prev_long and short > long:
        return Signal.BUY
    elif prev_short >= prev_long and short < long:
        return Signal.SELL
    return Signal.HOLD


def evaluate_ema_triple_crossover(current, previous=None, context=None, compare_with_previous: bool = True) -> Signal:
    """Short crossing the medium while the medium crosses the long; mirror for sells"""
    current = current or {}
    short, medium, long = current.get("short"), current.get("medium"), current.get("long")
    if _missing(short, medium, long):
        return Signal.HOLD

    if not compare_with_previous:
        if short > medium > long:
            return Signal.BUY
        elif short < medium < long:
            return Signal.SELL
        return Signal.HOLD

    if previous is None or _missing(previous):
        return Signal.HOLD
    prev_short, prev_medium, prev_long = previous["short"], previous["medium"], previous["long"]

    if prev_short <= prev_medium and short > medium and prev_medium <= prev_long and medium > long:
        return Signal.BUY
    elif prev_short >= prev_medium and short < medium and prev_medium >= prev_long and medium < long:
        return Signal.SELL
    return Signal.HOLD


# ===========================
# REGISTRY
# ===========================

Rule = Tuple[Callable[..., int], IndicatorMetadata]


def _rule(func, name, category, description, default_params=None, outputs=None, dependencies=None) -> Rule:
    return func, IndicatorMetadata(
        name=name,
        category=category,
        description=description,
        default_params=default_params or {},
        outputs=outputs or ["signal"],
        dependencies=dependencies or [],
    )


RULES: Dict[str, Rule] = {
    "ATR": _rule(evaluate_atr, "ATR", IndicatorCategory.VOLATILITY,
                 "Average True Range breakout", {"multiple": ATR_MULTIPLE},
                 dependencies=["close", "previous_close"]),
    "ADX": _rule(evaluate_adx, "ADX", IndicatorCategory.TREND,
                 "Average Directional Index trend strength", {"low": ADX_LOW, "high": ADX_HIGH}),
    "BBANDS": _rule(evaluate_bollinger_bands, "BBANDS", IndicatorCategory.VOLATILITY,
                    "Bollinger Bands bounce", dependencies=["close"]),
    "MACD": _rule(evaluate_macd, "MACD", IndicatorCategory.TREND, "MACD histogram sign"),
    "MACDEXT": _rule(evaluate_macd, "MACDEXT", IndicatorCategory.TREND,
                     "MACD histogram sign with configurable averages"),
    "RSI": _rule(evaluate_rsi, "RSI", IndicatorCategory.MOMENTUM,
                 "RSI band crossing", {"low": RSI_LOW, "high": RSI_HIGH}),
    "STOCH": _rule(evaluate_stoch, "STOCH", IndicatorCategory.MOMENTUM,
                   "Slow stochastic dual band", {"low": STOCH_LOW, "high": STOCH_HIGH}),
    "STOCHF": _rule(evaluate_stoch_f, "STOCHF", IndicatorCategory.MOMENTUM,
                    "Fast stochastic dual band", {"low": STOCH_LOW, "high": STOCH_HIGH}),
    "AO": _rule(evaluate_awesome_oscillator, "AO", IndicatorCategory.MOMENTUM,
                "Awesome Oscillator zero-line cross"),
    "MFI": _rule(evaluate_mfi, "MFI", IndicatorCategory.VOLUME,
                 "Money Flow Index", {"low": MFI_LOW, "high": MFI_HIGH}),
    "OBV": _rule(evaluate_obv, "OBV", IndicatorCategory.VOLUME, "On-Balance Volume momentum"),
    "SAR": _rule(evaluate_parabolic_sar, "SAR", IndicatorCategory.TREND,
                 "Parabolic SAR position", dependencies=["high", "low"]),
    "FSAR": _rule(evaluate_fsar, "FSAR", IndicatorCategory.TREND,
                  "Forex SAR candle confirmation", dependencies=["open", "high", "low", "close"]),
    "CCI": _rule(evaluate_cci, "CCI", IndicatorCategory.MOMENTUM,
                 "Commodity Channel Index", {"low": CCI_LOW, "high": CCI_HIGH}),
    "CMO": _rule(evaluate_cmo, "CMO", IndicatorCategory.MOMENTUM,
                 "Chande Momentum Oscillator", {"low": CMO_LOW, "high": CMO_HIGH}),
    "AROONOSC": _rule(evaluate_aroon_osc, "AROONOSC", IndicatorCategory.TREND,
                      "Aroon Oscillator", {"low": AROON_LOW, "high": AROON_HIGH}),
    "STOCHRSI": _rule(evaluate_stoch_rsi, "STOCHRSI", IndicatorCategory.MOMENTUM,
                      "Stochastic RSI", {"low": STOCH_RSI_LOW, "high": STOCH_RSI_HIGH}),
    "ROC": _rule(evaluate_roc, "ROC", IndicatorCategory.MOMENTUM,
                 "Price Rate of Change", {"low": ROC_LOW, "high": ROC_HIGH}),
    "WILLR": _rule(evaluate_will_r, "WILLR", IndicatorCategory.MOMENTUM,
                   "Williams %R", {"low": WILLR_LOW, "high": WILLR_HIGH}),
    "ULTOSC": _rule(evaluate_ult_osc, "ULTOSC", IndicatorCategory.MOMENTUM,
                    "Ultimate Oscillator", {"low": ULTOSC_LOW, "high": ULTOSC_HIGH}),
    "HLI": _rule(evaluate_hli, "HLI", IndicatorCategory.TREND,
                 "High-Low Index", {"low": HLI_LOW, "high": HLI_HIGH}),
    "ER": _rule(evaluate_elder_ray, "ER", IndicatorCategory.TREND, "Elder Ray bull/bear power"),
    "MMI": _rule(evaluate_mmi, "MMI", IndicatorCategory.TREND,
                 "Market Meanness Index", {"indicator": MMI_INDICATOR}),
    "HT_SINE": _rule(evaluate_ht_sine, "HT_SINE", IndicatorCategory.CYCLE,
                     "Hilbert sinewave crossover", {"mode": EvaluationMode.SIGNAL.value}),
    "HT_TRENDLINE": _rule(evaluate_ht_trend_line, "HT_TRENDLINE", IndicatorCategory.CYCLE,
                          "Hilbert instantaneous trendline",
                          {"indicator": HT_TRENDLINE_INDICATOR, "lookback": HT_TRENDLINE_LOOKBACK}),
    "HT_TRENDMODE": _rule(evaluate_ht_trend_mode, "HT_TRENDMODE", IndicatorCategory.CYCLE,
                          "Hilbert trend vs cycle mode",
                          {"indicator": HT_TRENDMODE_INDICATOR, "mode": EvaluationMode.SIGNAL.value}),
    "EMA_CROSSOVER": _rule(evaluate_ema_crossover, "EMA_CROSSOVER", IndicatorCategory.TREND,
                           "Short/long EMA crossover", {"compare_with_previous": True}),
    "EMA_TRIPLE_CROSSOVER": _rule(evaluate_ema_triple_crossover, "EMA_TRIPLE_CROSSOVER",
                                  IndicatorCategory.TREND, "Short/medium/long EMA crossover",
                                  {"compare_with_previous": True}),
}

ALIASES = {
    "BOLLINGER_BANDS": "BBANDS",
    "MACD_EXT": "MACDEXT",
    "STOCH_F": "STOCHF",
    "AWESOME_OSCILLATOR": "AO",
    "PARABOLIC_SAR": "SAR",
    "AROON_OSC": "AROONOSC",
    "STOCH_RSI": "STOCHRSI",
    "WILL_R": "WILLR",
    "ULT_OSC": "ULTOSC",
    "ELDER_RAY": "ER",
    "HT_TREND_LINE": "HT_TRENDLINE",
    "HT_TREND_MODE": "HT_TRENDMODE",
}


def get_rule(indicator_name: str) -> Rule:
    """Look up a rule by canonical name or alias (case-insensitive)"""
    key = indicator_name.upper()
    key = ALIASES.get(key, key)
    if key not in RULES:
        raise UnsupportedIndicatorError(indicator_name)
    return RULES[key]


def list_rules() -> Sequence[str]:
    return sorted(RULES)


def evaluate(indicator_name: str, current, previous=None, context=None, **params) -> int:
    """
    Evaluate an indicator reading with its rule.

    Args:
        indicator_name: Rule name, e.g. "RSI" or "bollinger_bands"
        current: Latest indicator sample (scalar or dict of named values)
        previous: Earlier sample(s) where the rule needs them
        context: Raw price values (close, previous_close, high, low, ...)
        **params: Band overrides (low, high, indicator, multiple, mode, ...)

    Returns:
        The signal code

    Raises:
        UnsupportedIndicatorError: when no rule exists for indicator_name
    """
    func, _ = get_rule(indicator_name)
    return func(current, previous, context, **params)
