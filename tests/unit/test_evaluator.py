"""
Unit tests for the signal evaluator rules
"""
import pytest

from tasignals.exceptions import UnsupportedIndicatorError
from tasignals.indicators.library import AO_BEARISH, AO_BULLISH, IndicatorMetadata, Signal
from tasignals.signals.evaluator import (
    RULES,
    EvaluationMode,
    evaluate,
    evaluate_atr,
    evaluate_bollinger_bands,
    evaluate_ema_crossover,
    evaluate_ema_triple_crossover,
    evaluate_fsar,
    evaluate_ht_trend_mode,
    evaluate_obv,
    evaluate_parabolic_sar,
    evaluate_rsi,
    get_rule,
    list_rules,
)

NAN = float('nan')


class TestThresholdRules:
    """Band direction per indicator"""

    @pytest.mark.unit
    @pytest.mark.parametrize('name, value, expected', [
        ('ADX', 55, Signal.SELL),
        ('ADX', 15, Signal.BUY),
        ('ADX', 30, Signal.HOLD),
        ('MFI', 85, Signal.SELL),
        ('MFI', 5, Signal.BUY),
        ('CCI', 120, Signal.SELL),
        ('CCI', -150, Signal.BUY),
        ('CCI', 100, Signal.HOLD),
        ('CMO', 60, Signal.SELL),
        ('CMO', -60, Signal.BUY),
        ('AROONOSC', -70, Signal.SELL),
        ('AROONOSC', 70, Signal.BUY),
        ('STOCHRSI', 0.1, Signal.BUY),
        ('STOCHRSI', 0.9, Signal.SELL),
        ('STOCHRSI', 0.5, Signal.HOLD),
        ('ROC', -35, Signal.BUY),
        ('ROC', 35, Signal.SELL),
        ('WILLR', -80, Signal.BUY),
        ('WILLR', -20, Signal.SELL),
        ('WILLR', -50, Signal.HOLD),
        ('ULTOSC', 30, Signal.BUY),
        ('ULTOSC', 70, Signal.SELL),
        ('HLI', 75, Signal.BUY),
        ('HLI', 25, Signal.SELL),
        ('MMI', 60, Signal.BUY),
        ('MMI', 100, Signal.SELL),
        ('MMI', 75, Signal.HOLD),
    ])
    def test_default_bands(self, name, value, expected):
        assert evaluate(name, value) == expected

    @pytest.mark.unit
    def test_custom_bands(self):
        assert evaluate('CCI', 80, low=-50, high=50) == Signal.SELL
        assert evaluate('MMI', 60, indicator=50) == Signal.SELL

    @pytest.mark.unit
    @pytest.mark.parametrize('name', ['ADX', 'MFI', 'CCI', 'CMO', 'AROONOSC', 'STOCHRSI',
                                      'ROC', 'WILLR', 'ULTOSC', 'HLI', 'MMI'])
    def test_missing_value_holds(self, name):
        assert evaluate(name, None) == Signal.HOLD
        assert evaluate(name, NAN) == Signal.HOLD


class TestCrossingRules:

    @pytest.mark.unit
    def test_rsi_crossing_up_through_high_sells(self):
        assert evaluate_rsi(75, 65) == Signal.SELL

    @pytest.mark.unit
    def test_rsi_crossing_down_through_low_buys(self):
        assert evaluate_rsi(35, 45) == Signal.BUY

    @pytest.mark.unit
    def test_rsi_level_reading_without_cross_holds(self):
        assert evaluate_rsi(80, 75) == Signal.HOLD
        assert evaluate_rsi(30, 35) == Signal.HOLD
        assert evaluate_rsi(100, 100) == Signal.HOLD

    @pytest.mark.unit
    def test_rsi_values_rounded(self):
        # 70.4 rounds to 70, which is not above the band
        assert evaluate_rsi(70.4, 60) == Signal.HOLD
        assert evaluate_rsi(70.6, 60) == Signal.SELL

    @pytest.mark.unit
    def test_rsi_halves_round_away_from_zero(self):
        # 70.5 rounds to 71, above the band
        assert evaluate('RSI', 70.5, 69) == Signal.SELL
        # 39.5 rounds to 40, not below the band
        assert evaluate('RSI', 39.5, 45) == Signal.HOLD

    @pytest.mark.unit
    def test_rsi_needs_previous(self):
        assert evaluate_rsi(75, None) == Signal.HOLD

    @pytest.mark.unit
    def test_macd_sign(self):
        assert evaluate('MACD', {'raw': 1.0, 'signal': 0.5}) == Signal.BUY
        assert evaluate('MACD', {'raw': 0.2, 'signal': 0.5}) == Signal.SELL
        assert evaluate('MACD', 0.0) == Signal.HOLD
        assert evaluate('MACDEXT', -0.3) == Signal.SELL

    @pytest.mark.unit
    def test_atr_breakout(self):
        assert evaluate_atr(2.0, context={'close': 103, 'previous_close': 100}) == Signal.BUY
        assert evaluate_atr(2.0, context={'close': 102, 'previous_close': 100}) == Signal.HOLD

    @pytest.mark.unit
    def test_atr_no_breakout_sells(self):
        assert evaluate('ATR', 2.0, context={'close': 100.5, 'previous_close': 100.0}) == Signal.SELL
        assert evaluate_atr(2.0, context={'close': 101, 'previous_close': 100}) == Signal.SELL
        assert evaluate_atr(2.0, context={'close': 97, 'previous_close': 100}) == Signal.SELL

    @pytest.mark.unit
    def test_atr_multiple(self):
        context = {'close': 103, 'previous_close': 100}
        assert evaluate_atr(2.0, context=context, multiple=2.0) == Signal.SELL
        assert evaluate_atr(2.0, context={'close': 105, 'previous_close': 100}, multiple=2.0) == Signal.BUY

    @pytest.mark.unit
    def test_bollinger_touch(self):
        bands = {'upper': 110.0, 'middle': 100.0, 'lower': 90.0}

        assert evaluate_bollinger_bands(bands, context={'close': 90.0}) == Signal.BUY
        assert evaluate_bollinger_bands(bands, context={'close': 110.0}) == Signal.SELL
        assert evaluate_bollinger_bands(bands, context={'close': 100.0}) == Signal.HOLD

    @pytest.mark.unit
    def test_stochastic_dual_band(self):
        assert evaluate('STOCH', {'slow_k': 5, 'slow_d': 8}) == Signal.BUY
        assert evaluate('STOCH', {'slow_k': 5, 'slow_d': 12}) == Signal.HOLD
        assert evaluate('STOCH', {'slow_k': 95, 'slow_d': 92}) == Signal.SELL
        assert evaluate('STOCHF', {'fast_k': 95, 'fast_d': 92}) == Signal.SELL

    @pytest.mark.unit
    def test_awesome_oscillator_zero_cross(self):
        assert evaluate('AO', 0.5, -0.2) == AO_BULLISH
        assert evaluate('AO', 0.5, 0.0) == AO_BULLISH
        assert evaluate('AO', -0.5, 0.2) == AO_BEARISH
        assert evaluate('AO', 0.5, 0.2) == Signal.HOLD


class TestMultiSampleRules:

    @pytest.mark.unit
    def test_obv_momentum(self):
        assert evaluate_obv(300, [100, 200]) == Signal.BUY
        assert evaluate_obv(100, [300, 200]) == Signal.SELL
        assert evaluate_obv(200, [100, 200]) == Signal.HOLD
        assert evaluate_obv(300, [200]) == Signal.HOLD

    @pytest.mark.unit
    def test_parabolic_sar(self):
        above = {'high': 10.0, 'low': 9.0}

        assert evaluate_parabolic_sar(11.0, [11.5, 11.2], context=above) == Signal.SELL
        assert evaluate_parabolic_sar(8.0, [8.5, 8.7], context=above) == Signal.BUY
        assert evaluate_parabolic_sar(8.0, [11.5, 8.7], context=above) == Signal.HOLD

    @pytest.mark.unit
    def test_fsar_buy_after_bearish_candle(self):
        context = {
            'open': [12.0, 11.0, 10.0],
            'high': [12.5, 11.5, 11.5],
            'low': [10.5, 9.5, 9.8],
            'close': [11.0, 10.0, 11.0],
        }
        # prior SAR above the prior bar, current SAR below a bullish bar
        assert evaluate_fsar(9.5, [12.8, 12.0], context=context) == Signal.BUY

    @pytest.mark.unit
    def test_fsar_sell_after_bullish_candle(self):
        context = {
            'open': [10.0, 11.0, 12.0],
            'high': [11.5, 12.5, 12.2],
            'low': [9.5, 10.5, 10.5],
            'close': [11.0, 12.0, 11.0],
        }
        assert evaluate_fsar(12.5, [9.0, 10.0], context=context) == Signal.SELL

    @pytest.mark.unit
    def test_fsar_without_colour_change_holds(self):
        context = {
            'open': [10.0, 11.0, 12.0],
            'high': [11.5, 12.5, 13.5],
            'low': [9.5, 10.5, 11.5],
            'close': [11.0, 12.0, 13.0],
        }
        assert evaluate_fsar(11.0, [9.0, 10.0], context=context) == Signal.HOLD


class TestHilbertRules:

    @pytest.mark.unit
    def test_sine_crossover(self):
        assert evaluate('HT_SINE', {'sine': 0.1, 'lead_sine': 0.3},
                        {'sine': 0.2, 'lead_sine': 0.1}) == Signal.BUY
        assert evaluate('HT_SINE', {'sine': 0.3, 'lead_sine': 0.1},
                        {'sine': 0.1, 'lead_sine': 0.2}) == Signal.SELL

    @pytest.mark.unit
    def test_sine_trend_mode(self):
        negative = {'sine': -0.1, 'lead_sine': -0.3}
        positive = {'sine': 0.1, 'lead_sine': 0.3}

        assert evaluate('HT_SINE', negative, negative, mode='trend') == Signal.BUY
        assert evaluate('HT_SINE', positive, positive, mode=EvaluationMode.TREND) == Signal.SELL
        assert evaluate('HT_SINE', positive, negative, mode='trend') == Signal.HOLD

    @pytest.mark.unit
    def test_trend_line(self):
        assert evaluate('HT_TRENDLINE', {'uptrend': 5, 'downtrend': 0, 'declared': 0.01}) == Signal.BUY
        assert evaluate('HT_TRENDLINE', {'uptrend': 2, 'downtrend': 3, 'declared': 0.2}) == Signal.BUY
        assert evaluate('HT_TRENDLINE', {'uptrend': 0, 'downtrend': 5, 'declared': -0.01}) == Signal.SELL
        assert evaluate('HT_TRENDLINE', {'uptrend': 3, 'downtrend': 2, 'declared': -0.2}) == Signal.SELL
        assert evaluate('HT_TRENDLINE', {'uptrend': 3, 'downtrend': 2, 'declared': 0.05}) == Signal.HOLD

    @pytest.mark.unit
    def test_trend_mode_signal(self):
        assert evaluate_ht_trend_mode(1) == Signal.BUY
        assert evaluate_ht_trend_mode(0) == Signal.HOLD

    @pytest.mark.unit
    def test_trend_mode_run_length(self):
        assert evaluate_ht_trend_mode(1, [0, 1, 1, 0, 1, 1], mode='trend') == 3
        assert evaluate_ht_trend_mode(0, [1, 1], mode='trend') == 1
        assert evaluate_ht_trend_mode(1, None, mode='trend') == 1


class TestEmaCrossover:

    @pytest.mark.unit
    def test_upward_cross_buys(self):
        assert evaluate_ema_crossover({'short': 11, 'long': 10}, {'short': 9, 'long': 10}) == Signal.BUY

    @pytest.mark.unit
    def test_downward_cross_sells(self):
        assert evaluate_ema_crossover({'short': 9, 'long': 10}, {'short': 11, 'long': 10}) == Signal.SELL

    @pytest.mark.unit
    def test_no_cross_holds(self):
        assert evaluate_ema_crossover({'short': 12, 'long': 10}, {'short': 11, 'long': 10}) == Signal.HOLD

    @pytest.mark.unit
    def test_without_previous_comparison(self):
        current = {'short': 12, 'long': 10}
        assert evaluate_ema_crossover(current, compare_with_previous=False) == Signal.BUY
        assert evaluate_ema_crossover({'short': 8, 'long': 10}, compare_with_previous=False) == Signal.SELL

    @pytest.mark.unit
    @pytest.mark.parametrize('current, previous', [
        ((11.0, 10.0), (9.0, 10.0)),
        ((9.0, 10.0), (11.0, 10.0)),
        ((10.5, 10.0), (10.0, 10.0)),
        ((12.0, 10.0), (11.0, 10.0)),
        ((10.0, 10.0), (10.0, 10.0)),
    ])
    def test_swapping_labels_flips_signal(self, current, previous):
        a, b = current
        pa, pb = previous

        forward = evaluate_ema_crossover({'short': a, 'long': b}, {'short': pa, 'long': pb})
        swapped = evaluate_ema_crossover({'short': b, 'long': a}, {'short': pb, 'long': pa})

        assert swapped == -forward
        if forward != Signal.HOLD:
            assert swapped != forward

    @pytest.mark.unit
    def test_triple_crossover(self):
        previous = {'short': 9.0, 'medium': 9.5, 'long': 10.0}

        assert evaluate_ema_triple_crossover({'short': 11.0, 'medium': 10.5, 'long': 10.0}, previous) == Signal.BUY
        assert evaluate_ema_triple_crossover(
            {'short': 9.0, 'medium': 9.5, 'long': 10.0},
            {'short': 11.0, 'medium': 10.5, 'long': 10.0},
        ) == Signal.SELL
        assert evaluate_ema_triple_crossover({'short': 10.2, 'medium': 9.8, 'long': 10.0}, previous) == Signal.HOLD

    @pytest.mark.unit
    def test_triple_strict_ordering(self):
        assert evaluate_ema_triple_crossover({'short': 3, 'medium': 2, 'long': 1},
                                             compare_with_previous=False) == Signal.BUY
        assert evaluate_ema_triple_crossover({'short': 1, 'medium': 2, 'long': 3},
                                             compare_with_previous=False) == Signal.SELL
        assert evaluate_ema_triple_crossover({'short': 2, 'medium': 3, 'long': 1},
                                             compare_with_previous=False) == Signal.HOLD


class TestRegistry:

    @pytest.mark.unit
    def test_every_rule_has_metadata(self):
        for name, (func, metadata) in RULES.items():
            assert callable(func)
            assert isinstance(metadata, IndicatorMetadata)
            assert metadata.name == name

    @pytest.mark.unit
    def test_aliases(self):
        assert get_rule('bollinger_bands') is RULES['BBANDS']
        assert get_rule('will_r') is RULES['WILLR']
        assert get_rule('rsi') is RULES['RSI']

    @pytest.mark.unit
    def test_unknown_rule(self):
        with pytest.raises(UnsupportedIndicatorError):
            evaluate('NOPE', 1)

    @pytest.mark.unit
    def test_list_rules(self):
        names = list_rules()

        assert len(names) == len(RULES)
        assert 'EMA_TRIPLE_CROSSOVER' in names
