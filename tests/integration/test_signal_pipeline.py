"""
Integration tests for the dataset -> indicator -> signal pipeline

Runs SignalGenerator end to end over generated bars, with the default
pandas provider and with stub providers that pin indicator outputs.
"""

import logging

import pytest
import pandas as pd

from fixtures.sample_data import create_linear_data
from tasignals import OHLCVDataset, SignalGenerator
from tasignals.exceptions import UnsupportedIndicatorError
from tasignals.indicators import calculations
from tasignals.indicators.library import AO_BEARISH, AO_BULLISH, ErrorKind, Signal
from tasignals.indicators.provider import PandasIndicatorProvider

SIGNAL_CODES = {Signal.SELL, Signal.HOLD, Signal.BUY}

SIGNAL_METHODS = [
    'atr', 'bollinger_bands', 'adx', 'macd', 'macd_ext', 'parabolic_sar', 'fsar',
    'aroon_osc', 'hli', 'er', 'mmi', 'ema_crossover', 'ema_triple_crossover',
    'rsi', 'stoch', 'stoch_f', 'cci', 'cmo', 'stoch_rsi', 'roc', 'will_r',
    'ult_osc', 'mfi', 'obv', 'ht_sine', 'ht_trend_line', 'ht_trend_mode',
]


class PinnedProvider(PandasIndicatorProvider):
    """Pandas provider with selected indicator outputs pinned"""

    def __init__(self, outputs):
        super().__init__()
        self.outputs = outputs

    def compute(self, name, dataset, params=None):
        if name in self.outputs:
            return self.outputs[name](dataset)
        return super().compute(name, dataset, params)


class TestReferenceScenarios:

    @pytest.mark.integration
    def test_flat_obv_holds(self):
        data = {'close': [10, 10, 10, 10, 10], 'volume': [100, 100, 100, 100, 100]}

        result = SignalGenerator().obv(data)

        assert result.ok
        assert result.value == Signal.HOLD

    @pytest.mark.integration
    def test_steadily_rising_rsi_holds(self):
        # RSI pins at 100 on both of the last two bars, so there is no crossing
        result = SignalGenerator().rsi({'close': list(range(1, 21))}, time_period=14)

        assert result.ok
        assert result.value == Signal.HOLD

    @pytest.mark.integration
    def test_close_on_lower_band_buys(self):
        closes = [float(c) for c in range(100, 125)]

        def bands(dataset):
            close = dataset.close
            return {'upper': close + 5.0, 'middle': close + 2.5, 'lower': close}

        generator = SignalGenerator(provider=PinnedProvider({'BBANDS': bands}))

        assert generator.bollinger_bands({'close': closes}).value == Signal.BUY

    @pytest.mark.integration
    def test_computed_lower_band_touch_buys(self):
        # the last two closes drop to 0, which is where the lower band lands
        data = {'close': [1.0] * 8 + [0.0, 0.0]}

        result = SignalGenerator().bollinger_bands(data, time_period=10)

        assert result.ok
        assert result.value == Signal.BUY

    @pytest.mark.integration
    def test_computed_close_below_lower_band_buys(self):
        data = {'close': [1.0] * 9 + [0.0]}

        assert SignalGenerator().bollinger_bands(data, time_period=10).value == Signal.BUY

    @pytest.mark.integration
    def test_mean_reverting_market_sells(self):
        data = {'close': [9, 11, 9, 11, 9, 11, 9, 11, 9, 11, 9]}

        assert SignalGenerator().mmi(data).value == Signal.SELL

    @pytest.mark.integration
    def test_cci_half_rounds_away_from_zero(self):
        def cci(dataset):
            return pd.Series([0.0] * (len(dataset) - 1) + [-100.5], index=dataset.index)

        provider = PinnedProvider({'CCI': cci})
        data = create_linear_data(range(1, 30))

        assert calculations.cci(data, provider=provider).value == -101
        assert SignalGenerator(provider=provider).cci(data).value == Signal.BUY


class TestSignalGenerator:

    @pytest.mark.integration
    @pytest.mark.parametrize('method', SIGNAL_METHODS)
    def test_signal_codes_on_random_walk(self, sample_data, method):
        result = getattr(SignalGenerator(), method)(sample_data)

        assert result.ok, result.error
        assert result.value in SIGNAL_CODES

    @pytest.mark.integration
    def test_awesome_oscillator_codes(self, sample_data, uptrend_data):
        for data in (sample_data, uptrend_data):
            result = SignalGenerator().awesome_oscillator(data)

            assert result.ok
            assert result.value in {AO_BEARISH, Signal.HOLD, AO_BULLISH}

    @pytest.mark.integration
    def test_accepts_dataset_frame_and_mapping(self, sample_data):
        generator = SignalGenerator()
        dataset = OHLCVDataset.from_dataframe(sample_data)
        mapping = {column.lower(): sample_data[column].tolist() for column in sample_data.columns}

        codes = {generator.cci(data).value for data in (sample_data, dataset, mapping)}

        assert len(codes) == 1

    @pytest.mark.integration
    def test_hilbert_trend_mode_reading(self, sample_data):
        result = SignalGenerator().ht_trend_mode(sample_data, mode='trend')

        assert result.ok
        assert result.value >= 1

    @pytest.mark.integration
    def test_short_input_is_a_failure_not_a_hold(self):
        generator = SignalGenerator()
        data = create_linear_data(range(1, 6))

        for method in ('adx', 'macd', 'rsi', 'ema_crossover', 'hli', 'stoch_rsi', 'awesome_oscillator'):
            result = getattr(generator, method)(data)
            assert result.failed, method
            assert result.error.kind == ErrorKind.INVALID_DATA

    @pytest.mark.integration
    def test_missing_field_is_a_failure(self):
        result = SignalGenerator().fsar({'close': list(range(30))})

        assert result.failed
        assert "requires 'open'" in result.error.message

    @pytest.mark.integration
    def test_input_not_modified(self, sample_data):
        original = sample_data.copy()
        generator = SignalGenerator()

        for method in SIGNAL_METHODS:
            getattr(generator, method)(sample_data)

        pd.testing.assert_frame_equal(sample_data, original)

    @pytest.mark.integration
    @pytest.mark.parametrize('method, kwargs', [
        ('bollinger_bands', {'ma_type': 'bogus'}),
        ('macd_ext', {'signal_ma': 'bogus'}),
    ])
    def test_unknown_ma_kind_warns_once(self, sample_data, caplog, method, kwargs):
        with caplog.at_level(logging.WARNING, logger='tasignals'):
            result = getattr(SignalGenerator(), method)(sample_data, **kwargs)

        assert result.ok
        assert caplog.text.count("Unknown moving average kind 'bogus'") == 1

    @pytest.mark.integration
    def test_unknown_ma_kind_recorded_as_fallback(self, sample_data, sink):
        SignalGenerator(sink=sink).bollinger_bands(sample_data, ma_type='bogus')

        assert sink.observations[0].parameters['ma_type'] == 'sma'


class TestEmaCrossoverPipeline:

    @pytest.fixture
    def rebound(self):
        # long decline then one sharp up bar
        return create_linear_data([50.0 - i for i in range(30)] + [80.0])

    @pytest.mark.integration
    def test_rebound_crosses_up(self, rebound):
        result = SignalGenerator().ema_crossover(rebound, short_period=5, long_period=20)

        assert result.value == Signal.BUY

    @pytest.mark.integration
    def test_swapping_periods_flips_signal(self, rebound, sample_data):
        generator = SignalGenerator()

        for data in (rebound, sample_data):
            forward = generator.ema_crossover(data, short_period=5, long_period=20).value
            swapped = generator.ema_crossover(data, short_period=20, long_period=5).value
            assert swapped == -forward

    @pytest.mark.integration
    def test_order_without_previous_comparison(self, uptrend_data, downtrend_data):
        generator = SignalGenerator()

        assert generator.ema_crossover(uptrend_data, compare_with_previous=False).value == Signal.BUY
        assert generator.ema_crossover(downtrend_data, compare_with_previous=False).value == Signal.SELL


class TestHilbertWithProvider:

    @pytest.mark.integration
    def test_sine_crossover(self):
        def sine(dataset):
            return {
                'sine': pd.Series([0.0] * (len(dataset) - 2) + [0.2, 0.1], index=dataset.index),
                'lead_sine': pd.Series([0.0] * (len(dataset) - 2) + [0.1, 0.3], index=dataset.index),
            }

        generator = SignalGenerator(provider=PinnedProvider({'HT_SINE': sine}))
        data = create_linear_data(range(1, 11))

        assert generator.ht_sine(data).value == Signal.BUY
        assert generator.ht_sine(data, mode='trend').value == Signal.SELL

    @pytest.mark.integration
    def test_trend_line(self):
        def trendline(dataset):
            return pd.Series(10.0, index=dataset.index)

        generator = SignalGenerator(provider=PinnedProvider({'HT_TRENDLINE': trendline}))

        assert generator.ht_trend_line({'close': list(range(10, 30))}).value == Signal.BUY

    @pytest.mark.integration
    def test_trend_mode(self):
        def trend_mode(dataset):
            return pd.Series([float('nan'), 0, 0, 1, 1, 1], index=dataset.index)

        generator = SignalGenerator(provider=PinnedProvider({'HT_TRENDMODE': trend_mode}))
        data = {'close': [1, 2, 3, 4, 5, 6]}

        assert generator.ht_trend_mode(data).value == Signal.BUY
        assert generator.ht_trend_mode(data, mode='trend').value == 3

    @pytest.mark.integration
    def test_unpinned_unknown_names_still_unsupported(self):
        provider = PinnedProvider({})
        dataset = OHLCVDataset.from_mapping({'close': [1.0, 2.0, 3.0]})

        with pytest.raises(UnsupportedIndicatorError):
            provider.compute('SUPERTREND', dataset)


class TestObservations:

    @pytest.mark.integration
    def test_sink_receives_every_evaluation(self, sample_data, sink):
        generator = SignalGenerator(sink=sink)

        generator.rsi(sample_data)
        generator.macd(sample_data)
        generator.obv(sample_data)

        assert [o.indicator for o in sink.observations] == ['RSI', 'MACD', 'OBV']

        rsi = sink.for_indicator('RSI')[0]
        assert rsi.parameters == {'time_period': 14, 'low': 40, 'high': 70}
        assert set(rsi.inputs) == {'current', 'previous'}
        assert rsi.result in SIGNAL_CODES

    @pytest.mark.integration
    def test_context_recorded(self, sample_data, sink):
        SignalGenerator(sink=sink).atr(sample_data)

        observation = sink.observations[0]
        assert observation.inputs['close'] == pytest.approx(sample_data['Close'].iloc[-1])
        assert observation.inputs['previous_close'] == pytest.approx(sample_data['Close'].iloc[-2])

    @pytest.mark.integration
    def test_failures_not_observed(self, sink):
        SignalGenerator(sink=sink).adx({'high': [1, 2], 'low': [0, 1], 'close': [1, 2]})

        assert sink.observations == []
