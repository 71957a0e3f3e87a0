"""
Unit tests for the natively computed indicators (OBV, HLI, MMI, StochRSI, AO, Elder Ray)
"""
import copy

import pytest
import pandas as pd
import numpy as np

from fixtures.sample_data import create_linear_data
from tasignals.indicators.library import ErrorKind, round_half_away
from tasignals.indicators.moving_averages import MovingAverageKind, compute_ma
from tasignals.indicators.oscillators import awesome_oscillator, stoch_rsi
from tasignals.indicators.trend import (
    elder_ray,
    high_low_index,
    market_meanness_index,
    record_high_percent,
)
from tasignals.indicators.volume import obv


class TestOBV:

    @pytest.mark.unit
    def test_flat_prices_give_flat_obv(self):
        data = {'close': [10, 10, 10, 10, 10], 'volume': [100, 100, 100, 100, 100]}

        values = obv(data).value

        assert list(values) == [100.0, 100.0, 100.0, 100.0, 100.0]

    @pytest.mark.unit
    def test_running_sum(self, sample_data):
        values = obv(sample_data).value.to_numpy()
        close = sample_data['Close'].to_numpy()
        volume = sample_data['Volume'].to_numpy()

        assert values[0] == volume[0]
        for i in range(1, len(values)):
            step = values[i] - values[i - 1]
            if close[i] > close[i - 1]:
                assert step == pytest.approx(volume[i])
            elif close[i] < close[i - 1]:
                assert step == pytest.approx(-volume[i])
            else:
                assert step == 0

    @pytest.mark.unit
    def test_latest_value(self):
        data = {'close': [1, 2, 1, 3], 'volume': [10, 20, 30, 40]}

        assert obv(data, return_all=False).value == pytest.approx(10 + 20 - 30 + 40)

    @pytest.mark.unit
    def test_requires_volume(self):
        result = obv({'close': [1, 2, 3]})

        assert result.failed
        assert result.error.kind == ErrorKind.INVALID_DATA


class TestHighLowIndex:

    @pytest.mark.unit
    def test_forward_window_counts(self):
        high = np.array([1.0, 2.0, 3.0])
        low = np.array([0.0, 1.0, 2.0])

        rhp = record_high_percent(high, low, time_period=2)

        # bars 0 and 1: two new highs, one new low; bar 2: truncated window
        assert rhp == pytest.approx([200 / 3, 200 / 3, 50.0])

    @pytest.mark.unit
    def test_equal_lows_count_as_new_lows(self):
        high = np.array([5.0, 5.0, 5.0])
        low = np.array([1.0, 1.0, 1.0])

        rhp = record_high_percent(high, low, time_period=3)

        # only the first high beats -inf, every low is at the running minimum
        assert rhp[0] == pytest.approx(100 * 1 / (1 + 3))

    @pytest.mark.unit
    def test_bounded(self, sample_data):
        rhp = record_high_percent(sample_data['High'].to_numpy(), sample_data['Low'].to_numpy(), 28)

        assert (rhp >= 0).all()
        assert (rhp <= 100).all()

    @pytest.mark.unit
    def test_smoothed_series_and_scalar(self, sample_data):
        series = high_low_index(sample_data, return_all=True).value
        latest = high_low_index(sample_data).value

        assert len(series) == len(sample_data)
        assert series.iloc[:9].isna().all()
        assert isinstance(latest, int)
        assert latest == round_half_away(series.iloc[-1])

    @pytest.mark.unit
    def test_too_short(self):
        result = high_low_index(create_linear_data([1, 2, 3]), ma_period=10)
        assert result.failed


class TestMarketMeannessIndex:

    @pytest.mark.unit
    def test_alternating_closes(self):
        data = {'close': [9, 11, 9, 11, 9, 11, 9, 11, 9, 11, 9]}

        # every bar after the first rises above or falls below the mean
        assert market_meanness_index(data).value == pytest.approx(100.0)

    @pytest.mark.unit
    def test_straight_line(self):
        data = {'close': [1, 2, 3, 4, 5]}

        # mean = 3: only 4 and 5 count, each rising above the mean
        assert market_meanness_index(data).value == pytest.approx(100 * 2 / 4)

    @pytest.mark.unit
    def test_needs_two_closes(self):
        assert market_meanness_index({'close': [1]}).failed


class TestStochRSI:

    @pytest.mark.unit
    def test_bounded(self, sample_data):
        values = stoch_rsi(sample_data, return_all=True).value.dropna()

        assert len(values) > 0
        assert (values >= 0).all()
        assert (values <= 1).all()

    @pytest.mark.unit
    def test_rounded_to_two_decimals(self, sample_data):
        values = stoch_rsi(sample_data, return_all=True).value.dropna()

        assert np.allclose(values, values.round(2))

    @pytest.mark.unit
    def test_flat_rsi_is_zero(self):
        data = {'close': list(range(1, 41))}

        # RSI is pinned at 100 on a strictly rising series
        assert stoch_rsi(data, time_period=14).value == 0.0

    @pytest.mark.unit
    def test_too_short(self):
        assert stoch_rsi({'close': [1, 2, 3]}, time_period=14).failed


class TestAwesomeOscillator:

    @pytest.mark.unit
    def test_values(self, sample_data):
        result = awesome_oscillator(sample_data, long_period=34, short_period=5).value

        mid = (sample_data['High'] - sample_data['Low']) / 2
        osc = mid.rolling(5).mean() - mid.rolling(34).mean()

        assert result['current'] == pytest.approx(osc.iloc[-1])
        assert result['previous'] == pytest.approx(osc.iloc[-2])

    @pytest.mark.unit
    def test_does_not_modify_input(self):
        data = create_linear_data(range(1, 51))
        original = copy.deepcopy(data)

        awesome_oscillator(data)

        assert data == original

    @pytest.mark.unit
    def test_does_not_modify_dataframe(self, sample_data):
        original = sample_data.copy()

        awesome_oscillator(sample_data)

        pd.testing.assert_frame_equal(sample_data, original)

    @pytest.mark.unit
    def test_needs_long_period_plus_one(self):
        assert awesome_oscillator(create_linear_data(range(34))).failed
        assert awesome_oscillator(create_linear_data(range(35))).ok


class TestElderRay:

    @pytest.mark.unit
    def test_components(self, sample_data):
        values = elder_ray(sample_data).value
        ema = compute_ma(sample_data['Close'].astype(float), MovingAverageKind.EMA, 13).iloc[-1]

        assert set(values) == {'macd', 'ema', 'bull', 'bear', 'high', 'low'}
        assert values['ema'] == pytest.approx(ema)
        assert values['bull'] == pytest.approx(sample_data['High'].iloc[-1] - ema)
        assert values['bear'] == pytest.approx(sample_data['Low'].iloc[-1] - ema)

    @pytest.mark.unit
    def test_aggregate_readings_are_scalars(self, sample_data):
        values = elder_ray(sample_data).value

        assert not any(isinstance(v, pd.Series) for v in values.values())
        assert isinstance(market_meanness_index(sample_data).value, float)

    @pytest.mark.unit
    def test_too_short(self):
        assert elder_ray(create_linear_data(range(10))).failed
