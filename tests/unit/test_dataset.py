"""
Unit tests for the OHLCV dataset container
"""
import warnings

import pytest
import pandas as pd
import numpy as np

from tasignals.data import OHLCVDataset, as_series
from tasignals.exceptions import InsufficientDataError, InvalidDataError


class TestAsSeries:

    @pytest.mark.unit
    def test_converts_to_float(self):
        series = as_series([1, 2, 3], name='close')

        assert series.dtype == np.float64
        assert series.name == 'close'
        assert list(series) == [1.0, 2.0, 3.0]

    @pytest.mark.unit
    def test_rejects_non_numeric(self):
        with pytest.raises(InvalidDataError):
            as_series(['a', 'b'])

    @pytest.mark.unit
    def test_rejects_none(self):
        with pytest.raises(InvalidDataError):
            as_series(None)

    @pytest.mark.unit
    def test_copies_input(self):
        source = pd.Series([1.0, 2.0])
        series = as_series(source)
        series.iloc[0] = 99.0

        assert source.iloc[0] == 1.0

    @pytest.mark.unit
    def test_series_input_converts_without_warnings(self):
        source = pd.Series([1, 2, 3], dtype='int64')

        with warnings.catch_warnings():
            warnings.simplefilter('error')
            series = as_series(source)

        assert series.dtype == np.float64
        series.iloc[0] = 99.0
        assert source.iloc[0] == 1


class TestOHLCVDataset:

    @pytest.mark.unit
    def test_from_mapping(self):
        dataset = OHLCVDataset.from_mapping({'close': [1, 2, 3], 'volume': [10, 20, 30]})

        assert len(dataset) == 3
        assert dataset.fields == ('close', 'volume')
        assert dataset.has('close')
        assert not dataset.has('open')

    @pytest.mark.unit
    def test_unequal_lengths_rejected(self):
        with pytest.raises(InvalidDataError, match='different lengths'):
            OHLCVDataset.from_mapping({'close': [1, 2, 3], 'volume': [10, 20]})

    @pytest.mark.unit
    def test_from_dataframe_capitalised_columns(self, sample_data):
        dataset = OHLCVDataset.from_dataframe(sample_data)

        assert set(dataset.fields) == {'open', 'high', 'low', 'close', 'volume'}
        assert len(dataset) == len(sample_data)
        assert dataset.index.equals(sample_data.index)

    @pytest.mark.unit
    def test_coerce(self, sample_data):
        dataset = OHLCVDataset.coerce(sample_data)

        assert OHLCVDataset.coerce(dataset) is dataset
        assert len(OHLCVDataset.coerce({'close': [1.0]})) == 1

        with pytest.raises(InvalidDataError):
            OHLCVDataset.coerce([1, 2, 3])

    @pytest.mark.unit
    def test_fields_are_copies(self):
        closes = [1.0, 2.0, 3.0]
        dataset = OHLCVDataset.from_mapping({'close': closes})

        field = dataset.close
        field.iloc[0] = 50.0

        assert dataset.close.iloc[0] == 1.0
        assert closes[0] == 1.0

    @pytest.mark.unit
    def test_missing_field(self):
        dataset = OHLCVDataset.from_mapping({'close': [1, 2, 3]})

        with pytest.raises(InvalidDataError, match="no 'high' field"):
            dataset.high

    @pytest.mark.unit
    def test_require(self):
        dataset = OHLCVDataset.from_mapping({'close': [1, 2, 3]})

        dataset.require(['close'], min_length=3)

        with pytest.raises(InvalidDataError, match="requires 'volume'"):
            dataset.require(['close', 'volume'], indicator='OBV')

        with pytest.raises(InsufficientDataError) as exc_info:
            dataset.require(['close'], min_length=5, indicator='RSI')

        assert exc_info.value.required == 5
        assert exc_info.value.available == 3

    @pytest.mark.unit
    def test_to_dataframe_is_copy(self):
        dataset = OHLCVDataset.from_mapping({'close': [1, 2, 3]})
        frame = dataset.to_dataframe()
        frame['close'] = 0.0

        assert list(dataset.close) == [1.0, 2.0, 3.0]
