"""
Shared pytest fixtures
"""
import pytest

from fixtures.sample_data import (
    create_downtrend_data,
    create_sample_price_data,
    create_uptrend_data,
)
from tasignals.indicators.library import CollectingSink


@pytest.fixture
def sample_data():
    """200 bars of seeded random-walk OHLCV data"""
    return create_sample_price_data(periods=200)


@pytest.fixture
def uptrend_data():
    return create_uptrend_data(periods=120)


@pytest.fixture
def downtrend_data():
    return create_downtrend_data(periods=120)


@pytest.fixture
def sink():
    return CollectingSink()
