"""
Configuration settings for the indicator and signal library
"""
import os

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == '':
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


# ===========================
# LOGGING
# ===========================

LOG_LEVEL = os.getenv('TASIGNALS_LOG_LEVEL', 'INFO').upper()
LOG_FILE = os.getenv('TASIGNALS_LOG_FILE', '')  # empty = console only

# ===========================
# MOVING AVERAGES
# ===========================

# Unknown moving-average kinds resolve to SMA (with a warning) when enabled
MA_UNKNOWN_KIND_FALLBACK = _env_flag('TASIGNALS_MA_FALLBACK', True)

DEFAULT_MA_PERIOD = 14

# KAMA fast/slow smoothing windows
KAMA_FAST_PERIOD = 2
KAMA_SLOW_PERIOD = 30

# MAMA limits
MAMA_FAST_LIMIT = 0.5
MAMA_SLOW_LIMIT = 0.05

# T3
T3_PERIOD = 5
T3_VOLUME_FACTOR = 0.7

# ===========================
# VOLATILITY / TREND
# ===========================

ATR_PERIOD = 14
ATR_MULTIPLE = 1.0

ADX_PERIOD = 14
ADX_LOW = 20
ADX_HIGH = 50

BBANDS_PERIOD = 10
BBANDS_DEVIATIONS_UP = 2.0
BBANDS_DEVIATIONS_DOWN = 2.0

MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9

# Parabolic SAR ($acceleration=0.02, $maximum=0.02 are tradingview defaults)
SAR_ACCELERATION = 0.02
SAR_MAXIMUM = 0.02

# ===========================
# OSCILLATORS
# ===========================

RSI_PERIOD = 14
RSI_LOW = 40
RSI_HIGH = 70

STOCH_FAST_K_PERIOD = 13
STOCH_SLOW_K_PERIOD = 3
STOCH_SLOW_D_PERIOD = 3
STOCH_FAST_D_PERIOD = 3
STOCH_LOW = 10
STOCH_HIGH = 90

STOCH_RSI_PERIOD = 14
STOCH_RSI_LOW = 0.2
STOCH_RSI_HIGH = 0.8

AO_SHORT_PERIOD = 5
AO_LONG_PERIOD = 34

MFI_PERIOD = 14
MFI_LOW = 10
MFI_HIGH = 80

CCI_PERIOD = 14
CCI_LOW = -100
CCI_HIGH = 100

CMO_PERIOD = 14
CMO_LOW = -50
CMO_HIGH = 50

AROON_PERIOD = 14
AROON_LOW = -50
AROON_HIGH = 50

ROC_PERIOD = 14
ROC_LOW = -30
ROC_HIGH = 30

WILLR_PERIOD = 14
WILLR_LOW = -80
WILLR_HIGH = -20

ULTOSC_PERIODS = (7, 14, 28)
ULTOSC_LOW = 30
ULTOSC_HIGH = 70

# ===========================
# NATIVE INDICATORS
# ===========================

HLI_PERIOD = 28
HLI_MA_PERIOD = 10
HLI_LOW = 30
HLI_HIGH = 70

MMI_INDICATOR = 75

ELDER_EMA_PERIOD = 13

# ===========================
# CROSSOVERS / HILBERT
# ===========================

EMA_SHORT_PERIOD = 5
EMA_MEDIUM_PERIOD = 9
EMA_LONG_PERIOD = 20

HT_TRENDLINE_WMA_PERIOD = 4
HT_TRENDLINE_INDICATOR = 0.15
HT_TRENDLINE_LOOKBACK = 5

HT_TRENDMODE_INDICATOR = 1
