"""
Signals Package - discrete buy / sell / hold decisions from indicator readings

Usage:
    from tasignals.signals import SignalGenerator, evaluate

    # Evaluate a reading directly
    code = evaluate('RSI', current=75, previous=65)

    # Or compute and evaluate over a dataset
    result = SignalGenerator().macd(df)
"""

from .evaluator import (
    EvaluationMode,
    RULES,
    evaluate,
    get_rule,
    list_rules,
)
from .generator import SignalGenerator

__all__ = [
    'EvaluationMode',
    'RULES',
    'evaluate',
    'get_rule',
    'list_rules',
    'SignalGenerator',
]
