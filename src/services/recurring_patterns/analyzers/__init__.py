"""
Pattern analyzers for recurring pattern detection.

Each analyzer implements one stage of the detection pipeline, from grouping
transactions by merchant through to scoring the detected cadence.
"""

from services.recurring_patterns.analyzers.merchant import MerchantGrouper
from services.recurring_patterns.analyzers.amount import AmountClusterer
from services.recurring_patterns.analyzers.interval import IntervalAnalyzer, IntervalStatistics
from services.recurring_patterns.analyzers.frequency import FrequencyClassifier, FrequencyClassification
from services.recurring_patterns.analyzers.confidence import ConfidenceScoreCalculator

__all__ = [
    'MerchantGrouper',
    'AmountClusterer',
    'IntervalAnalyzer',
    'IntervalStatistics',
    'FrequencyClassifier',
    'FrequencyClassification',
    'ConfidenceScoreCalculator',
]
