"""
Scoring Module - Confidential composite scoring
"""

from .engine import ScoringEngine, Submission, CHECK_WEIGHT, MAX_COMPOSITE_SCORE

__all__ = ['ScoringEngine', 'Submission', 'CHECK_WEIGHT', 'MAX_COMPOSITE_SCORE']
