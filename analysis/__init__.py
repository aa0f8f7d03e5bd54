"""
Analysis Package
Trend, security, activity and profitability scoring for a single coin
"""

from .activity_scorer import analyze_activity
from .market_analyzer import analyze_trend
from .profitability_scorer import analyze_profitability
from .rug_detector import analyze_security
from .token_scorer import TokenReport, build_report

__all__ = [
    'analyze_activity',
    'analyze_trend',
    'analyze_profitability',
    'analyze_security',
    'TokenReport',
    'build_report'
]
