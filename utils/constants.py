"""
System-wide Constants for RugPlay Market Analyzer
Centralized thresholds, storage keys and display tables
"""

from typing import Dict

# ============= Version Info =============
VERSION = "2.0.0"
PROJECT_NAME = "RugPlay Market Analyzer"

# ============= API Configuration =============
API_BASE_URL = "https://rugplay.com/api/v1"
DEFAULT_HOLDERS_LIMIT = 100
DEFAULT_REQUEST_TIMEOUT = 30  # seconds
DEFAULT_RATE_LIMIT = 60  # requests per minute

# ============= Storage Keys =============
API_KEY_STORAGE_KEY = "rugplay_api_key"
PORTFOLIO_STORAGE_KEY = "rugplay_portfolio"
API_KEY_ENV_VAR = "RUGPLAY_API_KEY"

# ============= Ledger =============
TRANSACTIONS_PER_PAGE = 15
EXPORT_FILENAME_TEMPLATE = "rugplay_portfolio_{date}.json"

# ============= Trend Analysis =============
MIN_CANDLES = 10
TREND_WINDOW = 20
SHORT_MA_PERIOD = 5
LONG_MA_PERIOD = 10

TREND_ICONS: Dict[str, str] = {
    "STRONG_UP": "🚀",
    "UP": "📈",
    "NEUTRAL": "↔️",
    "DOWN": "📉",
    "STRONG_DOWN": "💥",
    "UNKNOWN": "❓",
}

# ============= Security Thresholds =============
SECURITY_THRESHOLDS = {
    "top_holder_critical": 80,
    "top_holder_high": 50,
    "top_holder_medium": 30,
    "top10_critical": 95,
    "top10_high": 80,
    "pool_critical": 1,
    "pool_medium": 5,
    "age_very_new_days": 1,
    "age_new_days": 7,
    "age_established_days": 30,
    "volume_ratio_medium": 50,
    "volume_ratio_low": 20,
}

SECURITY_RECOMMENDATIONS: Dict[str, str] = {
    "HIGH": "Low risk - Appears relatively safe",
    "MEDIUM": "Medium risk - Exercise caution",
    "LOW": "High risk - Be very careful",
    "CRITICAL": "Critical risk - Avoid or minimal exposure",
    "UNKNOWN": "Insufficient data",
}

# ============= Activity Scoring =============
ACTIVITY_MAX_SCORES = {
    "volume": 30,
    "market_cap": 25,
    "holders": 25,
    "volatility": 20,
}

# ============= Profitability Scoring =============
PROFIT_BASE_SCORE = 50
PERFORMANCE_CAP = 25
PERSONAL_PNL_CAP = 25
LIQUIDITY_SCORE_CAP = 15
LIQUIDITY_SCORE_OFFSET = 10
SMALL_CAP_THRESHOLDS = (
    (100_000, 10),
    (1_000_000, 5),
)

# ============= Display Buckets =============
SCORE_CLASSES = (
    (80, "excellent"),
    (60, "good"),
    (40, "neutral"),
    (20, "poor"),
)

PROFIT_CLASSES: Dict[str, str] = {
    "EXCELLENT": "excellent",
    "GOOD": "good",
    "NEUTRAL": "neutral",
    "POOR": "poor",
    "VERY_POOR": "critical",
}
