"""
Utility Helper Functions for RugPlay Market Analyzer
Core utilities for safe arithmetic, formatting and common operations
"""

import asyncio
import logging
import math
import re
import time
from datetime import datetime, timezone
from functools import wraps
from typing import Optional, Union

logger = logging.getLogger(__name__)

Number = Union[int, float]

_COIN_URL_PATTERN = re.compile(r"/coin/([A-Z0-9]+)", re.IGNORECASE)

# ============= Decorators =============

def measure_time(func):
    """Measure execution time decorator"""
    @wraps(func)
    async def async_wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return await func(*args, **kwargs)
        finally:
            elapsed = time.perf_counter() - start
            logger.debug(f"{func.__name__} took {elapsed:.4f} seconds")

    @wraps(func)
    def sync_wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed = time.perf_counter() - start
            logger.debug(f"{func.__name__} took {elapsed:.4f} seconds")

    return async_wrapper if asyncio.iscoroutinefunction(func) else sync_wrapper

# ============= Math & Financial Utilities =============

def safe_divide(numerator: Number, denominator: Number, default: float = 0.0) -> float:
    """Divide, returning `default` instead of NaN/Infinity"""
    if not denominator:
        return default
    result = numerator / denominator
    if math.isnan(result) or math.isinf(result):
        return default
    return result

def clamp(value: Number, lower: Number, upper: Number) -> float:
    """Clamp value into [lower, upper]"""
    return max(lower, min(upper, value))

def calculate_percentage_change(old_value: Number, new_value: Number) -> float:
    """Calculate percentage change between two values"""
    return safe_divide(new_value - old_value, old_value) * 100

def price_change_percent(current_price: Number, change_24h: Number) -> float:
    """24h change in percent, given the current price and the absolute change"""
    return calculate_percentage_change(current_price - change_24h, current_price)

def to_float(value, default: float = 0.0) -> float:
    """Coerce API numbers (which may arrive as strings or null) to float"""
    if value is None or value == "":
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result

# ============= Time Utilities =============

def utc_now() -> datetime:
    """Timezone-aware current time"""
    return datetime.now(timezone.utc)

def parse_timestamp(value) -> Optional[datetime]:
    """Parse ISO strings or epoch seconds/milliseconds into aware UTC datetimes"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        # Millisecond epochs are > 1e11 for any date after 1973
        seconds = value / 1000 if value > 1e11 else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

def days_between(start: datetime, end: datetime) -> float:
    """Fractional days from start to end"""
    return (end - start).total_seconds() / 86400

# ============= Formatting Utilities =============

def format_price(price: Number) -> str:
    """Format a price with precision that depends on its magnitude"""
    if price >= 1000:
        return f"{price:.2f}"
    if price >= 1:
        return f"{price:.4f}"
    if price >= 0.01:
        return f"{price:.5f}"
    if price >= 0.0001:
        return f"{price:.6f}"
    if price >= 0.000001:
        return f"{price:.8f}"
    return f"{price:.4e}"

def format_number(num: Number) -> str:
    """Format large numbers with K/M/B suffixes"""
    if num >= 1e9:
        return f"{num / 1e9:.2f}B"
    if num >= 1e6:
        return f"{num / 1e6:.2f}M"
    if num >= 1e3:
        return f"{num / 1e3:.2f}K"
    return f"{num:.2f}"

def format_number_with_commas(num: Union[Number, str]) -> str:
    """Insert thousands separators into the integer part"""
    text = str(num)
    integer, dot, fraction = text.partition(".")
    sign = "-" if integer.startswith("-") else ""
    integer = integer.lstrip("-")
    grouped = re.sub(r"\B(?=(\d{3})+(?!\d))", ",", integer)
    return f"{sign}{grouped}{dot}{fraction}"

def format_percentage(value: Number, decimals: int = 2) -> str:
    """Signed percentage, e.g. +12.50%"""
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.{decimals}f}%"

# ============= Symbol Utilities =============

def normalize_symbol(symbol: str) -> str:
    """Ledger keys are uppercase, whitespace-trimmed symbols"""
    return (symbol or "").strip().upper()

def symbol_from_url(url: str) -> Optional[str]:
    """Extract the coin symbol from a `/coin/<SYMBOL>` page URL"""
    if not url:
        return None
    match = _COIN_URL_PATTERN.search(url)
    return match.group(1).upper() if match else None
