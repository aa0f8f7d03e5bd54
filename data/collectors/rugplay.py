"""
RugPlay API Integration
Coin, holder and search data collection over the bearer-authenticated REST API
"""

import asyncio
import logging
import time
from collections import deque
from typing import Any, Dict, List, Optional, Tuple

import aiohttp
import orjson

from data.models import HolderSnapshot, MarketSnapshot
from data.processors.normalizer import DataNormalizer
from utils.constants import API_BASE_URL, DEFAULT_HOLDERS_LIMIT, DEFAULT_RATE_LIMIT, DEFAULT_REQUEST_TIMEOUT
from utils.errors import APIRateLimitError, AuthorizationError, MissingCredentialError, NetworkError
from utils.helpers import measure_time, normalize_symbol

logger = logging.getLogger(__name__)


class RugplayCollector:
    """RugPlay data collector"""

    def __init__(self, config: Optional[Dict[str, Any]], credentials):
        """
        Initialize RugPlay collector

        Args:
            config: Configuration dictionary (base_url, request_timeout,
                rate_limit, holders_limit)
            credentials: Object exposing `get_api_key()`
        """
        config = config or {}
        self.config = config
        self.credentials = credentials
        self.base_url = str(config.get('base_url') or API_BASE_URL).rstrip('/')
        self.request_timeout = config.get('request_timeout', DEFAULT_REQUEST_TIMEOUT)
        self.holders_limit = config.get('holders_limit', DEFAULT_HOLDERS_LIMIT)

        # Rate limiting
        self.rate_limit = config.get('rate_limit', DEFAULT_RATE_LIMIT)
        self.request_times = deque(maxlen=self.rate_limit)

        self.normalizer = DataNormalizer()

        # Session
        self.session: Optional[aiohttp.ClientSession] = None

        # Statistics
        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'rate_limited': 0,
        }

    async def __aenter__(self) -> 'RugplayCollector':
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def initialize(self):
        """Initialize the collector"""
        if not self.session:
            timeout = aiohttp.ClientTimeout(total=self.request_timeout)
            self.session = aiohttp.ClientSession(timeout=timeout)

    async def close(self):
        """Close the collector"""
        if self.session:
            await self.session.close()
            self.session = None

    async def _rate_limit(self):
        """Sliding one-minute window over recent request times"""
        now = time.time()

        while self.request_times and self.request_times[0] < now - 60:
            self.request_times.popleft()

        if len(self.request_times) >= self.rate_limit:
            sleep_time = 60 - (now - self.request_times[0])
            if sleep_time > 0:
                logger.debug(f"Client rate limit reached, sleeping {sleep_time:.1f}s")
                await asyncio.sleep(sleep_time)

        self.request_times.append(time.time())

    def _headers(self) -> Dict[str, str]:
        api_key = self.credentials.get_api_key()
        if not api_key:
            raise MissingCredentialError("API key not configured")
        return {
            'Authorization': f"Bearer {api_key}",
            'Content-Type': 'application/json',
        }

    async def _make_request(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Make an authenticated GET request

        Args:
            endpoint: API endpoint (without base URL)
            params: Query parameters

        Returns:
            Decoded JSON body

        Raises:
            MissingCredentialError: No API key, raised before any request
            AuthorizationError: 401/403
            APIRateLimitError: 429
            NetworkError: Any other failure
        """
        headers = self._headers()
        await self.initialize()
        await self._rate_limit()

        url = f"{self.base_url}/{endpoint.lstrip('/')}"

        try:
            self.stats['total_requests'] += 1

            async with self.session.get(url, params=params, headers=headers) as response:
                if response.status in (401, 403):
                    self.stats['failed_requests'] += 1
                    raise AuthorizationError(f"Error: {response.status} {response.reason} (check your API key)")
                if response.status == 429:
                    self.stats['failed_requests'] += 1
                    self.stats['rate_limited'] += 1
                    raise APIRateLimitError(f"Error: {response.status} {response.reason}")
                if not 200 <= response.status < 300:
                    self.stats['failed_requests'] += 1
                    raise NetworkError(f"Error: {response.status} {response.reason}")

                body = await response.read()

        except asyncio.TimeoutError as e:
            self.stats['failed_requests'] += 1
            logger.error(f"Request timeout: {url}")
            raise NetworkError(f"Request timed out after {self.request_timeout}s") from e
        except aiohttp.ClientError as e:
            self.stats['failed_requests'] += 1
            logger.error(f"Request error for {url}: {e}")
            raise NetworkError(f"Request failed: {e}") from e

        try:
            data = orjson.loads(body)
        except orjson.JSONDecodeError as e:
            self.stats['failed_requests'] += 1
            raise NetworkError(f"Invalid JSON response from {endpoint}") from e

        self.stats['successful_requests'] += 1
        return data

    async def get_market_snapshot(self, symbol: str) -> MarketSnapshot:
        """
        Get coin details and candlestick history

        Args:
            symbol: Coin symbol

        Returns:
            MarketSnapshot with candles oldest to newest
        """
        symbol = normalize_symbol(symbol)
        data = await self._make_request(f"/coin/{symbol}")
        return self.normalizer.normalize_market_snapshot(data)

    async def get_holder_snapshot(self, symbol: str, limit: Optional[int] = None) -> HolderSnapshot:
        """Get the holder distribution, largest holder first"""
        symbol = normalize_symbol(symbol)
        data = await self._make_request(
            f"/holders/{symbol}",
            params={'limit': limit or self.holders_limit}
        )
        return self.normalizer.normalize_holder_snapshot(data)

    async def search_markets(self, query: str) -> List[MarketSnapshot]:
        """Search coins by name or symbol; results carry no candles"""
        data = await self._make_request("/market", params={'search': query})
        results = self.normalizer.normalize_search_results(data)
        logger.debug(f"Search {query!r}: {len(results)} results")
        return results

    @measure_time
    async def fetch_coin(self, symbol: str) -> Tuple[MarketSnapshot, HolderSnapshot]:
        """
        Fetch market and holder snapshots concurrently.

        If either request fails the other one is cancelled and awaited before
        the first error is raised, so no request outlives the session.
        """
        tasks = (
            asyncio.create_task(self.get_market_snapshot(symbol)),
            asyncio.create_task(self.get_holder_snapshot(symbol)),
        )
        try:
            market, holders = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return market, holders

    def get_stats(self) -> Dict:
        """Get collector statistics"""
        return self.stats.copy()
