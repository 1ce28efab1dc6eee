"""
ClickHouse HTTP Client

Async client for the ClickHouse HTTP interface with startup retry logic and
health checks. Queries use ClickHouse server-side parameters
(``{name:Type}`` placeholders bound from ``param_<name>`` URL arguments),
results are read in the JSON output format.
"""

import asyncio
import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qsl

import httpx

from k6stat.config import settings
from k6stat.core.errors import QueryError

logger = logging.getLogger(__name__)

# DSN parameters consumed by the client itself instead of being sent to the
# server as query settings.
_CLIENT_PARAMS = {"dial_timeout", "read_timeout"}

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: str) -> float:
    """
    Parse a duration such as ``200ms``, ``5s`` or ``1m`` into seconds.

    A bare number is taken as seconds.
    """
    m = _DURATION_RE.match(value)
    if m is None:
        raise ValueError(f"invalid duration: {value!r}")
    return float(m.group(1)) * _DURATION_UNITS[m.group(2) or "s"]


class ClickHouseClient:
    """
    Async ClickHouse client over HTTP with health monitoring and retry logic.
    """

    def __init__(
        self,
        address: str,
        database: str = "default",
        params: str = "",
        max_connections: int = 10,
        timeout: float = 60.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        client_name: str = "default",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize ClickHouse client.

        Args:
            address: HTTP interface address (e.g. http://localhost:8123)
            database: Database name
            params: DSN query string; dial_timeout/read_timeout configure the
                client, everything else is passed to the server as settings
            max_connections: Maximum concurrent HTTP connections
            timeout: Default request timeout in seconds
            max_retries: Max retry attempts for the startup health check
            retry_delay: Delay between retries in seconds
            client_name: Descriptive name for logging
            transport: Optional httpx transport (tests)
        """
        self.address = address.rstrip("/")
        self.database = database
        self.max_connections = max_connections
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.client_name = client_name
        self._transport = transport

        self.connect_timeout = timeout
        self.read_timeout = timeout
        self.server_settings: Dict[str, str] = {}
        for key, value in parse_qsl(params or ""):
            if key == "dial_timeout":
                self.connect_timeout = parse_duration(value)
            elif key == "read_timeout":
                self.read_timeout = parse_duration(value)
            elif key not in _CLIENT_PARAMS:
                self.server_settings[key] = value
        # Timestamps come back as UTC ISO 8601 regardless of server timezone.
        self.server_settings.setdefault("date_time_output_format", "iso")

        self._client: Optional[httpx.AsyncClient] = None
        self._initialized = False

        logger.info(
            f"[{client_name}] ClickHouse client configured: {self.address}/{database}, "
            f"max_connections={max_connections}"
        )

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.address,
                timeout=httpx.Timeout(self.read_timeout, connect=self.connect_timeout),
                limits=httpx.Limits(
                    max_connections=self.max_connections, max_keepalive_connections=1
                ),
                transport=self._transport,
            )
        return self._client

    async def initialize(self):
        """Create the HTTP client and verify the server answers."""
        if self._initialized:
            return

        logger.info(f"[{self.client_name}] Connecting to ClickHouse...")
        self._ensure_client()

        for attempt in range(self.max_retries):
            try:
                await self.fetch_all("SELECT 1 AS ok")
                self._initialized = True
                logger.info(f"[{self.client_name}] ClickHouse client ready")
                return
            except QueryError as e:
                if e.code == 503 and attempt < self.max_retries - 1:
                    logger.warning(
                        f"Connect attempt {attempt + 1} failed, retrying: {e}"
                    )
                    await asyncio.sleep(self.retry_delay * (attempt + 1))
                else:
                    logger.error(
                        f"Failed to connect to ClickHouse after {attempt + 1} attempts"
                    )
                    raise

    async def fetch_all(
        self,
        query: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """
        Run a SELECT query and return its rows.

        Args:
            query: SQL query with ``{name:Type}`` placeholders
            params: Placeholder values

        Returns:
            List of rows as column-name dicts
        """
        client = self._ensure_client()
        url_params: Dict[str, str] = {"database": self.database, **self.server_settings}
        for name, value in (params or {}).items():
            url_params[f"param_{name}"] = _format_param(value)

        try:
            response = await client.post(
                "/", params=url_params, content=f"{query} FORMAT JSON".encode()
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise QueryError(
                e.response.text.strip() or str(e), code=500, query=query, wrapped=e
            ) from e
        except httpx.HTTPError as e:
            raise QueryError.wrap(e, query=query) from e

        try:
            return response.json().get("data", [])
        except ValueError as e:
            raise QueryError.wrap(e, query=query) from e

    async def is_healthy(self) -> bool:
        """
        Check if the server answers queries.

        Returns:
            bool: True if healthy
        """
        try:
            rows = await self.fetch_all("SELECT 1 AS ok")
            return bool(rows) and int(rows[0]["ok"]) == 1
        except QueryError as e:
            logger.error(f"Health check failed: {e}")
            return False

    async def close(self):
        """Close the HTTP client."""
        if self._client is not None:
            logger.info("Closing ClickHouse client...")
            await self._client.aclose()
            self._client = None
            self._initialized = False
            logger.info("ClickHouse client closed")


def _format_param(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


_default_client: Optional[ClickHouseClient] = None


def get_default_client() -> ClickHouseClient:
    """
    Get or create the default ClickHouse client from settings.

    Returns:
        ClickHouseClient: Default client instance
    """
    global _default_client

    if _default_client is None:
        _default_client = ClickHouseClient(
            address=settings.K6_STAT_DB_ADDR,
            database=settings.K6_STAT_DB,
            params=settings.K6_STAT_DB_PARAM,
            max_connections=settings.K6_STAT_DB_MAX_CONN,
            timeout=settings.K6_STAT_DB_TIMEOUT,
            max_retries=settings.K6_STAT_DB_MAX_RETRIES,
            retry_delay=settings.K6_STAT_DB_RETRY_DELAY,
        )

    return _default_client


async def close_default_client():
    """Close the default client."""
    global _default_client

    if _default_client is not None:
        await _default_client.close()
        _default_client = None
