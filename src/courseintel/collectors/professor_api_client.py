"""
HTTP client for the Enhanced Professor API (RateMyProfessor + Reddit sentiment).

This module:
1. Defines the capability set the enrichment service depends on
2. Implements it over aiohttp with a bounded timeout per call
3. Turns timeouts, network errors and non-2xx responses into ProfessorApiError
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Protocol
from urllib.parse import quote

import aiohttp

logger = logging.getLogger(__name__)

# Timeouts in seconds, per kind of call
PROFESSOR_TIMEOUT = 5
SEARCH_TIMEOUT = 10
ANALYTICS_TIMEOUT = 8
HEALTH_TIMEOUT = 3

USER_AGENT = "CourseIntel-API/1.0"


class ProfessorApiError(Exception):
    """A call to the professor API failed, timed out or returned a non-2xx status"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ProfessorDataSource(Protocol):
    """What the enrichment service needs from an external professor data provider"""

    async def fetch_professor(self, name: str) -> Dict[str, Any]: ...

    async def search_professors(self, params: Dict[str, str]) -> Dict[str, Any]: ...

    async def fetch_analytics(self, name: str) -> Dict[str, Any]: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...


class ProfessorApiClient:
    """Talks to the Enhanced Professor API over HTTP"""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")
        self.headers = {
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }
        self._session: Optional[aiohttp.ClientSession] = None

    def _get_session(self) -> aiohttp.ClientSession:
        # Created lazily so it binds to the running event loop
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers=self.headers)
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _get_json(
        self, path: str, timeout_seconds: float, params: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        try:
            async with self._get_session().get(url, params=params, timeout=timeout) as response:
                if response.status < 200 or response.status >= 300:
                    raise ProfessorApiError(
                        f"Enhanced Professor API returned {response.status} for {path}",
                        status=response.status,
                    )
                text_response = await response.text()
                return json.loads(text_response)
        except asyncio.TimeoutError as e:
            raise ProfessorApiError(f"Request to {path} timed out after {timeout_seconds}s") from e
        except json.JSONDecodeError as e:
            raise ProfessorApiError(f"Invalid JSON response from {path}: {e}") from e
        except aiohttp.ClientError as e:
            raise ProfessorApiError(f"Request to {path} failed: {e}") from e

    async def fetch_professor(self, name: str) -> Dict[str, Any]:
        return await self._get_json(f"/api/professor/{quote(name, safe='')}", PROFESSOR_TIMEOUT)

    async def search_professors(self, params: Dict[str, str]) -> Dict[str, Any]:
        return await self._get_json("/api/search", SEARCH_TIMEOUT, params=params)

    async def fetch_analytics(self, name: str) -> Dict[str, Any]:
        return await self._get_json(f"/api/analyze/{quote(name, safe='')}", ANALYTICS_TIMEOUT)

    async def ping(self) -> bool:
        """True on a 2xx health response, False on any other status."""
        timeout = aiohttp.ClientTimeout(total=HEALTH_TIMEOUT)
        try:
            async with self._get_session().get(f"{self.base_url}/api/health", timeout=timeout) as response:
                return 200 <= response.status < 300
        except asyncio.TimeoutError as e:
            raise ProfessorApiError(f"Health check timed out after {HEALTH_TIMEOUT}s") from e
        except aiohttp.ClientError as e:
            raise ProfessorApiError(f"Health check failed: {e}") from e
