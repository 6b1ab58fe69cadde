"""
HTTP implementation of the tracker APIs on top of requests.

requests is blocking, so every call runs in a worker thread via
asyncio.to_thread; the awaiting coroutine resumes on the event loop and all
state changes stay on the loop thread.

Conventions of the REST backend:
  - JSON bodies, bearer token auth
  - GET requests carry a ``_t`` timestamp param to defeat HTTP caches
  - 401 means the session token expired
"""
import asyncio
import logging
import time
from typing import Any, Callable

import requests

from lifedash.application.errors import AuthExpiredError, NetworkError
from lifedash.config import Settings
from lifedash.infrastructure.api.base import HabitsAPI, StatsAPI

logger = logging.getLogger(__name__)


class ApiClient:
    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = 10.0,
        session: requests.Session | None = None,
        on_auth_expired: Callable[[], None] | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        self.on_auth_expired = on_auth_expired

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "ApiClient":
        return cls(settings.API_URL, token=settings.API_TOKEN, timeout=settings.REQUEST_TIMEOUT, **kwargs)

    def _headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """
        Perform a blocking request and decode the JSON body.

        Raises:
            AuthExpiredError: HTTP 401 (the token is dropped)
            NetworkError: transport failure, timeout, non-2xx status or invalid JSON
        """
        method = method.upper()
        url = f"{self.base_url}/{path.lstrip('/')}"
        if method == "GET":
            params = {**(params or {}), "_t": int(time.time() * 1000)}

        try:
            resp = self.session.request(
                method, url, params=params, json=json, headers=self._headers(), timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise NetworkError(f"{method} {path} failed: {e}") from e

        if resp.status_code == 401:
            logger.warning("Session expired on %s %s", method, path)
            self.token = ""
            if self.on_auth_expired is not None:
                self.on_auth_expired()
            raise AuthExpiredError("Session expired", status_code=401)
        if not resp.ok:
            raise NetworkError(f"{method} {path} returned HTTP {resp.status_code}", status_code=resp.status_code)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise NetworkError(f"{method} {path} returned invalid JSON", status_code=resp.status_code) from e

    async def call(self, method: str, path: str, **kwargs) -> Any:
        return await asyncio.to_thread(self.request, method, path, **kwargs)

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.call("GET", path, params=params)

    async def post(self, path: str, json: dict[str, Any] | None = None) -> Any:
        return await self.call("POST", path, json=json)

    def close(self) -> None:
        self.session.close()


class HabitsStatsAPI(HabitsAPI):
    def __init__(self, client: ApiClient):
        self.client = client

    async def get_daily_stats(self, start: str, end: str) -> dict[str, Any]:
        return await self.client.get("/habits/stats/daily", {"startDate": start, "endDate": end})

    async def get_monthly_stats(self, year: int) -> dict[str, Any]:
        return await self.client.get("/habits/stats/monthly", {"year": year})

    async def get_streak_stats(self) -> dict[str, Any]:
        return await self.client.get("/habits/stats/streak")

    async def toggle_entry(self, entity_id: str, day: str) -> Any:
        return await self.client.post("/habits/entries/toggle", {"habitId": entity_id, "date": day})

    async def set_entry(self, entity_id: str, day: str, value: bool) -> Any:
        return await self.client.post(
            "/habits/entries/toggle", {"habitId": entity_id, "date": day, "completed": value}
        )

    async def list_habits(self, active_only: bool = True) -> list[dict[str, Any]]:
        params = {"activeOnly": "true"} if active_only else None
        return await self.client.get("/habits", params) or []

    async def get_habit_streaks(self) -> dict[str, Any]:
        return await self.client.get("/habits/stats/habit-streaks") or {}


class PrayersStatsAPI(StatsAPI):
    def __init__(self, client: ApiClient):
        self.client = client

    async def get_daily_stats(self, start: str, end: str) -> dict[str, Any]:
        return await self.client.get("/prayers/stats/daily", {"startDate": start, "endDate": end})

    async def get_monthly_stats(self, year: int) -> dict[str, Any]:
        return await self.client.get("/prayers/stats/monthly", {"year": year})

    async def get_streak_stats(self) -> dict[str, Any]:
        return await self.client.get("/prayers/stats/streak")

    async def toggle_entry(self, entity_id: str, day: str) -> Any:
        return await self.client.post("/prayers/toggle", {"prayerType": entity_id, "date": day})

    async def set_entry(self, entity_id: str, day: str, value: bool) -> Any:
        return await self.client.post(
            "/prayers/toggle", {"prayerType": entity_id, "date": day, "prayed": value}
        )
