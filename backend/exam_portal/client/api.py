"""
Exam Portal - HTTP Client
Thin async client for the test-taking endpoints plus the session driver.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Optional

import httpx

from exam_portal.client.session import SessionState, TimedSession

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


class ApiError(Exception):
    """A request failed: network error, timeout, or a ``success: false`` envelope."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.status_code is None or self.status_code >= 500


class ExamPortalClient:
    """
    Talks to ``/api/v1`` and unwraps the response envelope.

    Pass ``transport`` to run against an in-process app (``httpx.ASGITransport``).
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "ExamPortalClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, json: Any = None, params: Any = None) -> Any:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        try:
            response = await self._http.request(method, path, json=json, params=params, headers=headers)
        except httpx.TimeoutException as e:
            raise ApiError("Request timed out") from e
        except httpx.RequestError as e:
            raise ApiError(f"Could not reach the server: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise ApiError(f"Unexpected response ({response.status_code})", response.status_code) from e
        if not isinstance(body, dict):
            raise ApiError(f"Unexpected response ({response.status_code})", response.status_code)

        if response.is_error or not body.get("success", False):
            raise ApiError(body.get("message") or f"HTTP {response.status_code}", response.status_code)
        return body.get("data")

    async def login(self, email: str, password: str) -> dict[str, Any]:
        data = await self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.token = data["access_token"]
        return data

    async def get_test(self, test_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/tests/{test_id}")

    async def submit_test(self, payload: dict[str, Any]) -> None:
        await self._request("POST", "/tests/submit", json=payload)

    async def get_results(self) -> list[dict[str, Any]]:
        return await self._request("GET", "/tests/results")


async def _tick_every(session: TimedSession, interval: float) -> None:
    while session.state == SessionState.IN_PROGRESS:
        await asyncio.sleep(interval)
        session.tick()


async def run_session(
    client: ExamPortalClient,
    test_id: str,
    student: Optional[Callable[[TimedSession], Awaitable[None]]] = None,
    tick_interval: float = 1.0,
) -> TimedSession:
    """
    Open a test, run its countdown, and submit when time runs out or the
    student confirms.

    ``student`` is an optional coroutine that drives the session (selects
    options, navigates, calls ``confirm_submit``). It is cancelled together
    with the ticker once the session leaves ``in_progress``. If it fails,
    the countdown keeps running and the answers given so far are submitted
    at zero.
    """
    submitted = asyncio.Event()
    session = TimedSession(on_submit=lambda _payload: submitted.set())

    try:
        data = await client.get_test(test_id)
    except ApiError as e:
        logger.warning("Could not open test %s: %s", test_id, e.message)
        session.load_failed(e.message)
        return session
    session.start(data)

    tasks = [asyncio.create_task(_tick_every(session, tick_interval))]
    if student is not None:
        tasks.append(asyncio.create_task(student(session)))
    try:
        await submitted.wait()
    finally:
        for task in tasks:
            task.cancel()
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

    for outcome in outcomes:
        # Cancelled tasks return CancelledError, which is not an Exception
        if isinstance(outcome, Exception):
            logger.error("Session driver for test %s failed: %r", test_id, outcome)

    try:
        await client.submit_test(session.submission_payload())
    except ApiError as e:
        logger.warning("Submission for test %s failed: %s", test_id, e.message)
        session.finish(error=e.message)
    else:
        session.finish()
    return session
