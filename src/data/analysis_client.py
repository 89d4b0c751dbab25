"""Client for the external property-analysis service.

Contract: POST /api/analyze kicks off a workflow run for a listing URL and
returns its run id; GET /api/status?run_id=... reports the run status and, once
completed, the full analysis payload (property, financials, room totals).
"""

import asyncio
import logging
import time
import uuid

import httpx

from src.config import settings
from src.data.cache import cached
from src.engine.payload import build_baseline_from_payload
from src.models.analysis import AnalysisJob, AnalysisStatus, RunStatus
from src.models.scenario import ScenarioBaseline

logger = logging.getLogger(__name__)

RUN_ID_KEYS = ("run_id", "runId")
EXECUTION_ID_KEYS = ("execution_id", "executionId")


class AnalysisServiceError(Exception):
    """The analysis service could not be reached or returned an unusable response."""


class AnalysisRateLimited(AnalysisServiceError):
    def __init__(self, message: str, reset_at: str | None = None):
        super().__init__(message)
        self.reset_at = reset_at


class AnalysisNotFound(AnalysisServiceError):
    pass


class AnalysisFailed(AnalysisServiceError):
    pass


class AnalysisTimeout(AnalysisServiceError):
    pass


def validate_run_id(run_id: str) -> str:
    """Return the canonical UUID string; ValueError if malformed."""
    return str(uuid.UUID(str(run_id)))


def _pick(data: dict, keys: tuple[str, ...]) -> str | None:
    """First present key, looking at the top level then under "data"."""
    nested = data.get("data") if isinstance(data.get("data"), dict) else {}
    for source in (data, nested):
        for key in keys:
            value = source.get(key)
            if value:
                return str(value)
    return None


def _json_object(resp: httpx.Response, what: str) -> dict:
    """Decoded JSON object body, or AnalysisServiceError for anything else."""
    try:
        body = resp.json()
    except ValueError as e:
        logger.warning("%s returned non-JSON body (HTTP %s): %s", what, resp.status_code, resp.text[:200])
        raise AnalysisServiceError(f"{what} returned a non-JSON response") from e
    if not isinstance(body, dict):
        raise AnalysisServiceError(f"{what} returned {type(body).__name__}, expected an object")
    return body


def _completed(body: dict) -> bool:
    return isinstance(body, dict) and body.get("status") == RunStatus.COMPLETED.value


class AnalysisClient:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.analysis_api_url).rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self.transport
        )

    async def start_analysis(self, listing_url: str) -> AnalysisJob:
        """Kick off an analysis run for a property listing."""
        try:
            async with self._client() as client:
                resp = await client.post("/api/analyze", json={"url": listing_url})
        except httpx.HTTPError as e:
            logger.warning("Analysis kickoff failed for %s: %s", listing_url, e)
            raise AnalysisServiceError(f"Analysis service unreachable: {e}") from e

        if resp.status_code == 429:
            try:
                reset_at = _json_object(resp, "Analysis kickoff").get("reset_at")
            except AnalysisServiceError:
                reset_at = None
            raise AnalysisRateLimited("Daily analysis limit reached", reset_at=reset_at)
        if resp.is_error:
            logger.warning("Analysis kickoff returned %s: %s", resp.status_code, resp.text[:200])
            raise AnalysisServiceError(f"Analysis kickoff failed with HTTP {resp.status_code}")

        body = _json_object(resp, "Analysis kickoff")
        run_id = _pick(body, RUN_ID_KEYS)
        if not run_id:
            raise AnalysisServiceError(f"Kickoff response has no run id (keys: {sorted(body)})")

        usage = body.get("usage") if isinstance(body.get("usage"), dict) else {}
        remaining = usage.get("remaining")
        return AnalysisJob(
            run_id=run_id,
            execution_id=_pick(body, EXECUTION_ID_KEYS),
            runs_remaining=remaining if isinstance(remaining, int) else None,
        )

    @cached("analysis:status", ttl_seconds=settings.status_cache_ttl_seconds, should_cache=_completed)
    async def _fetch_status(self, run_id: str) -> dict:
        try:
            async with self._client() as client:
                resp = await client.get("/api/status", params={"run_id": run_id})
                if resp.status_code == 404:
                    raise AnalysisNotFound(f"Run not found: {run_id}")
                resp.raise_for_status()
                try:
                    return resp.json()
                except ValueError as e:
                    logger.warning("Status for %s is not JSON: %s", run_id, resp.text[:200])
                    raise AnalysisServiceError(f"Status response for {run_id} is not JSON") from e
        except httpx.HTTPStatusError as e:
            logger.warning("Status request failed for %s: %s", run_id, e)
            raise AnalysisServiceError(f"Status request failed with HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.warning("Status request failed for %s: %s", run_id, e)
            raise AnalysisServiceError(f"Analysis service unreachable: {e}") from e

    async def get_status(self, run_id: str) -> AnalysisStatus:
        """Current status of a run; the payload is populated once completed."""
        run_id = validate_run_id(run_id)
        body = await self._fetch_status(run_id)
        if not isinstance(body, dict):
            raise AnalysisServiceError(f"Unexpected status response for {run_id}")

        try:
            status = RunStatus(body.get("status"))
        except ValueError:
            raise AnalysisServiceError(f"Unknown run status: {body.get('status')!r}")

        return AnalysisStatus(
            run_id=run_id,
            status=status,
            payload=body if status is RunStatus.COMPLETED else {},
            error=body.get("error"),
            pdf_url=body.get("pdf_url"),
        )

    async def wait_for_completion(
        self,
        run_id: str,
        poll_interval: float | None = None,
        timeout: float | None = None,
    ) -> AnalysisStatus:
        """Poll until the run completes. Raises AnalysisFailed or AnalysisTimeout."""
        interval = settings.poll_interval_seconds if poll_interval is None else poll_interval
        limit = settings.poll_timeout_seconds if timeout is None else timeout
        deadline = time.monotonic() + limit

        while True:
            status = await self.get_status(run_id)
            logger.debug("Run %s status: %s", run_id, status.status.value)
            if status.status is RunStatus.COMPLETED:
                return status
            if status.status is RunStatus.FAILED:
                raise AnalysisFailed(status.error or "Unknown error")
            if time.monotonic() >= deadline:
                raise AnalysisTimeout(f"Run {run_id} still {status.status.value} after {limit:.0f}s")
            await asyncio.sleep(interval)

    async def fetch_baseline(self, run_id: str) -> ScenarioBaseline:
        """Scenario baseline for a completed run. Raises AnalysisServiceError otherwise."""
        status = await self.get_status(run_id)
        if status.status is RunStatus.FAILED:
            raise AnalysisFailed(status.error or "Unknown error")
        if status.status is not RunStatus.COMPLETED:
            raise AnalysisServiceError(f"Run {run_id} is {status.status.value}, not completed")
        return build_baseline_from_payload(status.payload)
