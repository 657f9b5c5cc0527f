"""Trigger/poll/timeout handling for job-based external lookups.

Bright Data datasets and live scrapes both return an opaque snapshot id from a trigger
call, then serve results from a snapshot endpoint once the job finishes. A not-ready
snapshot answers 404 (or 202); a ready one answers 200 with a JSON array.
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import httpx
import structlog

from rentaliq.models.scrape_job import ScrapeJob

logger = structlog.get_logger()

NOT_READY_STATUS_CODES = (202, 404)
PENDING_SNAPSHOT_STATES = {"running", "building", "starting", "collecting", "digesting"}


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed attempt budget with a fixed delay between attempts."""
    attempts: int = 10
    delay: float = 2.0


class JobOrchestrator:
    """Runs trigger/poll cycles against the Bright Data datasets API."""

    BASE_URL = "https://api.brightdata.com/datasets/v3"
    TRIGGER_URL = f"{BASE_URL}/trigger"
    SNAPSHOT_URL = BASE_URL + "/snapshot/{job_id}"

    def __init__(
        self,
        api_token: str,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.api_token = api_token
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout = timeout
        self.transport = transport
        self._sleep = sleep
        # Jobs currently being polled, keyed by job id
        self.jobs: dict[str, ScrapeJob] = {}

    def _get_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
        }

    async def trigger(
        self,
        target_url: str,
        payload: Any,
        params: Optional[dict] = None,
    ) -> Optional[str]:
        """Start a job. Returns the job id, or None when the job could not be started."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    target_url,
                    json=payload,
                    params=params,
                    headers=self._get_headers(),
                )

            if not response.is_success:
                logger.error(
                    "Job trigger rejected",
                    url=target_url,
                    status=response.status_code,
                    body=response.text[:200],
                )
                return None

            job_id = self._extract_job_id(response.json())

        except httpx.HTTPError as e:
            logger.error("Job trigger failed", url=target_url, error=str(e))
            return None
        except ValueError as e:
            logger.error("Job trigger returned invalid JSON", url=target_url, error=str(e))
            return None

        if not job_id:
            logger.error("Job trigger returned no job id", url=target_url)
            return None

        logger.info("Job triggered", job_id=job_id, url=target_url)
        return job_id

    @staticmethod
    def _extract_job_id(data: Any) -> Optional[str]:
        if isinstance(data, str):
            return data.strip() or None
        if isinstance(data, dict):
            for key in ("snapshot_id", "job_id", "id"):
                value = data.get(key)
                if value:
                    return str(value)
        return None

    async def poll_until_ready(
        self,
        job_id: str,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> list[dict]:
        """Poll a job's snapshot until it is ready.

        Returns the snapshot records, or an empty list when the attempt budget runs
        out or the snapshot endpoint answers with anything other than ready/not-ready.
        """
        policy = retry_policy or self.retry_policy
        url = self.SNAPSHOT_URL.format(job_id=job_id)
        job = self.jobs.get(job_id)
        if job is None:
            job = ScrapeJob(source_url=url)
            job.mark_triggered(job_id)
        self.jobs[job_id] = job

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                for attempt in range(policy.attempts):
                    job.record_attempt()

                    try:
                        response = await client.get(
                            url,
                            params={"format": "json"},
                            headers=self._get_headers(),
                        )
                    except httpx.HTTPError as e:
                        job.fail(str(e))
                        logger.error("Snapshot poll failed", job_id=job_id, error=str(e))
                        return []

                    state, records = self._read_snapshot(response)

                    if state == "ready":
                        job.mark_ready()
                        logger.info(
                            "Snapshot ready",
                            job_id=job_id,
                            attempts=job.attempts,
                            records=len(records),
                        )
                        return records

                    if state == "failed":
                        job.fail(f"Unexpected snapshot response: {response.status_code}")
                        logger.error(
                            "Snapshot poll aborted",
                            job_id=job_id,
                            status=response.status_code,
                        )
                        return []

                    if attempt < policy.attempts - 1:
                        await self._sleep(policy.delay)

            job.mark_timed_out()
            logger.warning("Snapshot not ready in time", job_id=job_id, attempts=job.attempts)
            return []

        finally:
            self.jobs.pop(job_id, None)

    @staticmethod
    def _read_snapshot(response: httpx.Response) -> tuple[str, list[dict]]:
        """Classify a snapshot response as ready, pending or failed."""
        if response.status_code in NOT_READY_STATUS_CODES:
            return "pending", []
        if response.status_code != 200:
            return "failed", []

        try:
            data = response.json()
        except ValueError:
            return "failed", []

        if isinstance(data, list):
            return "ready", [item for item in data if isinstance(item, dict)]

        if isinstance(data, dict):
            status = str(data.get("status", "")).lower()
            if status == "ready" and isinstance(data.get("data"), list):
                return "ready", [item for item in data["data"] if isinstance(item, dict)]
            if status in PENDING_SNAPSHOT_STATES:
                return "pending", []

        return "failed", []

    async def run(
        self,
        target_url: str,
        payload: Any,
        params: Optional[dict] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> list[dict]:
        """Trigger a job and wait for its records."""
        job_id = await self.trigger(target_url, payload, params=params)
        if not job_id:
            return []
        return await self.poll_until_ready(job_id, retry_policy)
