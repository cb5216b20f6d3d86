"""
Job polling client.

Submits jobs to the API and polls GET /jobs/{id} with exponential backoff
until the job reaches done or failed. Backoff and the overall deadline are
driven by tenacity.

Dependencies: httpx, tenacity, docflow.models
System role: Reference consumer of the polling protocol
"""

import logging
import time
from typing import Any, Callable

import httpx
from tenacity import RetryCallState, RetryError, Retrying, retry_if_result, wait_exponential

from docflow.core.exceptions import JobNotFoundError, PollTimeoutError
from docflow.models.job import JobSnapshot

logger = logging.getLogger(__name__)


def _log_poll(retry_state: RetryCallState) -> None:
    snapshot: JobSnapshot = retry_state.outcome.result()
    logger.debug(
        "%s:wait - Job not finished, polling again",
        __name__,
        extra={
            "job_id": str(snapshot.id),
            "stage": snapshot.stage,
            "attempt": retry_state.attempt_number,
            "delay": retry_state.next_action.sleep,
        },
    )


class JobPoller:
    """
    Client for the job API.

    Pass a pre-built ``httpx.Client`` to reuse connections or to inject a
    mock transport; otherwise one client is created per call.
    """

    def __init__(
        self,
        base_url: str,
        timeout_s: float = 10.0,
        initial_delay: float = 0.5,
        backoff_factor: float = 2.0,
        max_delay: float = 8.0,
        max_wait: float = 300.0,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.initial_delay = initial_delay
        self.backoff_factor = backoff_factor
        self.max_delay = max_delay
        self.max_wait = max_wait
        self._client = client
        self._sleep = sleep
        self._clock = clock

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.base_url}{path}"
        if self._client is not None:
            return self._client.request(method, url, **kwargs)
        with httpx.Client(timeout=self.timeout_s) as client:
            return client.request(method, url, **kwargs)

    def submit(self, payload: dict[str, Any], job_type: str = "full") -> str:
        """
        Create a job.

        Returns:
            str: The new job ID

        Raises:
            httpx.HTTPStatusError: The API rejected the request
        """
        r = self._request("POST", "/jobs", json={"type": job_type, "payload": payload})
        r.raise_for_status()
        return r.json()["jobId"]

    def get(self, job_id: str) -> JobSnapshot:
        """
        Fetch one job snapshot.

        Raises:
            JobNotFoundError: The API returned 404
            httpx.HTTPStatusError: Any other error status
        """
        r = self._request("GET", f"/jobs/{job_id}")
        if r.status_code == 404:
            raise JobNotFoundError(job_id)
        r.raise_for_status()
        return JobSnapshot.model_validate(r.json())

    def _retrying(self) -> Retrying:
        deadline = self._clock() + self.max_wait
        backoff = wait_exponential(
            multiplier=self.initial_delay, exp_base=self.backoff_factor, max=self.max_delay
        )

        # The last sleep is cut short so the final poll lands on the deadline
        def wait_within_deadline(retry_state: RetryCallState) -> float:
            return min(backoff(retry_state), max(deadline - self._clock(), 0.0))

        def past_deadline(retry_state: RetryCallState) -> bool:
            return self._clock() >= deadline

        return Retrying(
            retry=retry_if_result(lambda snapshot: not snapshot.is_terminal),
            wait=wait_within_deadline,
            stop=past_deadline,
            sleep=self._sleep,
            before_sleep=_log_poll,
        )

    def wait(self, job_id: str) -> JobSnapshot:
        """
        Poll until the job is done or failed.

        Returns:
            JobSnapshot: Terminal snapshot (check status for failure)

        Raises:
            PollTimeoutError: Not terminal within max_wait seconds
            JobNotFoundError: The job does not exist
        """
        try:
            return self._retrying()(self.get, job_id)
        except RetryError as e:
            snapshot: JobSnapshot = e.last_attempt.result()
            raise PollTimeoutError(
                f"Job {job_id} not finished after {self.max_wait}s",
                details={"status": snapshot.status, "stage": snapshot.stage},
            ) from e

    def submit_and_wait(self, payload: dict[str, Any], job_type: str = "full") -> JobSnapshot:
        """Create a job and poll it to a terminal state."""
        return self.wait(self.submit(payload, job_type))
