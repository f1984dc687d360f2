"""OpenAI Assistants API client driving the thread/run protocol."""

import asyncio
import time
from typing import Any, Awaitable, Callable

import httpx
import logfire
from pydantic import ValidationError

from instagram_relay.config import Settings, get_settings
from instagram_relay.constants import OPENAI_BETA_HEADER
from instagram_relay.models.assistant_models import (
    AssistantMessage,
    AssistantRun,
    PollPolicy,
)


class AssistantServiceError(Exception):
    """Base exception for assistant reply generation errors."""

    pass


class AssistantAPIError(AssistantServiceError):
    """Raised when an Assistants API call fails."""

    def __init__(self, step: str, message: str, status_code: int | None = None):
        super().__init__(f"{step} failed: {message}")
        self.step = step
        self.status_code = status_code


class AssistantRunFailedError(AssistantServiceError):
    """Raised when a run ends in a terminal status other than completed."""

    def __init__(self, run_id: str, status: str, last_error: dict | None = None):
        detail = f" ({last_error.get('message')})" if last_error else ""
        super().__init__(f"Run {run_id} ended with status {status}{detail}")
        self.run_id = run_id
        self.status = status
        self.last_error = last_error


class AssistantRunTimeoutError(AssistantServiceError):
    """Raised when a run is still not terminal after the poll policy is used up."""

    def __init__(self, run_id: str, attempts: int, last_status: str):
        super().__init__(
            f"Run {run_id} still {last_status} after {attempts} status checks"
        )
        self.run_id = run_id
        self.attempts = attempts
        self.last_status = last_status


class AssistantNoResponseError(AssistantServiceError):
    """Raised when a completed run left no assistant text on the thread."""

    pass


class AssistantService:
    """Generate replies with an OpenAI assistant.

    Each reply uses a fresh thread: create thread, add the user message,
    start a run, poll it until terminal, then read the assistant's message
    produced by that run.
    """

    def __init__(
        self,
        api_key: str,
        assistant_id: str,
        *,
        base_url: str,
        timeout_seconds: float,
        poll_policy: PollPolicy | None = None,
        delete_threads: bool = True,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize the assistant service.

        Args:
            api_key: OpenAI API key
            assistant_id: Assistant used for every run
            base_url: Assistants API base URL
            timeout_seconds: Timeout applied to each HTTP call
            poll_policy: Run status polling schedule (fixed 1s by default)
            delete_threads: Delete the thread after its run has finished
            sleep: Awaitable sleep used between status checks
        """
        if not api_key:
            raise ValueError("api_key is required")
        if not assistant_id:
            raise ValueError("assistant_id is required")
        self.assistant_id = assistant_id
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.poll_policy = poll_policy or PollPolicy()
        self.delete_threads = delete_threads
        self._api_key = api_key
        self._sleep = sleep

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "OpenAI-Beta": OPENAI_BETA_HEADER,
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        client: httpx.AsyncClient,
        step: str,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send one API call and return its JSON body.

        HTTP and transport errors are wrapped in AssistantAPIError naming
        the protocol step that failed.
        """
        start_time = time.time()
        try:
            response = await client.request(method, path, json=json)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logfire.error(
                "Assistants API HTTP error",
                step=step,
                status_code=e.response.status_code,
                response_body=e.response.text[:500],
                response_time_ms=(time.time() - start_time) * 1000,
            )
            raise AssistantAPIError(
                step, f"HTTP {e.response.status_code}", e.response.status_code
            ) from e
        except httpx.RequestError as e:
            logfire.error(
                "Assistants API request error",
                step=step,
                error=str(e),
                error_type=type(e).__name__,
                response_time_ms=(time.time() - start_time) * 1000,
            )
            raise AssistantAPIError(step, type(e).__name__) from e
        except ValueError as e:
            # Body was not JSON
            raise AssistantAPIError(step, "invalid JSON response") from e

        if not isinstance(data, dict):
            raise AssistantAPIError(step, "unexpected response shape")
        return data

    async def create_thread(self, client: httpx.AsyncClient) -> str:
        """Create an empty thread and return its ID."""
        data = await self._request(client, "create_thread", "POST", "/threads", json={})
        thread_id = data.get("id")
        if not thread_id:
            raise AssistantAPIError("create_thread", "response has no thread id")
        return thread_id

    async def add_user_message(
        self, client: httpx.AsyncClient, thread_id: str, text: str
    ) -> None:
        """Append the user's text to the thread."""
        await self._request(
            client,
            "create_message",
            "POST",
            f"/threads/{thread_id}/messages",
            json={"role": "user", "content": text},
        )

    async def create_run(self, client: httpx.AsyncClient, thread_id: str) -> AssistantRun:
        """Start a run of the configured assistant on the thread."""
        data = await self._request(
            client,
            "create_run",
            "POST",
            f"/threads/{thread_id}/runs",
            json={"assistant_id": self.assistant_id},
        )
        return self._parse_run("create_run", data)

    async def get_run(
        self, client: httpx.AsyncClient, thread_id: str, run_id: str
    ) -> AssistantRun:
        """Fetch the current state of a run."""
        data = await self._request(
            client, "get_run", "GET", f"/threads/{thread_id}/runs/{run_id}"
        )
        return self._parse_run("get_run", data)

    async def wait_for_run(
        self, client: httpx.AsyncClient, thread_id: str, run_id: str
    ) -> AssistantRun:
        """
        Poll a run until it reaches a terminal status.

        The first status check happens immediately; later checks are spaced
        by the poll policy's delay.

        Raises:
            AssistantRunTimeoutError: If the run is not terminal after
                ``poll_policy.max_attempts`` checks
        """
        policy = self.poll_policy
        run: AssistantRun | None = None
        for attempt in range(1, policy.max_attempts + 1):
            run = await self.get_run(client, thread_id, run_id)
            if run.is_terminal:
                logfire.info(
                    "Assistant run finished",
                    run_id=run_id,
                    status=run.status,
                    attempts=attempt,
                )
                return run
            if attempt < policy.max_attempts:
                await self._sleep(policy.delay_after(attempt))

        last_status = run.status if run else "unknown"
        logfire.warn(
            "Assistant run timed out",
            run_id=run_id,
            attempts=policy.max_attempts,
            last_status=last_status,
        )
        await self.cancel_run(client, thread_id, run_id)
        raise AssistantRunTimeoutError(run_id, policy.max_attempts, last_status)

    async def cancel_run(
        self, client: httpx.AsyncClient, thread_id: str, run_id: str
    ) -> None:
        """Best-effort cancel of a run that is being abandoned."""
        try:
            await self._request(
                client,
                "cancel_run",
                "POST",
                f"/threads/{thread_id}/runs/{run_id}/cancel",
            )
        except AssistantAPIError as e:
            logfire.warn("Could not cancel assistant run", run_id=run_id, error=str(e))

    async def list_messages(
        self, client: httpx.AsyncClient, thread_id: str
    ) -> list[AssistantMessage]:
        """List the messages of a thread, newest first."""
        data = await self._request(
            client, "list_messages", "GET", f"/threads/{thread_id}/messages"
        )
        try:
            return [AssistantMessage.model_validate(item) for item in data.get("data") or []]
        except (ValidationError, TypeError) as e:
            logfire.error(
                "Assistants API returned malformed messages",
                step="list_messages",
                error_type=type(e).__name__,
            )
            raise AssistantAPIError("list_messages", "unexpected response shape") from e

    async def delete_thread(self, client: httpx.AsyncClient, thread_id: str) -> None:
        """Best-effort delete of a thread that is no longer needed."""
        try:
            await self._request(client, "delete_thread", "DELETE", f"/threads/{thread_id}")
        except AssistantAPIError as e:
            logfire.warn(
                "Could not delete assistant thread", thread_id=thread_id, error=str(e)
            )

    @staticmethod
    def extract_reply(messages: list[AssistantMessage], run_id: str) -> str:
        """
        Pick the assistant text produced by a run.

        Raises:
            AssistantNoResponseError: If the run left no assistant message
                with a text content part
        """
        for message in messages:
            if message.role != "assistant" or message.run_id != run_id:
                continue
            text = message.text_value()
            if text is not None:
                return text
        raise AssistantNoResponseError(f"No assistant response found for run {run_id}")

    async def get_reply(self, text: str) -> str:
        """
        Generate the assistant's reply to a single user message.

        Args:
            text: User message text

        Returns:
            Reply text produced by the assistant

        Raises:
            AssistantServiceError: If any protocol step fails, the run does
                not complete, or no reply text is found
        """
        start_time = time.time()
        logfire.info(
            "Requesting assistant reply",
            assistant_id=self.assistant_id,
            message_length=len(text),
        )

        async with httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=self.timeout_seconds,
        ) as client:
            thread_id = await self.create_thread(client)
            try:
                await self.add_user_message(client, thread_id, text)
                run = await self.create_run(client, thread_id)
                if not run.is_terminal:
                    run = await self.wait_for_run(client, thread_id, run.id)
                if not run.is_completed:
                    logfire.error(
                        "Assistant run did not complete",
                        run_id=run.id,
                        status=run.status,
                        last_error=run.last_error,
                    )
                    raise AssistantRunFailedError(run.id, run.status, run.last_error)

                messages = await self.list_messages(client, thread_id)
                reply = self.extract_reply(messages, run.id)
            finally:
                if self.delete_threads:
                    await self.delete_thread(client, thread_id)

        logfire.info(
            "Assistant reply generated",
            run_id=run.id,
            reply_length=len(reply),
            response_time_ms=(time.time() - start_time) * 1000,
        )
        return reply

    @staticmethod
    def _parse_run(step: str, data: dict[str, Any]) -> AssistantRun:
        if not data.get("id") or not isinstance(data.get("status"), str):
            raise AssistantAPIError(step, "response has no run id or status")
        try:
            return AssistantRun.model_validate(data)
        except ValidationError as e:
            raise AssistantAPIError(step, "unexpected response shape") from e


def get_assistant_service(settings: Settings | None = None) -> AssistantService:
    """Factory function to build an AssistantService from settings."""
    settings = settings or get_settings()
    return AssistantService(
        api_key=settings.openai_api_key,
        assistant_id=settings.openai_assistant_id,
        base_url=settings.openai_base_url,
        timeout_seconds=settings.openai_api_timeout_seconds,
        poll_policy=PollPolicy(
            interval_seconds=settings.assistant_poll_interval_seconds,
            max_attempts=settings.assistant_poll_max_attempts,
            backoff_factor=settings.assistant_poll_backoff_factor,
            max_interval_seconds=settings.assistant_poll_max_interval_seconds,
        ),
        delete_threads=settings.assistant_delete_threads,
    )
