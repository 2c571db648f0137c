"""Outbound webhook commands.

Writes (clock actions, template/schedule mutations, registration, profile
saves) go to workflow-automation endpoints. A call only counts as successful
when the HTTP status is 2xx AND the body contains the token "done"; anything
else is a failure even with a 200.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Mapping, Optional

import httpx
import structlog

from ..core.enums import WebhookOutcome

log = structlog.get_logger(__name__)

DONE_TOKEN = re.compile(r"done", re.IGNORECASE)

DEFAULT_ENDPOINTS = {
    "clock_in": "clockIn",
    "clock_out": "ClockOut",
    "template": "template",
    "schedule": "schedule",
    "registration": "registration",
    "save": "save",
}


@dataclass(frozen=True)
class WebhookCommand:
    endpoint: str
    payload: dict
    idempotency_key: Optional[str] = None


@dataclass(frozen=True)
class WebhookResult:
    outcome: WebhookOutcome
    status_code: Optional[int] = None
    body: str = ""
    attempts: int = 1
    error: Optional[str] = field(default=None, compare=False)

    @property
    def ok(self) -> bool:
        return self.outcome == WebhookOutcome.SUCCESS


def is_done(status_code: int, body: str) -> bool:
    return 200 <= status_code < 300 and bool(DONE_TOKEN.search(body or ""))


class WebhookClient:
    def __init__(
        self,
        base_url: str,
        *,
        endpoints: Optional[Mapping[str, str]] = None,
        timeout: float = 15.0,
        max_retries: int = 1,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._endpoints = dict(DEFAULT_ENDPOINTS)
        self._endpoints.update(endpoints or {})
        self._timeout = timeout
        self._max_retries = max(0, int(max_retries))
        self._transport = transport

    def url_for(self, endpoint: str) -> str:
        if endpoint not in self._endpoints:
            raise ValueError(f"Unknown webhook endpoint: {endpoint!r}")
        return f"{self._base_url}/{self._endpoints[endpoint].lstrip('/')}"

    def send(self, command: WebhookCommand) -> WebhookResult:
        """POST the command; network errors and timeouts are retried, responses are not."""
        url = self.url_for(command.endpoint)
        headers = {"Content-Type": "application/json"}
        if command.idempotency_key:
            headers["Idempotency-Key"] = command.idempotency_key

        result = WebhookResult(outcome=WebhookOutcome.FAILURE, attempts=0)
        for attempt in range(1, self._max_retries + 2):
            try:
                with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                    response = client.post(url, json=command.payload, headers=headers)
            except httpx.TimeoutException as e:
                result = WebhookResult(outcome=WebhookOutcome.TIMEOUT, attempts=attempt, error=str(e))
                log.warning("webhook_timeout", endpoint=command.endpoint, attempt=attempt)
                continue
            except httpx.HTTPError as e:
                result = WebhookResult(outcome=WebhookOutcome.FAILURE, attempts=attempt, error=str(e))
                log.warning("webhook_network_error", endpoint=command.endpoint, attempt=attempt, error=str(e))
                continue

            body = response.text
            outcome = WebhookOutcome.SUCCESS if is_done(response.status_code, body) else WebhookOutcome.FAILURE
            if outcome != WebhookOutcome.SUCCESS:
                log.warning(
                    "webhook_not_done",
                    endpoint=command.endpoint,
                    status_code=response.status_code,
                    body=body[:200],
                )
            return WebhookResult(outcome=outcome, status_code=response.status_code, body=body, attempts=attempt)

        return result
