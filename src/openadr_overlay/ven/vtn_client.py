"""HTTP clients for the VTN and for a remote lookup service.

Both talk JSON over httpx. Transport errors and 5xx responses are retried
with stamina (exponential backoff with jitter); any other non-2xx status is
final and raised as the caller's VTNError subclass.
"""

from __future__ import annotations

from typing import Any, Self

import httpx
import stamina
import structlog

from openadr_overlay.config.models import VTNConfig
from openadr_overlay.core.errors import (
    DecodeError,
    RegistrationError,
    ReportSubmissionError,
    VTNError,
)
from openadr_overlay.core.types import EventKey
from openadr_overlay.ledger.cache import TransactionCache
from openadr_overlay.ledger.transaction import Transaction
from openadr_overlay.overlay.queries import LookupQuestion
from openadr_overlay.ven.reports import Report

log = structlog.get_logger(__name__)

IDEMPOTENCY_HEADER = "Idempotency-Key"


class _ServerError(Exception):
    """A 5xx response, raised so stamina retries it."""

    def __init__(self, response: httpx.Response) -> None:
        super().__init__(f"HTTP {response.status_code}")
        self.response = response


RETRIABLE_EXCEPTIONS = (httpx.TransportError, _ServerError)


class JSONEndpointClient:
    """POSTs JSON to one base URL with bounded retries.

    An httpx.AsyncClient may be shared between instances; a client created
    here is closed by aclose().
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 10.0,
        max_retries: int = 3,
        retry_wait_initial: float = 0.5,
        retry_wait_max: float = 5.0,
        retry_wait_jitter: float = 1.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._max_retries = max_retries
        self._retry_wait_initial = retry_wait_initial
        self._retry_wait_max = retry_wait_max
        self._retry_wait_jitter = retry_wait_jitter
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    @classmethod
    def from_config(
        cls,
        config: VTNConfig,
        *,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        **kwargs: Any,
    ) -> Self:
        return cls(
            base_url or config.base_url,
            timeout_seconds=config.timeout_seconds,
            max_retries=config.max_retries,
            retry_wait_initial=config.retry_wait_initial,
            retry_wait_max=config.retry_wait_max,
            retry_wait_jitter=config.retry_wait_jitter,
            client=client,
            **kwargs,
        )

    async def _post(
        self,
        path: str,
        body: Any,
        *,
        headers: dict[str, str] | None = None,
        error_type: type[VTNError] = VTNError,
    ) -> httpx.Response:
        """POST body to path, retrying transient failures.

        Raises:
            error_type: If the request keeps failing or the response is not 2xx.
        """
        url = f"{self.base_url}{path}"

        @stamina.retry(
            on=RETRIABLE_EXCEPTIONS,
            attempts=self._max_retries,
            wait_initial=self._retry_wait_initial,
            wait_max=self._retry_wait_max,
            wait_jitter=self._retry_wait_jitter,
        )
        async def _post_with_retry() -> httpx.Response:
            response = await self._client.post(url, json=body, headers=headers)
            if response.status_code >= 500:
                log.warning("vtn.request.server_error", endpoint=path, status=response.status_code)
                raise _ServerError(response)
            return response

        try:
            response = await _post_with_retry()
        except _ServerError as e:
            response = e.response
        except httpx.HTTPError as e:
            log.error("vtn.request.failed", endpoint=path, error=str(e))
            raise error_type.from_exception(e, endpoint=path) from e

        if not response.is_success:
            raise error_type(
                f"{path} returned HTTP {response.status_code}",
                endpoint=path,
                status_code=response.status_code,
                details={"body": response.text[:500]},
            )
        return response

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


class VTNClient(JSONEndpointClient):
    """Client for the VTN registration and report endpoints.

    Usage:
        async with VTNClient.from_config(config.vtn) as vtn:
            await vtn.register("VEN-1", "program-1")
            await vtn.submit_report(report, "program-1")
    """

    async def register(self, ven_id: str, program_id: str) -> None:
        """Register the VEN for a program.

        Raises:
            RegistrationError: If the VTN does not accept the registration.
        """
        body = {
            "venName": ven_id,
            "targets": [{"type": "PROGRAM_NAME", "values": [program_id]}],
        }
        await self._post("/vens", body, error_type=RegistrationError)
        log.info("vtn.ven.registered", ven_id=ven_id, program_id=program_id)

    async def submit_report(self, report: Report, program_id: str) -> None:
        """Send a report. The report_id travels as the Idempotency-Key header.

        Raises:
            ReportSubmissionError: If the VTN does not accept the report.
        """
        await self._post(
            "/reports",
            report.to_vtn_body(program_id),
            headers={IDEMPOTENCY_HEADER: report.report_id},
            error_type=ReportSubmissionError,
        )
        log.info(
            "vtn.report.accepted",
            event_key=str(report.event_key),
            report_type=report.report_type,
            report_id=report.report_id,
        )


class HttpLookupResolver(JSONEndpointClient):
    """LookupResolver that asks a remote overlay at POST {base_url}/lookup.

    The answer may be a bare list of {txid, outputIndex} objects or an
    object wrapping that list under "result". Items that also carry the
    creating transaction as "rawTx" hex feed it into the transaction cache.
    """

    def __init__(
        self,
        base_url: str,
        *,
        transactions: TransactionCache | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(base_url, **kwargs)
        self.transactions = transactions

    async def query(self, question: LookupQuestion) -> list[EventKey]:
        """Send question and return the keys in the answer.

        Raises:
            VTNError: If the request fails or the answer has the wrong shape.
        """
        response = await self._post("/lookup", question.to_dict())
        try:
            answer = response.json()
        except ValueError as e:
            raise VTNError("Lookup answer is not JSON", endpoint="/lookup") from e

        if isinstance(answer, dict) and isinstance(answer.get("result"), list):
            items = answer["result"]
        elif isinstance(answer, list):
            items = answer
        else:
            raise VTNError(
                "Lookup answer is neither a list nor a result object",
                endpoint="/lookup",
                details={"type": type(answer).__name__},
            )

        keys: list[EventKey] = []
        for item in items:
            try:
                key = EventKey.from_dict(item)
            except (KeyError, TypeError, ValueError):
                log.warning("lookup.answer.item_skipped", item=repr(item)[:200])
                continue
            raw_tx = item.get("rawTx")
            if self.transactions is not None and isinstance(raw_tx, str):
                try:
                    tx = Transaction.from_hex(raw_tx)
                except DecodeError as e:
                    log.warning("lookup.answer.raw_tx_invalid", key=str(key), reason=e.message)
                else:
                    if tx.txid == key.txid:
                        self.transactions.add(tx)
            keys.append(key)
        return keys
