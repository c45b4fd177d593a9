"""
Batch coordinator: pre-flight checks, then hand the queue to a dispatch pool.
"""

from __future__ import annotations

import asyncio
import time
import typing as t
import uuid
from dataclasses import dataclass

import httpx
import structlog

from bnetapi.config import ClientConfig
from bnetapi.exceptions import (
    BattleNetAPIError,
    EmptyBatchError,
    MissingCredentialError,
    TransportUnavailableError,
)
from bnetapi.limiter import RateLimiter
from bnetapi.pool import CompletionHandler, DispatchPool
from bnetapi.request import RequestDescriptor, format_request_url
from bnetapi.utils.logging import logging_context

log = structlog.get_logger(__name__)

ClientFactory = t.Callable[[ClientConfig, int], httpx.AsyncClient]


def default_client_factory(config: ClientConfig, max_concurrency: int) -> httpx.AsyncClient:
    """
    Build the HTTP client used for one batch.

    Parameters
    ----------
    config : ClientConfig
        Configuration snapshot of the batch.
    max_concurrency : int
        Concurrency cap, also used as the connection pool size.

    Returns
    -------
    httpx.AsyncClient
        Client to issue the batch requests with.
    """
    return httpx.AsyncClient(
        timeout=config.timeout,
        verify=config.verify_ssl,
        headers=config.headers,
        limits=httpx.Limits(
            max_connections=max_concurrency,
            max_keepalive_connections=max_concurrency,
        ),
    )


@dataclass(frozen=True)
class SendResult:
    """
    Outcome of a send.

    Parameters
    ----------
    batch_id : str
        Identifier bound to every log event of the batch.
    total : int
        Number of requests handed to the dispatch pool.
    completed : int
        Number of completions delivered to the handler.
    elapsed_seconds : float
        Wall time of the send.
    error : BattleNetAPIError | None
        Pre-flight error that aborted the send, if any.
    """

    batch_id: str
    total: int
    completed: int
    elapsed_seconds: float
    error: BattleNetAPIError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> "SendResult":
        """
        Raise the captured error, if any.

        Returns
        -------
        SendResult
            ``self``, so the call can be chained.
        """
        if self.error is not None:
            raise self.error
        return self


class BatchCoordinator:
    """
    Validate a batch and drive it through a ``DispatchPool``.

    Parameters
    ----------
    client_factory : ClientFactory | None, optional
        Build the ``httpx.AsyncClient`` for a batch. ``None`` means no
        transport is available and every send fails pre-flight.
    on_error : typing.Callable[[BattleNetAPIError], typing.Any] | None, optional
        Called with every error that aborts a send.
    clock : typing.Callable[[], float], optional
        Clock handed to the per-batch ``RateLimiter``.
    sleep : typing.Callable[[float], typing.Awaitable[typing.Any]], optional
        Sleep coroutine handed to the per-batch ``RateLimiter``.
    """

    def __init__(
        self,
        *,
        client_factory: ClientFactory | None = default_client_factory,
        on_error: t.Callable[[BattleNetAPIError], t.Any] | None = None,
        clock: t.Callable[[], float] = time.monotonic,
        sleep: t.Callable[[float], t.Awaitable[t.Any]] = asyncio.sleep,
    ) -> None:
        self._client_factory = client_factory
        self._on_error = on_error
        self._clock = clock
        self._sleep = sleep
        self.last_pool: DispatchPool | None = None

    def _preflight(self, *, requests: t.Sequence[RequestDescriptor], config: ClientConfig) -> None:
        if self._client_factory is None or not callable(self._client_factory):
            raise TransportUnavailableError(
                "No HTTP transport is available. Provide a client factory returning an "
                "httpx.AsyncClient."
            )
        if not config.has_credential:
            raise MissingCredentialError(
                "An API key is required to interact with the Battle.net API services. "
                "If you do not have a key, please create one at https://dev.battle.net/."
            )
        if not requests:
            raise EmptyBatchError("There were no requests to be sent.")

    def _report(self, *, error: BattleNetAPIError, batch_id: str) -> None:
        log.error(
            event="Batch send aborted",
            batch_id=batch_id,
            error_type=type(error).__name__,
            error=str(error),
        )
        if self._on_error is not None:
            self._on_error(error)

    async def send(
        self,
        requests: t.Iterable[RequestDescriptor],
        *,
        config: ClientConfig,
        on_complete: CompletionHandler | None = None,
    ) -> SendResult:
        """
        Send a batch of requests and wait until every one has completed.

        Parameters
        ----------
        requests : typing.Iterable[RequestDescriptor]
            Requests to send. They are copied; the caller's container is not
            referenced after this call starts.
        config : ClientConfig
            Configuration snapshot used for the whole batch.
        on_complete : CompletionHandler | None, optional
            Called once per finished request.

        Returns
        -------
        SendResult
            Completion counts, or the pre-flight error that aborted the send.
        """
        batch = tuple(requests)
        batch_id = str(uuid.uuid4())
        started = time.perf_counter()

        with logging_context(batch_id=batch_id):
            try:
                self._preflight(requests=batch, config=config)
            except BattleNetAPIError as error:
                self._report(error=error, batch_id=batch_id)
                return SendResult(
                    batch_id=batch_id,
                    total=len(batch),
                    completed=0,
                    elapsed_seconds=time.perf_counter() - started,
                    error=error,
                )

            client_factory = t.cast(ClientFactory, self._client_factory)
            limiter = RateLimiter(
                max_per_second=config.throttle_per_second,
                max_per_hour=config.throttle_per_hour,
                clock=self._clock,
                sleep=self._sleep,
            )
            pool = DispatchPool(
                client_factory=lambda max_concurrency: client_factory(config, max_concurrency),
                limiter=limiter,
                url_formatter=lambda url: format_request_url(
                    url, locale=config.locale, api_key=config.api_key
                ),
            )
            self.last_pool = pool

            log.info(
                event="Sending batch",
                total_requests=len(batch),
                max_connections=config.max_connections,
                throttle_per_second=config.throttle_per_second,
                throttle_per_hour=config.throttle_per_hour,
            )
            try:
                completed = await pool.start(
                    batch,
                    max_concurrency=config.max_connections,
                    on_complete=on_complete,
                )
            except BattleNetAPIError as error:
                self._report(error=error, batch_id=batch_id)
                return SendResult(
                    batch_id=batch_id,
                    total=len(batch),
                    completed=pool.completed,
                    elapsed_seconds=time.perf_counter() - started,
                    error=error,
                )

            elapsed = time.perf_counter() - started
            log.info(
                event="Batch complete",
                completed=completed,
                peak_in_flight=pool.peak_in_flight,
                throttle_pauses=len(limiter.pauses),
                elapsed_seconds=round(elapsed, 3),
            )
            return SendResult(
                batch_id=batch_id,
                total=len(batch),
                completed=completed,
                elapsed_seconds=elapsed,
            )
