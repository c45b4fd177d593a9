"""
Bounded-concurrency dispatch of request descriptors.

One ``asyncio`` task is created per in-flight request. The run loop waits on
the in-flight set until at least one task finishes, hands every finished
request to the completion handler, and refills each freed slot from the
pending queue in submission order until both are empty.
"""

from __future__ import annotations

import asyncio
import inspect
import time
import typing as t
from collections import deque
from dataclasses import dataclass

import httpx
import structlog

from bnetapi.exceptions import ConfigurationError, EmptyBatchError
from bnetapi.limiter import RateLimiter
from bnetapi.request import RequestDescriptor
from bnetapi.utils.logging import redact_url

log = structlog.get_logger(__name__)

TransportMetadata = dict[str, t.Any]


class CompletionHandler(t.Protocol):
    """
    Caller-supplied callback invoked once per finished request.

    It is called inline on the dispatch loop with the requested URL, the raw
    response body, the transport metadata and the ``httpx.Response`` (``None``
    when the transport failed). It must not block for long: the whole batch
    waits for it. Async handlers are awaited before the loop continues.
    """

    def __call__(
        self,
        url: str,
        response_body: str,
        metadata: TransportMetadata,
        handle: httpx.Response | None,
    ) -> t.Any: ...


@dataclass(frozen=True)
class Completion:
    """Outcome of a single issued request."""

    descriptor: RequestDescriptor
    url: str
    body: str
    metadata: TransportMetadata
    handle: httpx.Response | None


class DispatchPool:
    """
    Hold up to ``max_concurrency`` requests in flight and report completions.

    Parameters
    ----------
    client_factory : typing.Callable[[int], httpx.AsyncClient]
        Build the HTTP client for a run, given its concurrency cap.
    limiter : RateLimiter
        Throttle consulted before every issuance.
    url_formatter : typing.Callable[[str], str], optional
        Applied to each descriptor URL right before it is issued.
    """

    def __init__(
        self,
        *,
        client_factory: t.Callable[[int], httpx.AsyncClient],
        limiter: RateLimiter,
        url_formatter: t.Callable[[str], str] = lambda url: url,
    ) -> None:
        self._client_factory = client_factory
        self._limiter = limiter
        self._url_formatter = url_formatter
        self._in_flight: dict[asyncio.Task[Completion], RequestDescriptor] = {}
        self.issued: list[int] = []
        self.completed: int = 0
        self.peak_in_flight: int = 0

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    async def start(
        self,
        requests: t.Sequence[RequestDescriptor],
        max_concurrency: int,
        on_complete: CompletionHandler | None = None,
    ) -> int:
        """
        Dispatch ``requests`` until the queue is drained.

        Parameters
        ----------
        requests : typing.Sequence[RequestDescriptor]
            Requests in submission order.
        max_concurrency : int
            Maximum number of requests in flight at once.
        on_complete : CompletionHandler | None, optional
            Called exactly once per request, success or failure alike.

        Returns
        -------
        int
            Number of completions delivered during this run.

        Raises
        ------
        ConfigurationError
            If ``max_concurrency`` is not a positive integer.
        EmptyBatchError
            If ``requests`` is empty.
        """
        if (
            isinstance(max_concurrency, bool)
            or not isinstance(max_concurrency, int)
            or max_concurrency <= 0
        ):
            raise ConfigurationError(
                f"max_concurrency must be a positive integer, got {max_concurrency!r}."
            )
        if not requests:
            raise EmptyBatchError("There were no requests to be sent.")

        # Counters describe the latest run only.
        self.issued = []
        self.completed = 0
        self.peak_in_flight = 0
        pending = deque(sorted(requests, key=lambda descriptor: descriptor.index))
        total_requests = len(pending)
        seed_count = min(max_concurrency, total_requests)
        log.debug(
            event="Starting dispatch pool",
            total_requests=total_requests,
            max_concurrency=max_concurrency,
            seed_count=seed_count,
        )

        async with self._client_factory(max_concurrency) as client:
            try:
                for _ in range(seed_count):
                    await self._issue(client=client, descriptor=pending.popleft())

                while self._in_flight:
                    done, _ = await asyncio.wait(
                        self._in_flight.keys(),
                        return_when=asyncio.FIRST_COMPLETED,
                    )
                    for task in sorted(done, key=lambda task: self._in_flight[task].index):
                        self._in_flight.pop(task)
                        completion = task.result()
                        self.completed += 1
                        log.debug(
                            event="Request completed",
                            index=completion.descriptor.index,
                            status_code=completion.metadata["status_code"],
                            in_flight=len(self._in_flight),
                            pending=len(pending),
                        )
                        await self._notify(on_complete=on_complete, completion=completion)
                        if pending:
                            await self._issue(client=client, descriptor=pending.popleft())
            finally:
                await self._cancel_in_flight()

        log.debug(event="Dispatch pool drained", completed=self.completed)
        return self.completed

    async def _issue(self, *, client: httpx.AsyncClient, descriptor: RequestDescriptor) -> None:
        await self._limiter.acquire()
        url = self._url_formatter(descriptor.url)
        task = asyncio.create_task(
            self._fetch(client=client, descriptor=descriptor, url=url),
            name=f"bnetapi_request_{descriptor.index}",
        )
        self._in_flight[task] = descriptor
        self.issued.append(descriptor.index)
        self.peak_in_flight = max(self.peak_in_flight, len(self._in_flight))
        log.debug(
            event="Issued request",
            index=descriptor.index,
            url=redact_url(url),
            in_flight=len(self._in_flight),
        )

    async def _fetch(
        self,
        *,
        client: httpx.AsyncClient,
        descriptor: RequestDescriptor,
        url: str,
    ) -> Completion:
        started = time.perf_counter()
        try:
            response = await client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as error:
            total_time = time.perf_counter() - started
            log.warning(
                event="Request transport failure",
                index=descriptor.index,
                url=redact_url(url),
                error_type=type(error).__name__,
                error=str(error),
            )
            metadata = _build_metadata(
                descriptor=descriptor,
                url=url,
                total_time=total_time,
                error=error,
            )
            return Completion(
                descriptor=descriptor,
                url=url,
                body="",
                metadata=metadata,
                handle=None,
            )

        total_time = time.perf_counter() - started
        metadata = _build_metadata(
            descriptor=descriptor,
            url=url,
            total_time=total_time,
            response=response,
        )
        return Completion(
            descriptor=descriptor,
            url=url,
            body=response.text,
            metadata=metadata,
            handle=response,
        )

    async def _notify(
        self,
        *,
        on_complete: CompletionHandler | None,
        completion: Completion,
    ) -> None:
        if on_complete is None:
            return
        result = on_complete(
            completion.url,
            completion.body,
            completion.metadata,
            completion.handle,
        )
        if inspect.isawaitable(result):
            await result

    async def _cancel_in_flight(self) -> None:
        if not self._in_flight:
            return
        log.debug(event="Cancelling in-flight requests", in_flight=len(self._in_flight))
        tasks = list(self._in_flight)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._in_flight.clear()


def _build_metadata(
    *,
    descriptor: RequestDescriptor,
    url: str,
    total_time: float,
    response: httpx.Response | None = None,
    error: httpx.HTTPError | httpx.InvalidURL | None = None,
) -> TransportMetadata:
    """
    Describe how the transport handled a request.

    Parameters
    ----------
    descriptor : RequestDescriptor
        Descriptor the request was issued for.
    url : str
        URL that was issued.
    total_time : float
        Seconds between issuance and completion.
    response : httpx.Response | None, optional
        Response, when one was received.
    error : httpx.HTTPError | httpx.InvalidURL | None, optional
        Transport error or malformed URL, when no response was received.

    Returns
    -------
    TransportMetadata
        Mapping handed to the completion handler.
    """
    metadata: TransportMetadata = {
        "url": url,
        "index": descriptor.index,
        "service": descriptor.service,
        "endpoint": descriptor.endpoint,
        "metadata": dict(descriptor.metadata),
        "total_time": total_time,
        "status_code": None,
        "reason_phrase": None,
        "content_type": None,
        "headers": {},
        "is_success": False,
        "error": None,
        "error_type": None,
    }
    if response is not None:
        metadata.update(
            status_code=response.status_code,
            reason_phrase=response.reason_phrase,
            content_type=response.headers.get("content-type"),
            headers=dict(response.headers),
            is_success=response.is_success,
        )
    if error is not None:
        metadata.update(error=str(error), error_type=type(error).__name__)
    return metadata
