"""
One-off batch helpers.
"""

import asyncio
import typing as t

from bnetapi.config import ClientConfig
from bnetapi.coordinator import BatchCoordinator, SendResult
from bnetapi.pool import CompletionHandler
from bnetapi.request import RequestDescriptor


async def send_batch_async(
    urls: t.Iterable[str],
    *,
    config: ClientConfig,
    on_complete: CompletionHandler | None = None,
    coordinator: BatchCoordinator | None = None,
) -> SendResult:
    """
    Send already-built request URLs as a single batch.

    Parameters
    ----------
    urls : typing.Iterable[str]
        Request URLs, in submission order.
    config : ClientConfig
        Configuration used for the whole batch.
    on_complete : CompletionHandler | None, optional
        Called once per finished request.
    coordinator : BatchCoordinator | None, optional
        Coordinator to send with, a default one is created otherwise.

    Returns
    -------
    SendResult
        Completion counts, or the error that aborted the send.
    """
    requests = [RequestDescriptor(url=url, index=index) for index, url in enumerate(urls)]
    coordinator = coordinator if coordinator is not None else BatchCoordinator()
    return await coordinator.send(requests, config=config, on_complete=on_complete)


def send_batch(
    urls: t.Iterable[str],
    *,
    config: ClientConfig,
    on_complete: CompletionHandler | None = None,
    coordinator: BatchCoordinator | None = None,
) -> SendResult:
    """Synchronous wrapper around ``send_batch_async()``."""
    return asyncio.run(
        send_batch_async(
            urls,
            config=config,
            on_complete=on_complete,
            coordinator=coordinator,
        )
    )
