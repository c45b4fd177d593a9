"""
Main entry point for users.

``BattleNetClient`` holds a configuration value and a queue of requests built
by the endpoint registry. ``send()`` hands the queue to a ``BatchCoordinator``
together with the configuration as it is at that moment.
"""

from __future__ import annotations

import asyncio
import typing as t
from collections.abc import Mapping

import structlog

from bnetapi.config import ClientConfig
from bnetapi.coordinator import BatchCoordinator, SendResult
from bnetapi.endpoints import REGISTRY, EndpointRegistry
from bnetapi.exceptions import ConfigurationError
from bnetapi.pool import CompletionHandler
from bnetapi.request import RequestDescriptor

log = structlog.get_logger(__name__)


class BattleNetClient:
    """
    Queue Battle.net API requests and send them as one batch.

    Parameters
    ----------
    config : ClientConfig | None, optional
        Initial configuration. Defaults to ``ClientConfig()``, which has no
        API key.
    on_complete : CompletionHandler | None, optional
        Called once per finished request.
    coordinator : BatchCoordinator | None, optional
        Coordinator used to send batches.
    registry : EndpointRegistry, optional
        Registry used to build request URLs.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        on_complete: CompletionHandler | None = None,
        coordinator: BatchCoordinator | None = None,
        registry: EndpointRegistry = REGISTRY,
    ) -> None:
        self._config = config if config is not None else ClientConfig()
        self._on_complete: CompletionHandler | None = None
        if on_complete is not None:
            self.set_callback(on_complete)
        self._coordinator = coordinator if coordinator is not None else BatchCoordinator()
        self._registry = registry
        self._requests: list[RequestDescriptor] = []

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def callback(self) -> CompletionHandler | None:
        return self._on_complete

    @property
    def pending(self) -> tuple[RequestDescriptor, ...]:
        return tuple(self._requests)

    def configure(self, **changes: t.Any) -> ClientConfig:
        """
        Replace the configuration with a validated copy.

        Parameters
        ----------
        **changes : typing.Any
            ``ClientConfig`` fields to change, e.g. ``api_key`` or ``locale``.

        Returns
        -------
        ClientConfig
            The new configuration.

        Raises
        ------
        ConfigurationError
            If the resulting configuration is invalid. The current
            configuration is kept.
        """
        self._config = self._config.updated(**changes)
        log.debug(
            event="Client configuration updated",
            changed=sorted(key for key in changes if key != "api_key"),
            api_key_changed="api_key" in changes,
        )
        return self._config

    def set_callback(self, callback: CompletionHandler) -> None:
        if not callable(callback):
            raise ConfigurationError(
                f"The completion handler must be callable, got {type(callback).__name__}."
            )
        self._on_complete = callback

    def add_request(
        self,
        service: str,
        endpoint: str,
        params: Mapping[str, t.Any] | None = None,
        **metadata: t.Any,
    ) -> RequestDescriptor:
        """
        Build a request with the endpoint registry and queue it.

        Parameters
        ----------
        service : str
            First portion of the endpoint path, e.g. ``"wow"``.
        endpoint : str
            Remaining portion of the endpoint path, e.g. ``"item"``.
        params : Mapping[str, typing.Any] | None, optional
            Named endpoint parameters, e.g. ``{"itemId": 19019}``.
        **metadata : typing.Any
            Free-form values handed back in the transport metadata.

        Returns
        -------
        RequestDescriptor
            The queued descriptor.

        Raises
        ------
        ConfigurationError
            If an argument has the wrong type or a required parameter is missing.
        EndpointResolutionError
            If no builder is registered for ``service``/``endpoint``.
        """
        if not isinstance(service, str):
            raise ConfigurationError(
                "add_request() expects the parameter service to be a string, "
                f"{type(service).__name__} given."
            )
        if not isinstance(endpoint, str):
            raise ConfigurationError(
                "add_request() expects the parameter endpoint to be a string, "
                f"{type(endpoint).__name__} given."
            )
        if params is not None and not isinstance(params, Mapping):
            raise ConfigurationError(
                "add_request() expects the optional parameter params to be a mapping, "
                f"{type(params).__name__} given."
            )
        url = self._registry.build_url(service, endpoint, params, host=self._config.host)
        return self._enqueue(url=url, service=service, endpoint=endpoint, metadata=metadata)

    def add_url(self, url: str, **metadata: t.Any) -> RequestDescriptor:
        """Queue an already-built request URL."""
        if not isinstance(url, str) or not url:
            raise ConfigurationError("add_url() expects a non-empty URL string.")
        return self._enqueue(url=url, service=None, endpoint=None, metadata=metadata)

    def _enqueue(
        self,
        *,
        url: str,
        service: str | None,
        endpoint: str | None,
        metadata: dict[str, t.Any],
    ) -> RequestDescriptor:
        descriptor = RequestDescriptor(
            url=url,
            index=len(self._requests),
            service=service,
            endpoint=endpoint,
            metadata=metadata,
        )
        self._requests.append(descriptor)
        log.debug(
            event="Queued request",
            index=descriptor.index,
            service=service,
            endpoint=endpoint,
            pending_count=len(self._requests),
        )
        return descriptor

    def clear(self) -> None:
        self._requests.clear()

    async def send_async(self) -> SendResult:
        """
        Send every queued request and wait for all of them to complete.

        The queue is handed over to the coordinator: on a successful
        pre-flight it is emptied, on a pre-flight failure it is kept so the
        caller can fix the configuration and send again.

        Returns
        -------
        SendResult
            Completion counts, or the error that aborted the send.
        """
        batch = tuple(self._requests)
        result = await self._coordinator.send(
            batch,
            config=self._config,
            on_complete=self._on_complete,
        )
        if result.ok:
            # Requests queued while the batch was running stay queued.
            del self._requests[: len(batch)]
            self._reindex()
        return result

    def send(self) -> SendResult:
        """
        Synchronous wrapper around ``send_async()``.

        Must not be called from a running event loop.
        """
        return asyncio.run(self.send_async())

    def _reindex(self) -> None:
        self._requests = [
            descriptor.model_copy(update={"index": index})
            for index, descriptor in enumerate(self._requests)
        ]
