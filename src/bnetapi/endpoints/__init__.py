"""
Explicit registry of endpoint builders.

Builders are registered under a ``(service, endpoint)`` key when their module
is imported. The modules are imported below, so the registry is complete as
soon as this package is.
"""

from __future__ import annotations

import typing as t

import structlog

from bnetapi.endpoints.base import Endpoint, Params
from bnetapi.exceptions import ConfigurationError, EndpointResolutionError

log = structlog.get_logger(__name__)

__all__ = [
    "Endpoint",
    "EndpointRegistry",
    "REGISTRY",
    "build_url",
    "register",
    "resolve",
]

EndpointKey = tuple[str, str]
EndpointFactory = t.Callable[[], Endpoint]


def normalize_key(*, service: str, endpoint: str) -> EndpointKey:
    """
    Normalize a service/endpoint pair into a registry key.

    Parameters
    ----------
    service : str
        Service name, e.g. ``"wow"``.
    endpoint : str
        Endpoint name below the service, e.g. ``"item/set"``.

    Returns
    -------
    EndpointKey
        Lowercased key without surrounding slashes or whitespace.
    """
    return service.strip().strip("/").lower(), endpoint.strip().strip("/").lower()


class EndpointRegistry:
    """Mapping from ``(service, endpoint)`` to an endpoint factory."""

    def __init__(self) -> None:
        self._factories: dict[EndpointKey, EndpointFactory] = {}

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        service, endpoint = key
        return normalize_key(service=service, endpoint=endpoint) in self._factories

    def __len__(self) -> int:
        return len(self._factories)

    def keys(self) -> list[EndpointKey]:
        return sorted(self._factories)

    def add(self, *, service: str, endpoint: str, factory: EndpointFactory) -> None:
        key = normalize_key(service=service, endpoint=endpoint)
        if key in self._factories:
            raise ValueError(f"Endpoint {key[0]}/{key[1]} is already registered")
        self._factories[key] = factory

    def register(
        self, service: str, endpoint: str
    ) -> t.Callable[[type[Endpoint]], type[Endpoint]]:
        """
        Class decorator registering an endpoint builder.

        Parameters
        ----------
        service : str
            Service name.
        endpoint : str
            Endpoint name below the service.

        Returns
        -------
        typing.Callable[[type[Endpoint]], type[Endpoint]]
            Decorator returning the class unchanged.
        """

        def decorator(cls: type[Endpoint]) -> type[Endpoint]:
            cls.service, cls.name = normalize_key(service=service, endpoint=endpoint)
            self.add(service=service, endpoint=endpoint, factory=cls)
            return cls

        return decorator

    def resolve(self, service: str, endpoint: str) -> Endpoint:
        """
        Instantiate the builder registered for ``service``/``endpoint``.

        Raises
        ------
        EndpointResolutionError
            If no builder is registered for the combination.
        """
        if not isinstance(service, str) or not isinstance(endpoint, str):
            raise ConfigurationError(
                "Service and endpoint must be strings, got "
                f"{type(service).__name__} and {type(endpoint).__name__}."
            )
        key = normalize_key(service=service, endpoint=endpoint)
        factory = self._factories.get(key)
        if factory is None:
            raise EndpointResolutionError(
                f'The service/endpoint combination "{service}/{endpoint}" does not exist '
                "or is not yet implemented."
            )
        return factory()

    def build_url(
        self,
        service: str,
        endpoint: str,
        params: Params | None = None,
        *,
        host: str,
    ) -> str:
        return self.resolve(service, endpoint).build_url(host=host, params=params)


REGISTRY = EndpointRegistry()
register = REGISTRY.register
resolve = REGISTRY.resolve
build_url = REGISTRY.build_url

# Populate the registry.
from bnetapi.endpoints import wow  # noqa: E402,F401

log.debug(event="Endpoint registry loaded", endpoint_count=len(REGISTRY))
