from __future__ import annotations

import typing as t
from abc import ABC, abstractmethod
from urllib.parse import quote

import structlog

from bnetapi.exceptions import MissingParameterError

log = structlog.get_logger(__name__)

Params = t.Mapping[str, t.Any]


def encode_segment(value: t.Any) -> str:
    """
    Percent-encode a value for use as a single URL path segment.

    Parameters
    ----------
    value : typing.Any
        Segment value, converted with ``str``.

    Returns
    -------
    str
        Encoded segment, ``/`` included.
    """
    return quote(str(value), safe="")


class Endpoint(ABC):
    """
    Standard interface for turning named parameters into a request path.

    Endpoints implement:
    - build_path: return the path (and optional query string) below the host
    """

    service: str = "base"
    name: str = "base"
    required_params: tuple[str, ...] = ()

    @property
    def route(self) -> str:
        return f"/{self.service}/{self.name}/"

    def check_params(self, *, params: Params) -> None:
        """
        Ensure every required parameter is present.

        Parameters
        ----------
        params : Params
            Parameters passed by the caller.

        Raises
        ------
        MissingParameterError
            If a required parameter is absent or ``None``.
        """
        missing = [key for key in self.required_params if params.get(key) is None]
        if not missing:
            return
        quoted = " and ".join(f'"{key}"' for key in self.required_params)
        noun = "parameter" if len(self.required_params) == 1 else "parameters"
        raise MissingParameterError(f'The "{self.route}" endpoint requires the {noun} {quoted}.')

    @abstractmethod
    def build_path(self, *, params: Params) -> str:
        pass

    def build_url(self, *, host: str, params: Params | None = None) -> str:
        """
        Build the full request URL.

        Parameters
        ----------
        host : str
            Protocol and domain of the API.
        params : Params | None, optional
            Named endpoint parameters.

        Returns
        -------
        str
            Request URL, without locale or API key.
        """
        params = params or {}
        self.check_params(params=params)
        url = f"{host.rstrip('/')}{self.build_path(params=params)}"
        log.debug(event="Built endpoint URL", service=self.service, endpoint=self.name, url=url)
        return url


class StaticEndpoint(Endpoint):
    """Endpoint whose path does not depend on any parameter."""

    path: str = "/"

    def build_path(self, *, params: Params) -> str:
        return self.path


class FieldsEndpoint(Endpoint):
    """
    Endpoint accepting an optional ``fields`` selection.

    ``fields`` may be a comma separated string or a sequence. Unknown fields
    are dropped.
    """

    valid_fields: tuple[str, ...] = ()

    def select_fields(self, *, params: Params) -> list[str]:
        fields = params.get("fields")
        if fields is None:
            return []
        if isinstance(fields, str):
            fields = fields.split(",")
        requested = [str(field).strip() for field in fields]
        return [field for field in requested if field in self.valid_fields]

    def with_fields(self, *, path: str, params: Params) -> str:
        fields = self.select_fields(params=params)
        if not fields:
            return path
        return f"{path}?fields={','.join(fields)}"
