import typing as t
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field


class RequestDescriptor(BaseModel):
    """
    A fully-formed request target waiting to be dispatched.

    ``index`` is the position in the submission order and is only used to
    draw from the pending queue deterministically and to correlate
    completions, which may arrive out of order.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    index: int = Field(ge=0)
    service: str | None = None
    endpoint: str | None = None
    metadata: t.Mapping[str, t.Any] = Field(default_factory=dict)


def format_request_url(url: str, *, locale: str | None, api_key: str | None) -> str:
    """
    Append the locale and API key query parameters to a request URL.

    Only non-empty values are appended. Parameters are joined with ``&`` when
    the URL already carries a query string, otherwise a ``?`` is inserted.

    Parameters
    ----------
    url : str
        Request URL as produced by an endpoint builder.
    locale : str | None
        Locale to request localized strings in.
    api_key : str | None
        API key to authenticate with.

    Returns
    -------
    str
        URL ready to be issued.
    """
    params: dict[str, str] = {}
    if locale:
        params["locale"] = locale
    if api_key:
        params["apikey"] = api_key
    if not params:
        return url

    query_string = urlencode(query=params)
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{query_string}"
