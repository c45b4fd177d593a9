import asyncio
import json
import typing as t

import httpx

HOST = "https://us.api.battle.net"


class FakeBattleNetAPI:
    """
    Emulate the subset of the Battle.net API used in tests.

    Every ``/wow/item/<id>`` request answers with a small JSON document.
    Latency, failures and status codes can be tuned per item id.
    """

    def __init__(
        self,
        *,
        delays: dict[int, float] | None = None,
        default_delay: float = 0.01,
        status_codes: dict[int, int] | None = None,
        failures: set[int] | None = None,
    ) -> None:
        self._delays = delays or {}
        self._default_delay = default_delay
        self._status_codes = status_codes or {}
        self._failures = failures or set()
        self.arrivals: list[httpx.Request] = []
        self.active = 0
        self.peak_active = 0

    @staticmethod
    def item_id(*, request: httpx.Request) -> int | None:
        """
        Extract the item id from a request path.

        Parameters
        ----------
        request : httpx.Request
            Incoming HTTP request.

        Returns
        -------
        int | None
            Item id taken from the last path segment, ``None`` for paths such
            as ``/wow/mount/`` that do not end with one.
        """
        segment = request.url.path.rstrip("/").split(sep="/")[-1]
        return int(segment) if segment.isdigit() else None

    @property
    def arrival_ids(self) -> list[int | None]:
        return [self.item_id(request=request) for request in self.arrivals]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.arrivals.append(request)
        item_id = self.item_id(request=request)
        self.active += 1
        self.peak_active = max(self.peak_active, self.active)
        try:
            await asyncio.sleep(self._delays.get(item_id, self._default_delay))
        finally:
            self.active -= 1
        if item_id in self._failures:
            raise httpx.ConnectError("Connection refused", request=request)
        status_code = self._status_codes.get(item_id, 200)
        return httpx.Response(
            status_code=status_code,
            json={"id": item_id, "locale": request.url.params.get("locale")},
        )

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(handler=self.handler)

    def client_factory(self) -> t.Callable[..., httpx.AsyncClient]:
        """
        Build a coordinator client factory routed to this fake.

        Returns
        -------
        typing.Callable[..., httpx.AsyncClient]
            Factory accepting ``(config, max_concurrency)``.
        """

        def factory(*_: t.Any) -> httpx.AsyncClient:
            return httpx.AsyncClient(transport=self.transport())

        return factory


def decode_body(body: str) -> dict[str, t.Any]:
    return json.loads(s=body)


class FakeClock:
    """Manually advanced clock paired with a sleep that advances it."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)
        await asyncio.sleep(0)
