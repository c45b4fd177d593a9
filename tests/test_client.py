"""
Tests for the BattleNetClient facade in bnetapi.client.
"""

import pytest

from bnetapi.client import BattleNetClient
from bnetapi.config import ClientConfig
from bnetapi.coordinator import BatchCoordinator
from bnetapi.exceptions import (
    ConfigurationError,
    EmptyBatchError,
    EndpointResolutionError,
    MissingCredentialError,
    MissingParameterError,
)
from tests.mocks.battlenet import FakeBattleNetAPI, decode_body


@pytest.fixture
def client(fake_api: FakeBattleNetAPI, config: ClientConfig) -> BattleNetClient:
    return BattleNetClient(
        config,
        coordinator=BatchCoordinator(client_factory=fake_api.client_factory()),
    )


def test_add_request_builds_url_with_region_host(client: BattleNetClient) -> None:
    descriptor = client.add_request("wow", "item", {"itemId": 19019})

    assert descriptor.url == "https://us.api.battle.net/wow/item/19019"
    assert descriptor.index == 0
    assert descriptor.service == "wow"
    assert descriptor.endpoint == "item"
    assert client.pending == (descriptor,)


def test_add_request_assigns_submission_indices(client: BattleNetClient) -> None:
    first = client.add_request("wow", "item", {"itemId": 1})
    second = client.add_url("https://us.api.battle.net/wow/item/2", tag="manual")

    assert (first.index, second.index) == (0, 1)
    assert second.metadata == {"tag": "manual"}


@pytest.mark.parametrize(
    ("service", "endpoint", "params"),
    [
        (1, "item", None),
        ("wow", ["item"], None),
        ("wow", "item", ["itemId", 1]),
    ],
)
def test_add_request_rejects_bad_argument_types(
    client: BattleNetClient, service, endpoint, params
) -> None:
    with pytest.raises(ConfigurationError):
        client.add_request(service, endpoint, params)
    assert client.pending == ()


def test_add_request_unknown_endpoint(client: BattleNetClient) -> None:
    with pytest.raises(EndpointResolutionError):
        client.add_request("wow", "unicorn", {})


def test_add_request_missing_parameter(client: BattleNetClient) -> None:
    with pytest.raises(MissingParameterError):
        client.add_request("wow", "character", {"realm": "Medivh"})


def test_set_callback_rejects_non_callable(client: BattleNetClient) -> None:
    with pytest.raises(ConfigurationError):
        client.set_callback("myCallback")  # type: ignore[arg-type]


def test_configure_keeps_previous_config_on_error(client: BattleNetClient) -> None:
    before = client.config

    with pytest.raises(ConfigurationError):
        client.configure(locale="fr_FR")

    assert client.config is before


def test_send_delivers_every_completion(
    client: BattleNetClient, fake_api: FakeBattleNetAPI
) -> None:
    bodies: dict[int, dict] = {}

    def on_complete(url, response_body, metadata, handle) -> None:
        bodies[metadata["index"]] = decode_body(response_body)

    client.set_callback(on_complete)
    for item_id in (19019, 18803, 25, 35, 36, 37):
        client.add_request("wow", "item", {"itemId": item_id})

    result = client.send()

    assert result.ok
    assert result.completed == 6
    assert [bodies[index]["id"] for index in range(6)] == [19019, 18803, 25, 35, 36, 37]
    assert fake_api.peak_active <= 5
    assert client.pending == ()


def test_send_honors_config_changed_after_enqueue(
    client: BattleNetClient, fake_api: FakeBattleNetAPI
) -> None:
    """Locale and key are read at send time, not when the request was queued."""
    client.add_request("wow", "item", {"itemId": 25})
    client.configure(api_key="NEW", locale="es_MX")

    client.send()

    request = fake_api.arrivals[0]
    assert request.url.params["locale"] == "es_MX"
    assert request.url.params["apikey"] == "NEW"


def test_send_without_key_keeps_queue(fake_api: FakeBattleNetAPI) -> None:
    client = BattleNetClient(coordinator=BatchCoordinator(client_factory=fake_api.client_factory()))
    client.add_request("wow", "mount")

    result = client.send()

    assert isinstance(result.error, MissingCredentialError)
    assert len(client.pending) == 1
    assert fake_api.arrivals == []

    client.configure(api_key="late-key")
    assert client.send().ok
    assert client.pending == ()
    assert [request.url.path for request in fake_api.arrivals] == ["/wow/mount/"]
    assert fake_api.arrival_ids == [None]


def test_send_empty_queue(client: BattleNetClient, fake_api: FakeBattleNetAPI) -> None:
    result = client.send()

    assert isinstance(result.error, EmptyBatchError)
    with pytest.raises(EmptyBatchError):
        result.raise_for_error()
    assert fake_api.arrivals == []


@pytest.mark.asyncio
async def test_send_async_without_callback(client: BattleNetClient) -> None:
    client.add_request("wow", "item", {"itemId": 1})
    client.add_request("wow", "item", {"itemId": 2})

    result = await client.send_async()

    assert result.completed == 2
