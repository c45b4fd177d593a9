import json
import logging

from dotenv import load_dotenv

from bnetapi import BattleNetClient, ClientConfig
from bnetapi.utils.logging import setup_logging

load_dotenv()


def print_item(url: str, response_body: str, metadata: dict, handle) -> None:
    """Print every finished request, successful or not."""
    if metadata["error"] is not None:
        print(f"#{metadata['index']} failed: {metadata['error']}")
        return
    item = json.loads(response_body) if metadata["is_success"] else {}
    summary = item.get("name", response_body[:80])
    print(f"#{metadata['index']} [{metadata['status_code']}] {summary}")


def main() -> None:
    """Fetch a few items with at most 5 connections and 80 requests per second."""
    setup_logging(level=logging.INFO)
    config = ClientConfig.from_env(throttle_per_second=80, max_connections=5)
    client = BattleNetClient(config, on_complete=print_item)

    for item_id in (19019, 18803, 17182, 22691, 32837, 34334):
        client.add_request("wow", "item", {"itemId": item_id})
    client.add_request(
        "wow",
        "character",
        {"realm": "Medivh", "characterName": "Uther", "fields": "items"},
    )

    result = client.send()
    if not result.ok:
        print(f"Nothing was sent: {result.error}")
        return
    print(f"Processed requests: {result.completed} / {result.total}")
    print(f"Elapsed: {result.elapsed_seconds:.2f}s")


if __name__ == "__main__":
    main()
