import json

import httpx
import pytest

from academia.config import JsonBinSettings
from academia.errors import RemoteStoreError
from academia.remote import JsonBinClient


def make_client(handler, api_key="secret", bin_id="bin123"):
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return JsonBinClient(api_key, bin_id, base_url="https://api.jsonbin.io/v3/", client=http)


def test_fetch_latest_sends_master_key_and_returns_record():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"record": {"notes": []}, "metadata": {"id": "bin123"}})

    client = make_client(handler)
    assert client.fetch_latest() == {"notes": []}
    assert seen[0].method == "GET"
    assert str(seen[0].url) == "https://api.jsonbin.io/v3/b/bin123/latest"
    assert seen[0].headers["X-Master-Key"] == "secret"


def test_fetch_latest_returns_none_for_missing_bin():
    client = make_client(lambda request: httpx.Response(404, json={"message": "Bin not found"}))
    assert client.fetch_latest() is None


def test_fetch_latest_raises_on_server_error():
    client = make_client(lambda request: httpx.Response(500))
    with pytest.raises(RemoteStoreError, match="500"):
        client.fetch_latest()


def test_fetch_latest_raises_on_network_error():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(RemoteStoreError):
        make_client(handler).fetch_latest()


def test_fetch_latest_raises_on_non_json_body():
    client = make_client(lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(RemoteStoreError):
        client.fetch_latest()


def test_save_puts_whole_document():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"record": {}})

    document = {"notes": [{"id": "n1", "title": "x"}], "tasks": []}
    make_client(handler).save(document)
    assert seen[0].method == "PUT"
    assert str(seen[0].url) == "https://api.jsonbin.io/v3/b/bin123"
    assert seen[0].headers["X-Master-Key"] == "secret"
    assert json.loads(seen[0].content) == document


def test_save_raises_on_rejection():
    client = make_client(lambda request: httpx.Response(401))
    with pytest.raises(RemoteStoreError, match="401"):
        client.save({})


def test_is_configured_needs_key_and_bin():
    handler = lambda request: httpx.Response(200)  # noqa: E731
    assert make_client(handler).is_configured
    assert not make_client(handler, api_key=None).is_configured
    assert not make_client(handler, bin_id="").is_configured


def test_from_settings_unwraps_secret():
    settings = JsonBinSettings(api_key="k", bin_id="b", base_url="https://example.test/v3")
    client = JsonBinClient.from_settings(settings)
    assert client.api_key == "k"
    assert client.bin_id == "b"
    assert client.base_url == "https://example.test/v3"
    client.close()


@pytest.mark.parametrize("api_key, bin_id", [("", "b"), ("k", None), (None, "b")])
def test_from_settings_without_full_credentials_is_unconfigured(api_key, bin_id):
    client = JsonBinClient.from_settings(JsonBinSettings(api_key=api_key, bin_id=bin_id))
    assert not client.is_configured
    assert client.api_key is None
    client.close()
