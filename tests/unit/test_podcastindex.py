"""Unit tests for the Podcast Index client."""

import hashlib

import httpx
import pytest

from boostbot.podcastindex import PodcastIndexClient


def make_client(handler) -> PodcastIndexClient:
    transport = httpx.MockTransport(handler)
    return PodcastIndexClient(
        api_key="key",
        api_secret="secret",
        base_url="https://pi.test/api/1.0/",
        client=httpx.AsyncClient(transport=transport),
    )


@pytest.mark.asyncio
class TestPodcastIndexClient:
    """Test GUID to feed id lookups."""

    async def test_lookup_found(self):
        """Test a found podcast returns its feed id and the request is signed."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"status": "true", "feed": {"id": 920666}})

        client = make_client(handler)
        assert await client.lookup_feed_id_by_guid("show-guid") == 920666
        await client.close()

        request = seen[0]
        assert request.url.path == "/api/1.0/podcasts/byguid"
        assert request.url.params["guid"] == "show-guid"
        assert request.headers["X-Auth-Key"] == "key"
        api_time = request.headers["X-Auth-Date"]
        assert request.headers["Authorization"] == hashlib.sha1(
            ("key" + "secret" + api_time).encode()
        ).hexdigest()
        assert request.headers["User-Agent"].startswith("BoostBot/")

    async def test_lookup_not_found(self):
        """Test an empty result returns None."""
        client = make_client(lambda request: httpx.Response(200, json={"status": "true", "feed": []}))
        assert await client.lookup_feed_id_by_guid("unknown") is None
        await client.close()

    async def test_status_false(self):
        """Test a false status returns None."""
        client = make_client(
            lambda request: httpx.Response(200, json={"status": "false", "feed": {"id": 1}})
        )
        assert await client.lookup_feed_id_by_guid("guid") is None
        await client.close()

    async def test_http_error(self):
        """Test API errors return None."""
        client = make_client(lambda request: httpx.Response(401, json={"status": "false"}))
        assert await client.lookup_feed_id_by_guid("guid") is None
        await client.close()

    async def test_timeout(self):
        """Test timeouts return None."""

        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = make_client(handler)
        assert await client.lookup_feed_id_by_guid("guid") is None
        await client.close()

    async def test_invalid_json(self):
        """Test unparsable bodies return None."""
        client = make_client(lambda request: httpx.Response(200, text="<html>"))
        assert await client.lookup_feed_id_by_guid("guid") is None
        await client.close()

    async def test_non_object_json(self):
        """Test non-object bodies return None."""
        client = make_client(lambda request: httpx.Response(200, json=[1, 2]))
        assert await client.lookup_feed_id_by_guid("guid") is None
        await client.close()
