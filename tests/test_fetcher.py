"""Tests for HTTP status and content-type validation."""

import pytest

from http_content.exceptions import HttpStatusError, InvalidContentTypeError, NetworkError
from http_content.net.fetcher import Fetcher

URL = "https://example.com/file.mp3"


class TestFetcher:
    async def test_ok_response_is_returned(self, transport):
        transport.add(URL, body=b"data")
        outcome = await Fetcher(transport).fetch(URL)
        assert outcome.body == b"data"

    async def test_headers_and_timeout_are_passed_through(self, transport):
        transport.add(URL, body=b"data")
        await Fetcher(transport, timeout=7).fetch(URL, {"Authorization": "Bearer t"})
        assert transport.calls == [(URL, {"Authorization": "Bearer t"}, 7)]

    async def test_default_timeout_is_two_minutes(self, transport):
        transport.add(URL)
        await Fetcher(transport).fetch(URL)
        assert transport.calls[0][2] == 120

    async def test_non_200_raises_status_error(self, transport):
        transport.add(URL, status=404)
        with pytest.raises(HttpStatusError) as exc_info:
            await Fetcher(transport).fetch(URL)
        assert exc_info.value.code == 404
        assert "Not Found" in str(exc_info.value)

    async def test_other_2xx_is_rejected_too(self, transport):
        transport.add(URL, status=204)
        with pytest.raises(HttpStatusError):
            await Fetcher(transport).fetch(URL)

    async def test_network_error_passes_through(self, transport):
        transport.fail(URL)
        with pytest.raises(NetworkError):
            await Fetcher(transport).fetch(URL)


class TestAudioFetch:
    @pytest.mark.parametrize(
        "content_type", ["audio/mpeg", "audio/ogg", "audio/x-wav", "Audio/WAV; q=1"]
    )
    async def test_audio_types_accepted(self, transport, content_type):
        transport.add(URL, body=b"ID3", headers={"content-type": content_type})
        outcome = await Fetcher(transport).fetch_audio(URL)
        assert outcome.body == b"ID3"

    async def test_html_rejected_even_with_200(self, transport):
        transport.add(URL, body=b"<html>", headers={"Content-Type": "text/html"})
        with pytest.raises(InvalidContentTypeError) as exc_info:
            await Fetcher(transport).fetch_audio(URL)
        assert exc_info.value.content_type == "text/html"

    async def test_missing_content_type_rejected(self, transport):
        transport.add(URL, body=b"ID3")
        with pytest.raises(InvalidContentTypeError):
            await Fetcher(transport).fetch_audio(URL)

    async def test_status_checked_before_content_type(self, transport):
        transport.add(URL, status=500, headers={"Content-Type": "text/html"})
        with pytest.raises(HttpStatusError):
            await Fetcher(transport).fetch_audio(URL)

    async def test_settings_timeout_is_read_per_call(self, transport, settings):
        transport.add(URL, body=b"ok")
        fetcher = Fetcher(transport, timeout=5, settings=settings)
        await fetcher.fetch(URL)
        settings.set("fetch_timeout", 9)
        await fetcher.fetch(URL)
        assert [timeout for _, _, timeout in transport.calls] == [120, 9]
