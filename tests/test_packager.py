"""Tests for packaging downloaded sounds into mounted containers."""

import pytest

from http_content.core.packager import AudioPackager
from http_content.exceptions import (
    HttpStatusError,
    InvalidContentTypeError,
    InvalidFileTypeError,
    InvalidLinkError,
    MountError,
)
from http_content.net.fetcher import Fetcher
from http_content.storage.container import ContainerReader
from http_content.storage.namespace import ContentNamespace
from http_content.storage.store import LocalStore

URL = "https://sfx.example.com/ui/Beep.WAV"
WAV = {"Content-Type": "audio/wav"}


@pytest.fixture
def game_store(settings):
    settings.game_root.mkdir(parents=True, exist_ok=True)
    return LocalStore(settings.game_root, name="GAME", read_only=True)


@pytest.fixture
def namespace(game_store):
    return ContentNamespace(game_store)


@pytest.fixture
def packager(cache, transport, namespace):
    return AudioPackager(cache, Fetcher(transport), namespace)


class TestValidation:
    async def test_exe_rejected_without_network(self, packager, transport):
        with pytest.raises(InvalidFileTypeError):
            await packager.download_sound("https://evil.example.com/setup.exe")
        assert transport.call_count() == 0

    async def test_url_without_extension_is_invalid_link(self, packager, transport):
        with pytest.raises(InvalidLinkError):
            await packager.download_sound("https://sfx.example.com/stream")
        assert transport.call_count() == 0

    async def test_unparseable_url_is_invalid_link(self, packager, transport):
        with pytest.raises(InvalidLinkError):
            AudioPackager.sound_path("http://[::1/a.mp3")
        with pytest.raises(InvalidLinkError):
            await packager.download_sound("http://[::1/a.mp3")
        assert transport.call_count() == 0

    def test_sound_path(self):
        assert AudioPackager.sound_path(URL) == "sound/http_content/beep.wav"

    async def test_html_response_rejected(self, packager, transport, store):
        transport.add(URL, body=b"<html></html>", headers={"Content-Type": "text/html"})
        with pytest.raises(InvalidContentTypeError):
            await packager.download_sound(URL)
        container = packager.container_path("sound/http_content/beep.wav")
        assert not store.exists(container)

    async def test_http_error_propagates(self, packager, transport):
        transport.add(URL, status=404, headers=WAV)
        with pytest.raises(HttpStatusError):
            await packager.download_sound(URL)


class TestPackaging:
    async def test_fetch_package_and_mount(self, packager, transport, namespace, store):
        transport.add(URL, body=b"RIFF....WAVE", headers=WAV)

        sound = await packager.download_sound(URL)

        assert sound == "http_content/beep.wav"
        assert namespace.exists("sound/http_content/beep.wav")
        assert await namespace.read("sound/http_content/beep.wav") == b"RIFF....WAVE"

        container = packager.container_path("sound/http_content/beep.wav")
        assert container.endswith(".gma.dat")
        reader = ContainerReader.open(store.resolve(container))
        assert reader.title == "beep.wav"
        assert list(reader.entries) == ["sound/http_content/beep.wav"]

    async def test_mounted_sound_short_circuits(self, packager, transport):
        transport.add(URL, body=b"RIFF", headers=WAV)
        await packager.download_sound(URL)
        await packager.download_sound(URL)
        assert transport.call_count() == 1

    async def test_sound_already_in_game_dir(self, packager, transport, settings):
        target = settings.game_root / "sound" / "http_content" / "beep.wav"
        target.parent.mkdir(parents=True)
        target.write_bytes(b"RIFF")

        assert await packager.download_sound(URL) == "http_content/beep.wav"
        assert transport.call_count() == 0

    async def test_fresh_container_is_mounted_without_network(
        self, cache, transport, game_store
    ):
        transport.add(URL, body=b"RIFF", headers=WAV)
        first = AudioPackager(cache, Fetcher(transport), ContentNamespace(game_store))
        await first.download_sound(URL)

        fresh_namespace = ContentNamespace(game_store)
        second = AudioPackager(cache, Fetcher(transport), fresh_namespace)
        assert await second.download_sound(URL) == "http_content/beep.wav"
        assert transport.call_count() == 1
        assert fresh_namespace.exists("sound/http_content/beep.wav")

    async def test_corrupt_fresh_container_is_a_mount_error(
        self, packager, transport, cache
    ):
        container = packager.container_path("sound/http_content/beep.wav")
        await cache.write(container, b"definitely not a container")
        transport.add(URL, body=b"RIFF", headers=WAV)

        with pytest.raises(MountError):
            await packager.download_sound(URL)
        assert transport.call_count() == 0

    async def test_stale_container_is_replaced(
        self, packager, transport, cache, store, age_file
    ):
        container = packager.container_path("sound/http_content/beep.wav")
        await cache.write(container, b"old junk")
        age_file(store.resolve(container), 2 * 3600)
        transport.add(URL, body=b"RIFF-new", headers=WAV)

        await packager.download_sound(URL)

        reader = ContainerReader.open(store.resolve(container))
        assert reader.read_entry("sound/http_content/beep.wav") == b"RIFF-new"
