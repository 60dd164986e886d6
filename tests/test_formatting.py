import logging

import pytest

from http_content.utils.formatting import format_duration, format_size, parse_header
from http_content.utils.structured_logger import create_structured_logger


class TestFormatting:
    def test_format_size(self):
        assert format_size(0) == "0 B"
        assert format_size(512) == "512 B"
        assert format_size(1536) == "1.5 KB"
        assert format_size(3 * 1024**3) == "3.0 GB"

    def test_format_duration(self):
        assert format_duration(0.25) == "250 ms"
        assert format_duration(2.5) == "2.50 s"
        assert format_duration(125) == "2m 05s"

    def test_parse_header(self):
        assert parse_header("Authorization: Bearer a:b") == ("Authorization", "Bearer a:b")
        with pytest.raises(ValueError):
            parse_header("no-colon")


class TestEventLog:
    def test_json_lines(self, tmp_path):
        base, events = create_structured_logger(tmp_path)
        with base:
            events.fetch_completed("https://x/a.txt", "data/a.txt", 10, 0.1234)
            events.sweep_completed("/", 2, 0.5)

        lines = base.json_path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        assert '"event": "fetch_completed"' in lines[0]
        assert '"duration_s": 0.123' in lines[0]
        assert base.run_id in lines[1]

    def test_console_only(self, caplog):
        base, events = create_structured_logger()
        with caplog.at_level(logging.WARNING, logger="http_content.events"):
            events.fetch_failed("https://x/a.txt", "data/a.txt", "boom")
        assert base.json_path is None
        assert "[fetch_failed]" in caplog.text
