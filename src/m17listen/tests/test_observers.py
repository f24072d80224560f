"""Tests for the presentation front ends."""

import io
import threading

import pytest
from rich.console import Console

from m17listen.observers import NullObserver, make_observer
from m17listen.observers.base import FIELD_DISPLAY_NAMES, FIELD_ORDER, Observer, format_value
from m17listen.observers.text import TextObserver


class TestFormatValue:
    @pytest.mark.parametrize(
        "field,value,expected",
        [
            ("StreamID", "4660", "0x1234"),
            ("FrameNumber", "32773", "0x8005"),
            ("TYPE", "5", "0x5"),
            ("SRC", "W2FBI", "W2FBI"),
            ("META", "00ff", "00ff"),
            ("StreamID", "not-a-number", "not-a-number"),
        ],
    )
    def test_format(self, field, value, expected):
        assert format_value(field, value) == expected


def test_every_field_has_display_name():
    assert set(FIELD_ORDER) == set(FIELD_DISPLAY_NAMES)
    assert FIELD_ORDER[0] == "StreamID"
    assert FIELD_ORDER[-2:] == ("Status", "Error")


def test_base_update_not_implemented():
    with pytest.raises(NotImplementedError):
        Observer().update("Status", "x")


def test_null_observer():
    observer = NullObserver()
    observer.update("Status", "ignored")
    stop = threading.Event()
    stop.set()
    observer.run(stop)
    observer.close()


def test_make_observer():
    assert isinstance(make_observer("none"), NullObserver)
    assert isinstance(make_observer("text"), TextObserver)
    with pytest.raises(ValueError, match="Unknown observer mode"):
        make_observer("web")


class TestTextObserver:
    @pytest.fixture
    def output(self):
        return io.StringIO()

    @pytest.fixture
    def text(self, output):
        return TextObserver(console=Console(file=output, width=120, force_terminal=False))

    def test_update_formats(self, text):
        text.update("StreamID", "4660")
        text.update("SRC", "W2FBI")

        snapshot = text.snapshot()
        assert snapshot["StreamID"] == "0x1234"
        assert snapshot["SRC"] == "W2FBI"
        assert snapshot["Error"] == ""

    def test_render(self, text, output):
        text.update("DST", "M17-USA")
        text.update("Status", "Connection accepted by relay/reflector")
        text.console.print(text.render())

        rendered = output.getvalue()
        assert "M17 Listen Client" in rendered
        assert "Destination:" in rendered
        assert "M17-USA" in rendered
        assert "Connection accepted by relay/reflector" in rendered

    def test_update_from_other_thread(self, text):
        threads = [threading.Thread(target=text.update, args=("FrameNumber", str(n))) for n in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert text.snapshot()["FrameNumber"].startswith("0x")

    def test_run_returns_when_stopped(self, text):
        stop = threading.Event()
        runner = threading.Thread(target=text.run, args=(stop,), daemon=True)
        runner.start()
        text.update("Status", "running")
        stop.set()
        runner.join(2.0)
        assert not runner.is_alive()
