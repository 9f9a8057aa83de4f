"""Tests for the demoparser2 adapter: table -> event translation and error wrapping."""

import importlib
import pickle

import polars as pl
import pytest

from movestats.event import ButtonChanged, MatchEnd, StreamEnd, Tick
from movestats.parse import ParseError, iter_events, parse

from conftest import JUMP, OTHER, PLAYER, S, W

# The package re-exports the `parse` function, which shadows the submodule attribute.
parse_module = importlib.import_module("movestats.parse")


class DecoderPanic(BaseException):
    """Same base as the pyo3 PanicException demoparser2 raises."""


def _ticks(rows: list[dict], steamid_dtype=pl.UInt64) -> pl.DataFrame:
    return pl.DataFrame(
        rows,
        schema={
            "tick": pl.Int32,
            "steamid": steamid_dtype,
            "name": pl.Utf8,
            "buttons": pl.UInt64,
            "yaw": pl.Float32,
            "is_airborne": pl.Boolean,
        },
    )


def _row(tick, steamid=PLAYER, buttons=0, yaw=0.0, airborne=False, name="tester"):
    return {"tick": tick, "steamid": steamid, "name": name, "buttons": buttons, "yaw": yaw, "is_airborne": airborne}


class TestIterEvents:
    def test_button_changes_before_tick_samples(self):
        ticks = _ticks(
            [
                _row(1, PLAYER, W, 0.0, False),
                _row(1, OTHER, S, 90.0, True, name="other"),
            ]
        )
        events = list(iter_events(ticks))
        assert events == [
            ButtonChanged(1, PLAYER, W, "tester"),
            ButtonChanged(1, OTHER, S, "other"),
            Tick(1, PLAYER, True, 0.0),
            Tick(1, OTHER, False, 90.0),
            StreamEnd(1),
        ]

    def test_only_changes_are_reported(self):
        ticks = _ticks([_row(1, buttons=W), _row(2, buttons=W), _row(3, buttons=W | JUMP), _row(4, buttons=0)])
        changes = [event for event in iter_events(ticks) if isinstance(event, ButtonChanged)]
        assert [(event.tick, event.buttons) for event in changes] == [(1, W), (3, W | JUMP), (4, 0)]

    def test_idle_player_has_no_button_events(self):
        ticks = _ticks([_row(1, buttons=0), _row(2, buttons=0)])
        assert not any(isinstance(event, ButtonChanged) for event in iter_events(ticks))

    def test_bots_are_dropped(self):
        ticks = _ticks([_row(1, 0, W, name="BOT Albert"), _row(1, PLAYER, W)])
        events = list(iter_events(ticks))
        assert all(event.player_id == PLAYER for event in events if not isinstance(event, StreamEnd))

    def test_string_steamids(self):
        rows = [_row(1, str(PLAYER), W), _row(1, "0", W, name="BOT Albert")]
        events = list(iter_events(_ticks(rows, steamid_dtype=pl.Utf8)))
        assert events[0] == ButtonChanged(1, PLAYER, W, "tester")
        assert len(events) == 3

    def test_missing_pawn_skips_sample(self):
        ticks = _ticks([_row(1, buttons=W, yaw=None, airborne=None), _row(2, buttons=W, yaw=45.0, airborne=True)])
        events = list(iter_events(ticks))
        assert events == [ButtonChanged(1, PLAYER, W, "tester"), Tick(2, PLAYER, False, 45.0), StreamEnd(2)]

    def test_rows_sorted_by_tick(self):
        ticks = _ticks([_row(3, buttons=S), _row(1, buttons=W), _row(2, buttons=W)])
        assert [event.tick for event in iter_events(ticks)] == [1, 1, 2, 3, 3, 3]

    def test_match_end_after_first_tick_past_announcement(self):
        ticks = _ticks([_row(tick) for tick in (10, 20, 30, 40)])
        events = list(iter_events(ticks, match_end_tick=25))
        ends = [event for event in events if not isinstance(event, Tick)]
        assert ends == [MatchEnd(30), StreamEnd(40)]
        assert events.index(MatchEnd(30)) == events.index(Tick(30, PLAYER, True, 0.0)) + 1

    def test_match_end_announced_after_last_tick(self):
        ticks = _ticks([_row(10), _row(20)])
        events = list(iter_events(ticks, match_end_tick=500))
        assert not any(isinstance(event, MatchEnd) for event in events)
        assert events[-1] == StreamEnd(20)

    def test_empty_table(self):
        assert list(iter_events(_ticks([]))) == [StreamEnd(0)]


class TestParse:
    def test_feeds_handler(self, monkeypatch, tmp_path):
        ticks = _ticks([_row(1, buttons=W), _row(2, buttons=W | S)])
        monkeypatch.setattr(parse_module, "_load", lambda source: (ticks, 2))
        received = []
        parse(tmp_path / "match.dem", received.append)
        assert received == [
            ButtonChanged(1, PLAYER, W, "tester"),
            Tick(1, PLAYER, True, 0.0),
            ButtonChanged(2, PLAYER, W | S, "tester"),
            Tick(2, PLAYER, True, 0.0),
            MatchEnd(2),
            StreamEnd(2),
        ]

    def test_decoder_errors_are_wrapped(self, monkeypatch, tmp_path):
        def broken(source):
            raise ValueError("unexpected end of demo")

        monkeypatch.setattr(parse_module, "_load", broken)
        source = tmp_path / "broken.dem"
        with pytest.raises(ParseError) as excinfo:
            parse(source, lambda event: None)
        assert excinfo.value.filename == str(source)
        assert "unexpected end of demo" in str(excinfo.value)

    def test_handler_errors_are_wrapped(self, monkeypatch, tmp_path):
        monkeypatch.setattr(parse_module, "_load", lambda source: (_ticks([_row(1, buttons=W)]), None))

        def handler(event):
            raise KeyError("boom")

        with pytest.raises(ParseError):
            parse(tmp_path / "match.dem", handler)

    def test_rejects_other_sources(self):
        with pytest.raises(TypeError):
            parse(b"PBDEMS2", lambda event: None)

    def test_parse_error_str(self):
        assert str(ParseError("bad header", filename="a.dem")) == "Parse error (a.dem ?): bad header"

    def test_filename_set_after_construction_keeps_message(self):
        error = ParseError("bad header")
        error.filename = "a.dem"
        assert str(error) == "Parse error (a.dem ?): bad header"

    def test_parse_error_pickles(self):
        error = pickle.loads(pickle.dumps(ParseError("bad header", filename="a.dem", pos=12)))
        assert isinstance(error, ParseError)
        assert (error.message, error.filename, error.pos) == ("bad header", "a.dem", 12)
        assert str(error) == "Parse error (a.dem 12): bad header"

    def test_decoder_panics_are_wrapped(self, monkeypatch, tmp_path):
        def panics(source):
            raise DecoderPanic("index out of bounds")

        monkeypatch.setattr(parse_module, "_load", panics)
        source = tmp_path / "panic.dem"
        with pytest.raises(ParseError) as excinfo:
            parse(source, lambda event: None)
        assert str(excinfo.value) == f"Parse error ({source} ?): index out of bounds"

    def test_interrupts_are_not_wrapped(self, monkeypatch, tmp_path):
        def interrupted(source):
            raise KeyboardInterrupt

        monkeypatch.setattr(parse_module, "_load", interrupted)
        with pytest.raises(KeyboardInterrupt):
            parse(tmp_path / "match.dem", lambda event: None)
