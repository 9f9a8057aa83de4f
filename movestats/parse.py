"""
demoparser2 adapter.

demoparser2 decodes the whole demo into per-tick tables rather than calling back while it reads. This module walks
those tables in tick order and turns them into the events in `movestats.event`, so nothing past this point needs to
know which decoder produced them.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator
from itertools import groupby
from pathlib import Path
from typing import Any

import polars as pl

from .event import ButtonChanged, Event, Handler, MatchEnd, StreamEnd, Tick
from .log import log

# Per-player props read on every tick
TICK_PROPS = ["buttons", "yaw", "is_airborne"]
# Announced once the match winner panel shows up
MATCH_END_EVENT = "cs_win_panel_match"


class ParseError(IOError):
    def __init__(self, message, filename=None, pos=None):
        super().__init__(message)
        self.filename = filename
        self.pos = pos

    def __reduce__(self):
        # OSError drops filename when pickled back from a worker process
        return self.__class__, (self.message, self.filename, self.pos)

    @property
    def message(self) -> str:
        return self.args[0] if self.args else ""

    def __str__(self):
        # OSError.__str__ swaps the message for "[Errno None]" once filename is set
        return f'Parse error ({self.filename or "?"} {self.pos if self.pos else "?"}): {self.message}'


def _player_id(row: dict[str, Any]) -> int | None:
    # demoparser2 hands steamids back as strings in some versions
    try:
        player_id = int(row["steamid"])
    except (KeyError, TypeError, ValueError):
        return None
    # bots and empty slots
    return player_id or None


def _frame_events(tick: int, rows: Iterable[dict[str, Any]], last_buttons: dict[int, int]) -> Iterator[Event]:
    # Button changes come first, the end-of-tick samples after all of them.
    samples = []
    for row in rows:
        player_id = _player_id(row)
        if player_id is None:
            continue

        buttons = row.get("buttons")
        if buttons is not None:
            buttons = int(buttons)
            if buttons != last_buttons.get(player_id, 0):
                last_buttons[player_id] = buttons
                yield ButtonChanged(tick, player_id, buttons, row.get("name") or "")

        airborne = row.get("is_airborne")
        yaw = row.get("yaw")
        # no pawn this tick (dead, spectating, not spawned yet)
        if airborne is None or yaw is None:
            continue
        samples.append(Tick(tick, player_id, not airborne, float(yaw)))

    yield from samples


def iter_events(ticks: pl.DataFrame, match_end_tick: int | None = None) -> Iterator[Event]:
    """Turns a per-tick player table into decoder events.

    Args:
        ticks : pl.DataFrame
            One row per player per tick. Needs `tick` and `steamid` columns plus the TICK_PROPS columns, `name` is
            optional.
        match_end_tick : int | None
            Tick the match end was announced on, if it was
    Yields:
        ButtonChanged and Tick events in tick order, MatchEnd after the first tick at or past `match_end_tick`, then
        StreamEnd with the last tick seen.
    """
    last_buttons: dict[int, int] = {}
    last_tick = 0
    match_ended = False

    rows = ticks.sort("tick", maintain_order=True).iter_rows(named=True)
    for tick, frame in groupby(rows, key=lambda row: row["tick"]):
        tick = int(tick)
        yield from _frame_events(tick, frame, last_buttons)
        last_tick = tick

        if not match_ended and match_end_tick is not None and tick >= match_end_tick:
            match_ended = True
            yield MatchEnd(tick)

    yield StreamEnd(last_tick)


def _match_end_tick(parser) -> int | None:
    events = parser.parse_event(MATCH_END_EVENT)
    if events is None or len(events) == 0 or "tick" not in events.columns:
        return None
    return int(events["tick"].min())


def _load(source: Path) -> tuple[pl.DataFrame, int | None]:
    # Import here so the rest of the package works without the decoder installed
    from demoparser2 import DemoParser

    parser = DemoParser(str(source))
    ticks = pl.from_pandas(parser.parse_ticks(TICK_PROPS))
    return ticks, _match_end_tick(parser)


def _parse(source: Path, handler: Handler) -> None:
    ticks, match_end_tick = _load(source)
    log.debug(f"{source}: {ticks.height} tick rows, match end at {match_end_tick}")

    for event in iter_events(ticks, match_end_tick):
        handler(event)


def _parse_try(source: Path, handler: Handler):
    """Wrap parsing exceptions with additional information."""

    try:
        _parse(source, handler)
    except (KeyboardInterrupt, SystemExit):
        raise
    except BaseException as exception:
        # demoparser2 raises Rust panics as pyo3 PanicException, a BaseException
        exception = exception if isinstance(exception, ParseError) else ParseError(str(exception))

        if not exception.filename:
            exception.filename = str(source)

        raise exception


def parse(source: str | os.PathLike, handler: Handler) -> None:
    """Decode a CS2 demo.
    :param source: demo file path
    :param handler: called with every event (ButtonChanged, Tick, MatchEnd, StreamEnd) in the order it occurs.
    """

    if isinstance(source, (str, os.PathLike)):
        _parse_try(Path(source), handler)
    else:
        raise TypeError("parse accepts only PathLikes and strings.")
