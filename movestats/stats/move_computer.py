import os
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import tzlocal

from ..buttons import AXES, MOVEMENT
from ..config import Config
from ..event import ButtonChanged, Event, EventType, Handler, MatchEnd, StreamEnd, Tick
from ..log import log
from ..parse import parse
from .common import get_turn_direction, get_yaw_delta, is_good_switch, is_overlapping, is_turn_reversal
from .computer import ComputerBase
from .stat_types import AxisOverlap, MoveReport, PlayerMoveState, ReportRow


class MoveComputer(ComputerBase):
    """
    Accumulates movement input stats from decoder events and produces the per-player report.

    Attributes:
        replay_path : Pathlike | str
            Filepath of the demo being processed, if one was provided
        timestamp : datetime
            Demo file modification time in the local timezone
        tick : int
            Last tick seen in any event
        players : dict[int, PlayerMoveState]
            SteamID64 -> running state
        report : MoveReport | None
            Set by the first call to finalize()
        short_overlap_is_switch : bool
            When True (the default) an overlap lasting at most 1 tick counts as a good switch. When False it is dropped.

    Methods:
        dispatch -> None
            Single entry point for decoder events. Routes each event to the matching handler below.
        button_changed -> None
            Updates movement, overlap and switch counters for one player.
        tick_done -> None
            Updates airtime and air turn counters for one player.
        finalize -> list[ReportRow]
            Closes every open interval and returns one row per player. Only the first call returns anything.
    """

    report: MoveReport | None

    def __init__(
        self,
        replay: os.PathLike | str | None = None,
        timestamp: datetime | None = None,
        short_overlap_is_switch: bool = True,
    ):
        self.short_overlap_is_switch = short_overlap_is_switch
        self.report = None
        if replay is not None:
            self.prime_replay(replay)
        else:
            self.reset_data()
            self.replay_path = ""
            self.timestamp = datetime.now(tzlocal.get_localzone())
        if timestamp is not None:
            self.timestamp = timestamp

        # Manual jump table, same handlers for every event of a type
        self._handlers: dict[EventType, Callable[[Event], None]] = {
            EventType.BUTTON_CHANGED: self.button_changed,
            EventType.TICK: self.tick_done,
            EventType.MATCH_END: self.match_end,
            EventType.STREAM_END: self.stream_end,
        }

    def reset_data(self):
        super().reset_data()
        self.report = None

    def dispatch(self, event: Event) -> None:
        self.advance(event.tick)
        self._handlers[event.type](event)

    # ------------------------------- Accumulator ------------------------------- #

    def button_changed(self, event: ButtonChanged) -> None:
        # Can dead players press buttons? What about freeze time?
        # Those changes are counted like any other.
        state = self.get_state(event.player_id, event.name)
        if not state.tracking:
            return

        buttons = event.buttons
        tick = event.tick

        # Pressing any movement key?
        if buttons & MOVEMENT and not state.last_buttons:
            state.is_moving = True
            state.move_start_tick = tick
        elif not buttons & MOVEMENT and state.last_buttons:
            self._close_move(state, tick)

        # Overlapping? A new change while still overlapping restarts the overlap.
        for overlap, axis in zip((state.ws, state.ad), AXES):
            if is_overlapping(buttons, axis):
                overlap.overlapping = True
                overlap.start_tick = tick
            elif overlap.overlapping:
                self._close_overlap(state, overlap, tick)

        if is_good_switch(state.last_buttons, buttons):
            state.good_switches += 1

        # Doesn't really need other buttons.
        state.last_buttons = buttons & MOVEMENT

    def tick_done(self, event: Tick) -> None:
        state = self.players.get(event.player_id)
        if state is None or not state.tracking:
            return

        turning = get_turn_direction(state.last_yaw, event.yaw)
        if not event.grounded:
            state.airtime += 1
            if turning:
                state.air_turn_samples.append(get_yaw_delta(state.last_yaw, event.yaw, turning))
            if is_turn_reversal(state.turn_direction, turning):
                state.good_turns += 1

        state.turn_direction = turning
        state.last_yaw = event.yaw

    def _close_move(self, state: PlayerMoveState, tick: int):
        state.move_ticks += tick - state.move_start_tick
        state.is_moving = False

    def _close_overlap(self, state: PlayerMoveState, overlap: AxisOverlap, tick: int):
        overlap.overlapping = False
        overlap_ticks = tick - overlap.start_tick
        if overlap_ticks > 1:
            overlap.durations.append(overlap_ticks)
        elif self.short_overlap_is_switch:
            state.good_switches += 1

    # -------------------------------- Finalizer -------------------------------- #

    def match_end(self, event: MatchEnd) -> None:
        self.finalize(event.tick)

    def stream_end(self, event: StreamEnd) -> None:
        self.finalize(event.tick)

    def finalize(self, tick: int | None = None) -> list[ReportRow]:
        """Stops tracking every player, closes any open movement or overlap interval at the last known tick and
        returns one ReportRow per player seen. Only the first call does anything, later calls return an empty list."""
        if self.reported:
            return []

        if tick is not None:
            self.advance(tick)

        report = MoveReport(self.timestamp, duration_ticks=self.tick)
        for state in self.players.values():
            state.tracking = False
            if state.is_moving:
                self._close_move(state, self.tick)
            for overlap in (state.ws, state.ad):
                if overlap.overlapping:
                    self._close_overlap(state, overlap, self.tick)
            report.append(ReportRow.from_state(self.timestamp, state))

        self.report = report
        self.reported = True
        log.debug(f"{self.replay_path or 'demo'}: reported {len(report)} players at tick {self.tick}")
        return list(report)


def get_report_path(demo_path: os.PathLike | str, report_extension: str = ".csv") -> Path:
    """Sibling path of the demo with its extension replaced"""
    return Path(demo_path).with_suffix(report_extension)


def analyze_demo(
    demo_path: os.PathLike | str,
    decoder: Callable[[os.PathLike | str, Handler], None] | None = None,
    config: Config | None = None,
) -> MoveReport:
    """Runs one demo through `decoder`, writes the report next to it and returns the report.

    Args:
        demo_path : os.PathLike | str
            Path of the demo to analyze
        decoder : Callable
            Called as decoder(demo_path, handler). Defaults to the demoparser2 adapter, movestats.parse.parse
        config : Config | None
            Defaults to Config()
    Returns:
        MoveReport
    """
    if decoder is None:
        decoder = parse
    if config is None:
        config = Config()

    computer = MoveComputer(demo_path, short_overlap_is_switch=config.short_overlap_is_switch)
    decoder(demo_path, computer.dispatch)
    # decoders that stop without an end event still get a report
    computer.finalize()

    computer.report.write_csv(get_report_path(demo_path, config.report_extension))
    return computer.report
