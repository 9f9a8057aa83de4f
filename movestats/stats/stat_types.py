from collections import UserList
from dataclasses import dataclass, field
from datetime import datetime
from os import PathLike

import polars as pl
from tzlocal import get_localzone_name

from ..util import Base

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# ---------------------------------------------------------------------------- #
#                                 Player State                                 #
# ---------------------------------------------------------------------------- #


@dataclass()
class AxisOverlap(Base):
    """Overlap tracking for one pair of opposing movement keys.

    Attributes:
        overlapping : bool
            True while both keys are held
        start_tick : int
            Tick the current overlap started on, only meaningful while `overlapping`
        durations : list[int]
            Length in ticks of every completed overlap longer than 1 tick
    """

    overlapping: bool = False
    start_tick: int = 0
    durations: list[int] = field(default_factory=list)

    @property
    def instances(self) -> int:
        return len(self.durations)

    @property
    def total_ticks(self) -> int:
        return sum(self.durations)

    @property
    def average(self) -> float:
        """Mean overlap length in ticks, 0 when there were no overlaps"""
        if not self.durations:
            return 0.0
        return self.total_ticks / self.instances


@dataclass()
class PlayerMoveState(Base):
    """Running movement input counters for a single player in a single demo.

    Attributes:
        player_id : int
            SteamID64
        name : str
            Last display name seen for the player
        tracking : bool
            False once the report has been generated. No counter changes after that.
        last_buttons : int
            Movement bits of the last button mask, every other bit is dropped
        ws : AxisOverlap
            Forward/back overlaps
        ad : AxisOverlap
            Left/right overlaps
        good_switches : int
            Direction reversals with no overlap, or an overlap of at most 1 tick
        is_moving : bool
            True while any movement key is held
        move_start_tick : int
            Tick the current movement attempt started on
        move_ticks : int
            Total ticks with at least one movement key held
        last_yaw : float
            View yaw on the previous tick
        turn_direction : int
            TURN_LEFT, TURN_RIGHT or TURN_NONE on the previous tick
        good_turns : int
            Airborne turn reversals
        airtime : int
            Ticks spent airborne
        air_turn_samples : list[float]
            Degrees turned on every airborne tick the player was turning
    """

    player_id: int
    name: str = ""
    tracking: bool = True
    last_buttons: int = 0
    ws: AxisOverlap = field(default_factory=AxisOverlap)
    ad: AxisOverlap = field(default_factory=AxisOverlap)
    good_switches: int = 0
    is_moving: bool = False
    move_start_tick: int = 0
    move_ticks: int = 0
    last_yaw: float = 0.0
    turn_direction: int = 0
    good_turns: int = 0
    airtime: int = 0
    air_turn_samples: list[float] = field(default_factory=list)

    @property
    def average_air_turn(self) -> float:
        if not self.air_turn_samples:
            return 0.0
        return sum(self.air_turn_samples) / len(self.air_turn_samples)


# ---------------------------------------------------------------------------- #
#                                    Report                                    #
# ---------------------------------------------------------------------------- #


@dataclass()
class ReportRow(Base):
    """Final movement stats for one player in one demo. Produced by MoveComputer.finalize()"""

    timestamp: datetime
    player_id: int
    player_name: str
    ad_instances: int
    ad_total_ticks: int
    ad_average: float
    ws_instances: int
    ws_total_ticks: int
    ws_average: float
    good_switches: int
    move_ticks: int
    good_turns: int
    airtime: int
    average_air_turn: float = 0.0
    """Console only, not part of the written report"""

    @classmethod
    def from_state(cls, timestamp: datetime, state: PlayerMoveState):
        return cls(
            timestamp=timestamp,
            player_id=state.player_id,
            player_name=state.name,
            ad_instances=state.ad.instances,
            ad_total_ticks=state.ad.total_ticks,
            ad_average=state.ad.average,
            ws_instances=state.ws.instances,
            ws_total_ticks=state.ws.total_ticks,
            ws_average=state.ws.average,
            good_switches=state.good_switches,
            move_ticks=state.move_ticks,
            good_turns=state.good_turns,
            airtime=state.airtime,
            average_air_turn=state.average_air_turn,
        )

    def summary(self) -> str:
        return (
            f"{self.player_name} ({self.player_id}): W/S overlap ticks {self.ws_total_ticks}, "
            f"A/D overlap ticks {self.ad_total_ticks}, good key switch count {self.good_switches}, "
            f"total move ticks {self.move_ticks}, good turns {self.good_turns}, airtime {self.airtime}, "
            f"average air turn {self.average_air_turn:.2f}"
        )


class MoveReport(UserList):
    """Iterable wrapper, treat as list[ReportRow].

    Attributes:
        data : list[ReportRow]
            One row per player seen in the demo, in the order they were first seen
        timestamp : datetime
            Demo file modification time, local timezone
        duration_ticks : int
            Last tick seen before the report was generated
        schema : dict
            Column name -> polars dtype, in output order
    """

    data: list[ReportRow]

    # column -> ReportRow attribute
    _columns = {
        "Date": "timestamp",
        "SteamID64": "player_id",
        "Name": "player_name",
        "A/D overlap (instances)": "ad_instances",
        "A/D overlap (ticks)": "ad_total_ticks",
        "A/D overlap (tick/instance)": "ad_average",
        "W/S overlap (instances)": "ws_instances",
        "W/S overlap (ticks)": "ws_total_ticks",
        "W/S overlap (tick/instance)": "ws_average",
        "Good Strafe Switch": "good_switches",
        "Total Move Ticks": "move_ticks",
        "Good Airstrafe Turns": "good_turns",
        "Total Airtime": "airtime",
    }

    def __init__(self, timestamp: datetime, duration_ticks: int = 0, rows: list[ReportRow] | None = None):
        self.timestamp = timestamp
        self.duration_ticks = duration_ticks
        self.data = list(rows) if rows is not None else []
        self.schema = {
            "Date": pl.Datetime(time_zone=get_localzone_name()),
            "SteamID64": pl.UInt64,
            "Name": pl.Utf8,
            "A/D overlap (instances)": pl.Int64,
            "A/D overlap (ticks)": pl.Int64,
            "A/D overlap (tick/instance)": pl.Float64,
            "W/S overlap (instances)": pl.Int64,
            "W/S overlap (ticks)": pl.Int64,
            "W/S overlap (tick/instance)": pl.Float64,
            "Good Strafe Switch": pl.Int64,
            "Total Move Ticks": pl.Int64,
            "Good Airstrafe Turns": pl.Int64,
            "Total Airtime": pl.Int64,
        }

    def append(self, item):
        if isinstance(item, ReportRow):
            UserList.append(self, item)
        else:
            raise TypeError(f"Incorrect stat type: {type(item)}, expected ReportRow")

    def duration_minutes(self, tick_rate: float = 64.0) -> float:
        return self.duration_ticks / tick_rate / 60.0

    def to_polars(self) -> pl.DataFrame:
        if len(self.data) == 0:
            return pl.DataFrame([], self.schema)
        else:
            rows = []
            for stat in self.data:
                rows.append({column: getattr(stat, attr) for column, attr in self._columns.items()})

            return pl.DataFrame(rows, schema=self.schema)

    def write_csv(self, path: PathLike | str) -> None:
        self.to_polars().write_csv(path, datetime_format=DATE_FORMAT, float_precision=6)
