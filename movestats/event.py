from __future__ import annotations

from collections.abc import Callable

from .util import Base, Enum


class EventType(Enum):
    """Events the decoder adapter can emit while walking a demo.
    Docstrings on the event classes describe the payload each handler receives."""

    BUTTON_CHANGED = "button_changed"
    TICK = "tick"
    MATCH_END = "match_end"
    STREAM_END = "stream_end"


class ButtonChanged(Base):
    """A player's input bitmask changed.

    Attributes:
        tick : int
            In-game tick the new mask was observed on
        player_id : int
            SteamID64 of the player, resolved once by the adapter
        buttons : int
            Full button bitmask, see `movestats.buttons.Buttons`
        name : str
            Player's display name at the time of the change
    """

    __slots__ = "tick", "player_id", "buttons", "name"

    type = EventType.BUTTON_CHANGED

    tick: int
    player_id: int
    buttons: int
    name: str

    def __init__(self, tick: int, player_id: int, buttons: int, name: str = ""):
        self.tick = tick
        self.player_id = player_id
        self.buttons = buttons
        self.name = name

    def __eq__(self, other):
        if not isinstance(other, self.__class__):
            return NotImplemented
        return (
            self.tick == other.tick
            and self.player_id == other.player_id
            and self.buttons == other.buttons
            and self.name == other.name
        )


class Tick(Base):
    """End-of-tick sample for a single player.

    Attributes:
        tick : int
            In-game tick
        player_id : int
            SteamID64 of the player
        grounded : bool
            False while the player's pawn has no ground entity
        yaw : float
            Current view yaw in degrees
    """

    __slots__ = "tick", "player_id", "grounded", "yaw"

    type = EventType.TICK

    tick: int
    player_id: int
    grounded: bool
    yaw: float

    def __init__(self, tick: int, player_id: int, grounded: bool, yaw: float):
        self.tick = tick
        self.player_id = player_id
        self.grounded = grounded
        self.yaw = yaw

    def __eq__(self, other):
        if not isinstance(other, self.__class__):
            return NotImplemented
        return (
            self.tick == other.tick
            and self.player_id == other.player_id
            and self.grounded == other.grounded
            and self.yaw == other.yaw
        )


class MatchEnd(Base):
    """The match-winner panel was announced."""

    __slots__ = ("tick",)

    type = EventType.MATCH_END

    tick: int

    def __init__(self, tick: int):
        self.tick = tick

    def __eq__(self, other):
        if not isinstance(other, self.__class__):
            return NotImplemented
        return self.tick == other.tick


class StreamEnd(Base):
    """The decoder reached the end of the demo. `tick` is the last tick it saw."""

    __slots__ = ("tick",)

    type = EventType.STREAM_END

    tick: int

    def __init__(self, tick: int):
        self.tick = tick

    def __eq__(self, other):
        if not isinstance(other, self.__class__):
            return NotImplemented
        return self.tick == other.tick


Event = ButtonChanged | Tick | MatchEnd | StreamEnd

#: Signature every decoder must accept: `decoder(source, handler)` calls `handler(event)` in decode order.
Handler = Callable[[Event], None]
