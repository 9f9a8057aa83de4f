import os
from datetime import datetime
from os import PathLike

import tzlocal

from .stat_types import PlayerMoveState


class IdentifierError(Exception):
    """SteamID64 or name does not match any player seen in the current session."""

    pass


class ComputerBase:
    """Base for Computer classes. Owns the per-player state for exactly one demo.

    Attributes:
        replay_path : Pathlike | str
            Filepath of the demo being processed, if one was provided
        timestamp : datetime
            Demo file modification time in the local timezone, or the time the computer was created
        tick : int
            Last tick seen in any event
        players : dict[int, PlayerMoveState]
            SteamID64 -> running state, in the order players were first seen
        reported : bool
            True once the report has been generated. Guards against reporting twice.

    Methods:
        prime_replay -> ComputerBase
            Takes a file path, stamps the computer with the file's modification time and clears any previous state.
        get_state -> PlayerMoveState
            Takes a SteamID64, returns that player's state, creating it on first use.
        get_player -> PlayerMoveState
            Takes an identifier (SteamID64 or display name), returns the matching state. Raises IdentifierError if
            the player was never seen.
    """

    replay_path: PathLike | str
    timestamp: datetime
    tick: int
    players: dict[int, PlayerMoveState]
    reported: bool

    def prime_replay(self, replay: PathLike | str):
        """Points the computer at a new demo file."""
        if not isinstance(replay, (PathLike, str)):
            raise TypeError("prime_replay accepts only PathLikes and strings.")

        self.reset_data()
        self.replay_path = replay
        self.timestamp = get_file_timestamp(replay)
        return self

    def reset_data(self):
        self.tick = 0
        self.players = {}
        self.reported = False

    def advance(self, tick: int):
        if tick > self.tick:
            self.tick = tick

    def get_state(self, player_id: int, name: str = "") -> PlayerMoveState:
        state = self.players.get(player_id)
        if state is None:
            state = PlayerMoveState(player_id=player_id, name=name, tracking=not self.reported)
            self.players[player_id] = state
        elif name:
            state.name = name
        return state

    def get_player(self, identifier: int | str) -> PlayerMoveState:
        """
        Takes an identifier, returns the state of the player matching the identifier. Raises an error if the
        identifier was never seen in this session.

        Args:
            identifier : int | str
                int SteamID64 or str display name
        Returns:
            PlayerMoveState
        Raises:
            IdentifierError
                Raised when identifier does not match any player seen so far
        """
        match identifier:
            case int():
                try:
                    return self.players[identifier]
                except KeyError:
                    raise IdentifierError(f"No player matching given SteamID64 {identifier}") from None
            case str():
                for state in self.players.values():
                    if state.name == identifier:
                        return state
                else:
                    raise IdentifierError(f"No player matching given name {identifier}")
            case _:
                raise IdentifierError(
                    f"""Invalid identifier type for identifier: {identifier}.
                    Got: {type(identifier)} Expected: int | str"""
                )


def get_file_timestamp(path: PathLike | str) -> datetime:
    """Modification time of `path` in the local timezone"""
    return datetime.fromtimestamp(os.stat(path).st_mtime, tz=tzlocal.get_localzone())
