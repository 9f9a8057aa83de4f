__version__ = "0.1.0"

from .batch import BatchResult, BatchRunner, FileOutcome, find_demos, get_stats
from .buttons import Buttons
from .config import Config
from .event import ButtonChanged, EventType, MatchEnd, StreamEnd, Tick
from .parse import ParseError, parse
from .stats.computer import IdentifierError
from .stats.move_computer import MoveComputer, analyze_demo
from .stats.stat_types import MoveReport, PlayerMoveState, ReportRow
