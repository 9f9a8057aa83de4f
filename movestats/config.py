"""
Runtime configuration.

Values come from the dataclass defaults, then `MOVESTATS_*` environment variables. Command line flags are applied on
top of that by the CLI. Log verbosity is controlled separately through `LOG_LEVEL` (see `movestats.log`).

    MOVESTATS_MAX_CONCURRENT        int, demos analyzed at the same time
    MOVESTATS_EXTENSION             demo file extension to look for when walking a directory
    MOVESTATS_REPORT_EXTENSION      extension given to the report written next to each demo
    MOVESTATS_USE_PROCESSES         "0"/"false" runs workers as threads instead of processes
    MOVESTATS_SHORT_OVERLAP_IS_SWITCH "0"/"false" drops <=1 tick overlaps instead of counting them as good switches
    MOVESTATS_TICK_RATE             ticks per second, only used for console durations
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields

from .log import log

_FALSY = {"0", "false", "no", "off", ""}


@dataclass
class Config:
    max_concurrent: int = 8
    extension: str = ".dem"
    report_extension: str = ".csv"
    use_processes: bool = True
    short_overlap_is_switch: bool = True
    tick_rate: float = 64.0

    def __post_init__(self):
        if self.max_concurrent < 1:
            raise ValueError(f"max_concurrent must be at least 1, got {self.max_concurrent}")
        if self.tick_rate <= 0:
            raise ValueError(f"tick_rate must be positive, got {self.tick_rate}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Config":
        """Builds a Config from defaults overridden by any MOVESTATS_* variables present in `environ`."""
        if environ is None:
            environ = os.environ

        values = {}
        for f in fields(cls):
            raw = environ.get(f"MOVESTATS_{f.name.upper()}")
            if raw is None:
                continue
            if f.type is bool:
                values[f.name] = raw.strip().lower() not in _FALSY
            elif f.type is int:
                values[f.name] = int(raw)
            elif f.type is float:
                values[f.name] = float(raw)
            else:
                values[f.name] = raw
            log.debug(f"config override {f.name}={values[f.name]!r}")

        return cls(**values)
