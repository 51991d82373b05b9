from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Palette:
    reset: str = "\033[0m"
    red: str = "\033[31m"
    green: str = "\033[32m"
    yellow: str = "\033[33m"
    cyan: str = "\033[36m"


PLAIN = Palette(reset="", red="", green="", yellow="", cyan="")


def default_palette() -> Palette:
    if os.name == "nt" or os.environ.get("NO_COLOR"):
        return PLAIN
    return Palette()
