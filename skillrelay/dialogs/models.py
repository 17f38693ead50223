"""Dialog turn results."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class DialogTurnStatus(str, Enum):
    """Outcome of delivering a turn to the dialog stack.

    - WAITING: the active dialog is blocked on further input
    - COMPLETE: the stack bottomed out; ``result`` carries the root's value
    - CANCELLED: the stack was cleared
    """

    WAITING = "waiting"
    COMPLETE = "complete"
    CANCELLED = "cancelled"


@dataclass
class DialogTurnResult:
    status: DialogTurnStatus
    result: Any = None

    @property
    def waiting(self) -> bool:
        return self.status == DialogTurnStatus.WAITING


def end_of_turn() -> DialogTurnResult:
    return DialogTurnResult(DialogTurnStatus.WAITING)
