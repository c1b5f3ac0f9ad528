from __future__ import annotations

from enum import Enum
from typing import Callable

from screenstock.domain.errors import ConfirmationError


class ConfirmationStage(str, Enum):
    IDLE = "idle"
    AWAITING_FIRST = "awaiting_first"
    AWAITING_TYPED = "awaiting_typed"


class ClearConfirmation:
    """Idle -> first confirmation -> typed phrase -> action.

    ``action`` receives the typed text and is only called once both steps
    passed and the phrase matched exactly. A wrong phrase keeps the flow in
    the typed stage so the user can retry or cancel.
    """

    def __init__(self, phrase: str, action: Callable[[str], None]):
        self.phrase = phrase
        self.action = action
        self.stage = ConfirmationStage.IDLE

    def request(self) -> None:
        self.stage = ConfirmationStage.AWAITING_FIRST

    def confirm_first(self) -> None:
        if self.stage is not ConfirmationStage.AWAITING_FIRST:
            raise ConfirmationError("Nothing to confirm.")
        self.stage = ConfirmationStage.AWAITING_TYPED

    def confirm_typed(self, text: str) -> None:
        if self.stage is not ConfirmationStage.AWAITING_TYPED:
            raise ConfirmationError("Confirm the first step before typing the phrase.")
        if text != self.phrase:
            raise ConfirmationError(f'Incorrect confirmation. Type "{self.phrase}" to confirm.')
        self.action(text)
        self.stage = ConfirmationStage.IDLE

    def cancel(self) -> None:
        self.stage = ConfirmationStage.IDLE
