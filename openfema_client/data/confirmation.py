"""
Confirmation gate for multi-page retrievals.

The gate never does console I/O itself; it calls an injected
``confirm(plan) -> bool`` callback. ``openfema_client.console.console_confirm``
is the interactive implementation.
"""

import logging
from enum import Enum
from typing import Callable, Optional

from openfema_client.data.planner import RetrievalPlan

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[RetrievalPlan], bool]


class GateState(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DECLINED = "declined"


class ConfirmationGate:
    """
    Pending -> Confirmed | Declined. Both outcomes are terminal.

    Plans that do not require confirmation are confirmed without calling back.
    Only a literal ``True`` from the callback confirms.
    """

    def __init__(self, confirm: Optional[ConfirmCallback] = None):
        self._confirm = confirm
        self.state = GateState.PENDING

    def decide(self, plan: RetrievalPlan) -> GateState:
        if self.state is not GateState.PENDING:
            raise RuntimeError(f"Confirmation gate already {self.state.value}")

        if not plan.requires_confirmation:
            self.state = GateState.CONFIRMED
            return self.state

        if self._confirm is None:
            raise RuntimeError("Plan requires confirmation but no confirm callback was given")

        answer = self._confirm(plan)
        self.state = GateState.CONFIRMED if answer is True else GateState.DECLINED
        logger.info(f"Retrieval of {plan.page_count} pages {self.state.value}")
        return self.state
