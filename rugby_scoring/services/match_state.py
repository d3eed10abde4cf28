"""
Match state machine.

State flow:
upcoming -> live -> half-time -> live -> ended
live or half-time -> ended (ended is terminal)
"""
import logging
from typing import Dict, List

from .errors import MatchStateError
from .timer_service import TimerService
from ..models import Match, MatchStatus
from ..utils import MAX_HALVES

logger = logging.getLogger(__name__)


class MatchStateMachine:
    """
    Validates and applies match status transitions.

    Side effects on the clock are part of each transition: entering ``live``
    sets it running, leaving ``live`` stops it.
    """

    TRANSITIONS: Dict[MatchStatus, List[MatchStatus]] = {
        MatchStatus.UPCOMING: [MatchStatus.LIVE],
        MatchStatus.LIVE: [MatchStatus.HALF_TIME, MatchStatus.ENDED],
        MatchStatus.HALF_TIME: [MatchStatus.LIVE, MatchStatus.ENDED],
        MatchStatus.ENDED: [],
    }

    def __init__(self, match: Match, timer: TimerService):
        self.match = match
        self.timer = timer

    def can_transition(self, target: MatchStatus) -> bool:
        return target in self.TRANSITIONS[self.match.status]

    def allowed_transitions(self) -> List[MatchStatus]:
        return list(self.TRANSITIONS[self.match.status])

    def transition_to(self, target) -> Match:
        """
        Move the match to ``target`` and apply the clock side effects.

        Args:
            target: MatchStatus or its string value

        Returns:
            The updated match

        Raises:
            MatchStateError: If the transition is not allowed; nothing changes
        """
        target = MatchStatus.parse(target)
        current = self.match.status
        if not self.can_transition(target):
            raise MatchStateError(
                f"Cannot change match status from {current.value} to {target.value}"
            )

        if target is MatchStatus.LIVE:
            if current is MatchStatus.HALF_TIME:
                self.match.half = min(self.match.half + 1, MAX_HALVES)
            self.match.status = target
            self.timer.start()
        else:
            self.match.status = target
            self.timer.stop()

        logger.info(
            "Match %s: %s -> %s (half %d, %s)",
            self.match.id, current.value, target.value, self.match.half, self.timer.formatted(),
        )
        return self.match

    # Operator-facing control guards
    def can_start(self) -> bool:
        return self.can_transition(MatchStatus.LIVE)

    def can_call_half_time(self) -> bool:
        return self.match.status is MatchStatus.LIVE

    def can_end(self) -> bool:
        return self.can_transition(MatchStatus.ENDED)

    def can_toggle_timer(self) -> bool:
        return self.match.status is MatchStatus.LIVE

    def can_enter_scores(self) -> bool:
        return self.match.status is MatchStatus.LIVE
