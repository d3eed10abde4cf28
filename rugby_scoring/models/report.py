"""Dataclasses representing match statistics reports."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class TeamStatistics:
    """Aggregated scoring actions for one team in a match."""

    team_id: str
    team_name: str
    score: int
    tries: int = 0
    conversions: int = 0
    penalties: int = 0
    drop_goals: int = 0
    top_scorer_id: Optional[str] = None
    top_scorer_name: Optional[str] = None
    top_scorer_points: int = 0


@dataclass
class MatchReport:
    """Snapshot of both teams' statistics for a match."""

    match_id: str
    status: str
    half: int
    match_time: str
    teams: List[TeamStatistics] = field(default_factory=list)
    event_count: int = 0
