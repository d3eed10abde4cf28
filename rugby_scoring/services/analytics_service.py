"""Match statistics for the Rugby Scoring application."""

import csv
import io
from typing import List, Optional, Protocol

from .live_match import LiveMatch
from ..models import MatchReport, Player, ScoreType, Team, TeamStatistics


class ReportExporterInterface(Protocol):
    """Interface for report export."""

    def export_to_csv(self, report: MatchReport) -> str:
        ...


class MatchReportExporter:
    """Writes a match report as CSV: a summary block then one row per team."""

    def export_to_csv(self, report: MatchReport) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")

        writer.writerow(["Match Report"])
        writer.writerow(["Match", report.match_id])
        writer.writerow(["Status", report.status])
        writer.writerow(["Half", report.half])
        writer.writerow(["Match Time", report.match_time])
        writer.writerow(["Scoring Events", report.event_count])
        writer.writerow([])

        writer.writerow([
            "Team",
            "Score",
            "Tries",
            "Conversions",
            "Penalties",
            "Drop Goals",
            "Top Scorer",
            "Top Scorer Points",
        ])
        for stats in report.teams:
            writer.writerow([
                stats.team_name,
                stats.score,
                stats.tries,
                stats.conversions,
                stats.penalties,
                stats.drop_goals,
                stats.top_scorer_name or "",
                stats.top_scorer_points,
            ])

        csv_text = buffer.getvalue()
        buffer.close()
        return csv_text


class AnalyticsService:
    """
    Builds per-team statistics from a loaded match.

    Figures come from the match's player counters, which are kept equal to a
    fold over its scoring events.
    """

    def __init__(self, export_service: Optional[ReportExporterInterface] = None) -> None:
        self.export_service = export_service or MatchReportExporter()

    @staticmethod
    def top_scorer(players: List[Player]) -> Optional[Player]:
        """Player with the most points; ties keep the first found, none when nobody scored."""
        best: Optional[Player] = None
        for player in players:
            if player.points() > (best.points() if best else 0):
                best = player
        return best

    def team_statistics(self, team: Team) -> TeamStatistics:
        totals = {score_type.counter: 0 for score_type in ScoreType}
        for player in team.players:
            for name, value in player.counters().items():
                totals[name] += value

        scorer = self.top_scorer(team.players)
        return TeamStatistics(
            team_id=team.id,
            team_name=team.name,
            score=team.score,
            top_scorer_id=scorer.id if scorer else None,
            top_scorer_name=scorer.name if scorer else None,
            top_scorer_points=scorer.points() if scorer else 0,
            **totals,
        )

    def generate_match_report(self, live: LiveMatch) -> MatchReport:
        """Build a :class:`MatchReport` snapshot for a loaded match."""
        return MatchReport(
            match_id=live.match.id,
            status=live.match.status.value,
            half=live.match.half,
            match_time=live.timer.formatted(),
            teams=[self.team_statistics(team) for team in live.teams],
            event_count=len(live.events),
        )

    def export_match_report_csv(self, live: LiveMatch) -> str:
        return self.export_service.export_to_csv(self.generate_match_report(live))
