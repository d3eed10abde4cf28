"""
Web application module for the Rugby Scoring application.

This module contains the Flask server exposing JSON API endpoints for login,
the registry screens, live match operation, player tracking and coach
administration. Every response has the shape ``{"success": bool, ...}``.
"""
import logging
from dataclasses import asdict
from functools import wraps
from typing import Any, Callable, Dict, Optional

from flask import Flask, Response, current_app, g, jsonify, request
from flask import session as cookie_session

from ..config import AppConfig
from ..models import GatedPage, MatchStatus, Role, User
from ..services import (
    AuthenticationError, MatchStateError, NotFoundError, PersistenceError,
    ScoringError, ServiceFactory, ValidationError, authorization
)
from ..services.match_service import TickerFactory
from ..services.persistence_service import DataStore
from ..utils import ACCESS_DENIED_MESSAGE, APP_TITLE, configure_logging

logger = logging.getLogger(__name__)

EXTENSION_KEY = "rugby_scoring"
GENERIC_STORAGE_ERROR = "A database error occurred. Please try again."


class WebAppState:
    """
    State holder for the web application.

    Uses the service factory so every service shares one store and one set
    of loaded matches. Sessions live in each client's signed cookie.
    """

    def __init__(self, factory: ServiceFactory):
        self.factory = factory
        services = factory.create_complete_service_suite()
        self.auth = services["auth"]
        self.players = services["players"]
        self.teams = services["teams"]
        self.tournaments = services["tournaments"]
        self.matches = services["matches"]
        self.scoring = services["scoring"]
        self.tracking = services["tracking"]
        self.admin = services["admin"]
        self.analytics = services["analytics"]


def get_state(app: Optional[Flask] = None) -> WebAppState:
    return (app or current_app).extensions[EXTENSION_KEY]


# ==================== Response helpers ==================== #

def _access_denied():
    return jsonify({"success": False, "error": "Access Denied", "message": ACCESS_DENIED_MESSAGE}), 403


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _current_user() -> Optional[User]:
    return g.get("user")


def login_required(f: Callable) -> Callable:
    """Reject requests without a signed-in user with 401."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if _current_user() is None:
            if g.get("session_expired"):
                message = "Session expired. Please log in again."
            else:
                message = "Authentication required"
            return jsonify({"success": False, "error": message}), 401
        return f(*args, **kwargs)
    return decorated_function


def require_page(page: GatedPage) -> Callable:
    """Decorator factory: require a signed-in user allowed to view ``page``."""
    def decorator(f: Callable) -> Callable:
        @wraps(f)
        @login_required
        def decorated_function(*args, **kwargs):
            user = _current_user()
            if not authorization.check_permission(user, page):
                logger.warning("Access denied: %s attempted to open %s", user.username, page.value)
                return _access_denied()
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def create_app(
    config: Optional[AppConfig] = None,
    store: Optional[DataStore] = None,
    ticker_factory: Optional[TickerFactory] = None,
) -> Flask:
    """
    Create and configure the Flask application with API endpoints.

    Args:
        config: Deployment settings (defaults to the environment)
        store: Data store to use instead of the configured JSON file
        ticker_factory: Builds the clock driver of each loaded match

    Returns:
        Configured Flask application instance
    """
    config = config or AppConfig.from_env()
    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.secret_key
    app.extensions[EXTENSION_KEY] = WebAppState(ServiceFactory(config, store, ticker_factory))

    # ==================== Request lifecycle ==================== #

    @app.before_request
    def load_session():
        """
        Restore the client's session from its cookie.

        Expired coach sessions are ended. Requests that change data count as
        activity; reads such as clock polling do not.
        """
        g.user = None
        g.session_expired = False
        if not request.path.startswith("/api/"):
            return None
        session = get_state().factory.create_session(cookie_session)
        g.session = session
        g.user = session.user
        g.session_expired = session.expired
        if session.authenticated and request.method != "GET":
            session.touch()
        return None

    # ==================== Error mapping ==================== #

    @app.errorhandler(ValidationError)
    def handle_validation_error(e: ValidationError):
        return jsonify({"success": False, "error": "Validation failed", "errors": e.errors}), 400

    @app.errorhandler(MatchStateError)
    @app.errorhandler(ScoringError)
    def handle_rule_error(e: ValueError):
        return jsonify({"success": False, "error": str(e)}), 400

    @app.errorhandler(NotFoundError)
    def handle_not_found(e: NotFoundError):
        return jsonify({"success": False, "error": "Not found"}), 404

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(e: PersistenceError):
        logger.error("Storage failure on %s %s: %s", request.method, request.path, e)
        return jsonify({"success": False, "error": GENERIC_STORAGE_ERROR}), 500

    @app.route("/")
    def index():
        return jsonify({"success": True, "app": APP_TITLE})

    # ==================== Authentication ==================== #

    @app.route("/api/auth/login", methods=["POST"])
    def login():
        """Sign in as the given role, or against the coach accounts and then the admin accounts."""
        data = _json_body()
        role = None
        if data.get("role"):
            try:
                role = Role.parse(data["role"])
            except ValueError as e:
                raise ValidationError({"role": str(e)}) from e
        try:
            user = get_state().auth.login(data.get("username", ""), data.get("password", ""), role)
        except AuthenticationError as e:
            return jsonify({"success": False, "error": str(e), "reason": e.reason}), 401
        g.session.start(user)
        return jsonify({"success": True, "user": user.to_dict()})

    @app.route("/api/auth/logout", methods=["POST"])
    def logout():
        g.session.teardown()
        return jsonify({"success": True})

    @app.route("/api/auth/activity", methods=["POST"])
    @login_required
    def record_activity():
        """Mouse or key activity on the client; keeps a coach session alive."""
        return jsonify({"success": True, "last_activity_ts": g.session.last_activity_ts})

    @app.route("/api/auth/session", methods=["GET"])
    @login_required
    def current_session():
        """Return the signed-in user with freshly loaded permissions."""
        return jsonify({"success": True, "user": _current_user().to_dict()})

    @app.route("/api/permissions", methods=["GET"])
    @login_required
    def get_permissions():
        user = _current_user()
        return jsonify({
            "success": True,
            "role": authorization.resolve_role(user).value,
            "pages": {page.value: authorization.check_permission(user, page) for page in GatedPage},
            "can_manage_coaches": authorization.can_manage_coaches(user),
        })

    # ==================== Tournaments ==================== #

    @app.route("/api/tournaments", methods=["GET"])
    @require_page(GatedPage.TOURNAMENTS)
    def list_tournaments():
        tournaments = get_state().tournaments.list_tournaments(_current_user())
        return jsonify({"success": True, "tournaments": [t.to_row() for t in tournaments]})

    @app.route("/api/tournaments", methods=["POST"])
    @require_page(GatedPage.TOURNAMENTS)
    def create_tournament():
        tournament = get_state().tournaments.create_tournament(_current_user(), _json_body())
        return jsonify({"success": True, "tournament": tournament.to_row()}), 201

    @app.route("/api/tournaments/<tournament_id>", methods=["GET"])
    @require_page(GatedPage.TOURNAMENTS)
    def get_tournament(tournament_id: str):
        tournament = get_state().tournaments.get_tournament(tournament_id)
        return jsonify({"success": True, "tournament": tournament.to_row()})

    @app.route("/api/tournaments/<tournament_id>", methods=["PUT"])
    @require_page(GatedPage.TOURNAMENTS)
    def update_tournament(tournament_id: str):
        service = get_state().tournaments
        if not authorization.authorize_mutation(_current_user(), service.owner_ids(service.get_row(tournament_id))):
            return _access_denied()
        tournament = service.update_tournament(tournament_id, _json_body())
        return jsonify({"success": True, "tournament": tournament.to_row()})

    @app.route("/api/tournaments/<tournament_id>", methods=["DELETE"])
    @require_page(GatedPage.TOURNAMENTS)
    def delete_tournament(tournament_id: str):
        service = get_state().tournaments
        if not authorization.authorize_mutation(_current_user(), service.owner_ids(service.get_row(tournament_id))):
            return _access_denied()
        service.delete(tournament_id)
        return jsonify({"success": True})

    # ==================== Teams ==================== #

    @app.route("/api/teams", methods=["GET"])
    @require_page(GatedPage.TEAMS)
    def list_teams():
        teams = get_state().teams.list_teams(_current_user())
        return jsonify({"success": True, "teams": [t.to_row() for t in teams]})

    @app.route("/api/teams", methods=["POST"])
    @require_page(GatedPage.TEAMS)
    def create_team():
        team = get_state().teams.create_team(_current_user(), _json_body())
        return jsonify({"success": True, "team": team.to_row()}), 201

    @app.route("/api/teams/<team_id>", methods=["GET"])
    @require_page(GatedPage.TEAMS)
    def get_team(team_id: str):
        state = get_state()
        team = state.teams.get_team(team_id)
        team.players = state.players.list_players(_current_user(), team_id=team_id)
        return jsonify({"success": True, "team": team.to_dict()})

    @app.route("/api/teams/<team_id>", methods=["PUT"])
    @require_page(GatedPage.TEAMS)
    def update_team(team_id: str):
        service = get_state().teams
        if not authorization.authorize_mutation(_current_user(), service.owner_ids(service.get_row(team_id))):
            return _access_denied()
        team = service.update_team(team_id, _json_body())
        return jsonify({"success": True, "team": team.to_row()})

    @app.route("/api/teams/<team_id>", methods=["DELETE"])
    @require_page(GatedPage.TEAMS)
    def delete_team(team_id: str):
        service = get_state().teams
        if not authorization.authorize_mutation(_current_user(), service.owner_ids(service.get_row(team_id))):
            return _access_denied()
        service.delete(team_id)
        return jsonify({"success": True})

    # ==================== Players ==================== #

    def _may_edit_roster(team_id: Optional[str]) -> bool:
        if not team_id:
            return True  # validation reports the missing team
        state = get_state()
        state.teams.get_row(team_id)
        return authorization.authorize_mutation(_current_user(), state.players.owner_ids(team_id))

    @app.route("/api/players", methods=["GET"])
    @require_page(GatedPage.PLAYERS)
    def list_players():
        players = get_state().players.list_players(_current_user(), team_id=request.args.get("team_id"))
        return jsonify({"success": True, "players": [p.to_dict() for p in players], "count": len(players)})

    @app.route("/api/players", methods=["POST"])
    @require_page(GatedPage.PLAYERS)
    def create_player():
        data = _json_body()
        if not _may_edit_roster(data.get("team_id")):
            return _access_denied()
        player = get_state().players.create_player(data)
        get_state().matches.refresh_roster(player.team_id)
        return jsonify({"success": True, "player": player.to_dict()}), 201

    @app.route("/api/players/<player_id>", methods=["GET"])
    @require_page(GatedPage.PLAYERS)
    def get_player(player_id: str):
        player = get_state().players.get_player(player_id)
        return jsonify({"success": True, "player": player.to_dict()})

    @app.route("/api/players/<player_id>", methods=["PUT"])
    @require_page(GatedPage.PLAYERS)
    def update_player(player_id: str):
        data = _json_body()
        current = get_state().players.get_player(player_id)
        if not _may_edit_roster(current.team_id) or not _may_edit_roster(data.get("team_id")):
            return _access_denied()
        player = get_state().players.update_player(player_id, data)
        for team_id in {current.team_id, player.team_id}:
            get_state().matches.refresh_roster(team_id)
        return jsonify({"success": True, "player": player.to_dict()})

    @app.route("/api/players/<player_id>", methods=["DELETE"])
    @require_page(GatedPage.PLAYERS)
    def delete_player(player_id: str):
        current = get_state().players.get_player(player_id)
        if not _may_edit_roster(current.team_id):
            return _access_denied()
        get_state().players.delete_player(player_id)
        get_state().matches.refresh_roster(current.team_id)
        return jsonify({"success": True})

    # ==================== Matches ==================== #

    def _match_payload(match_id: str) -> Dict[str, Any]:
        state = get_state()
        user = _current_user()
        live = state.matches.load_live_match(match_id)
        payload = live.to_dict()
        payload["user_controls"] = {
            "can_change_status": authorization.can_change_status(user),
            "can_toggle_timer": authorization.can_toggle_timer(user),
            "scorable_team_ids": authorization.scorable_team_ids(user, live.match.team_ids()),
        }
        return payload

    def _may_operate(match_id: str) -> bool:
        service = get_state().matches
        return authorization.authorize_mutation(_current_user(), service.owner_ids(service.get_row(match_id)))

    @app.route("/api/matches", methods=["GET"])
    @require_page(GatedPage.MATCHES)
    def list_matches():
        matches = get_state().matches.list_matches(_current_user(), request.args.get("tournament_id"))
        return jsonify({"success": True, "matches": [m.to_row() for m in matches]})

    @app.route("/api/matches", methods=["POST"])
    @require_page(GatedPage.MATCHES)
    def create_match():
        match = get_state().matches.create_match(_current_user(), _json_body())
        return jsonify({"success": True, "match": match.to_row()}), 201

    @app.route("/api/matches/<match_id>", methods=["GET"])
    @require_page(GatedPage.MATCHES)
    def get_match(match_id: str):
        return jsonify({"success": True, **_match_payload(match_id)})

    @app.route("/api/matches/<match_id>", methods=["DELETE"])
    @require_page(GatedPage.MATCHES)
    def delete_match(match_id: str):
        if not _may_operate(match_id):
            return _access_denied()
        get_state().matches.delete(match_id)
        return jsonify({"success": True})

    @app.route("/api/matches/<match_id>/status", methods=["POST"])
    @require_page(GatedPage.MATCHES)
    def change_match_status(match_id: str):
        """Apply a status transition (admins only)."""
        if not authorization.can_change_status(_current_user()):
            return _access_denied()
        try:
            status = MatchStatus.parse(_json_body().get("status"))
        except ValueError as e:
            raise ValidationError({"status": str(e)}) from e
        get_state().matches.change_status(match_id, status)
        return jsonify({"success": True, **_match_payload(match_id)})

    @app.route("/api/matches/<match_id>/timer", methods=["POST"])
    @require_page(GatedPage.MATCHES)
    def toggle_match_timer(match_id: str):
        user = _current_user()
        if not authorization.can_toggle_timer(user) or not _may_operate(match_id):
            return _access_denied()
        get_state().matches.toggle_timer(match_id)
        return jsonify({"success": True, **_match_payload(match_id)})

    @app.route("/api/matches/<match_id>/scores", methods=["POST"])
    @require_page(GatedPage.MATCHES)
    def add_match_score(match_id: str):
        """Record a try, conversion, penalty or drop goal."""
        state = get_state()
        data = _json_body()
        if not _may_operate(match_id):
            return _access_denied()
        live = state.matches.load_live_match(match_id)
        team_id = data.get("team_id")
        allowed = authorization.scorable_team_ids(_current_user(), live.match.team_ids())
        if team_id in live.match.team_ids() and team_id not in allowed:
            return _access_denied()
        event = state.scoring.add_score(
            live,
            team_id=team_id,
            player_id=data.get("player_id"),
            score_type=data.get("score_type"),
            comment=(data.get("comment") or "").strip() or None,
        )
        return jsonify({"success": True, "event": event.to_dict(), **_match_payload(match_id)}), 201

    @app.route("/api/matches/<match_id>/events", methods=["GET"])
    @require_page(GatedPage.MATCHES)
    def list_match_events(match_id: str):
        live = get_state().matches.load_live_match(match_id)
        return jsonify({"success": True, "events": [e.to_dict() for e in live.timeline()]})

    @app.route("/api/matches/<match_id>/statistics", methods=["GET"])
    @require_page(GatedPage.STATISTICS)
    def get_match_statistics(match_id: str):
        state = get_state()
        report = state.analytics.generate_match_report(state.matches.load_live_match(match_id))
        return jsonify({
            "success": True,
            "report": {
                "match_id": report.match_id,
                "status": report.status,
                "half": report.half,
                "match_time": report.match_time,
                "event_count": report.event_count,
                "teams": [asdict(stats) for stats in report.teams],
            },
        })

    @app.route("/api/matches/<match_id>/statistics/export", methods=["GET"])
    @require_page(GatedPage.STATISTICS)
    def export_match_statistics(match_id: str):
        state = get_state()
        csv_content = state.analytics.export_match_report_csv(state.matches.load_live_match(match_id))
        return Response(
            csv_content,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename=match_report_{match_id}.csv"},
        )

    # ==================== Player tracking ==================== #

    @app.route("/api/tracking", methods=["GET"])
    @require_page(GatedPage.PLAYER_TRACKING)
    def list_tracking():
        records = get_state().tracking.list_records(_current_user(), request.args.get("team_id"))
        return jsonify({
            "success": True,
            "records": [{**r.to_row(), "time": r.formatted_time} for r in records],
        })

    @app.route("/api/tracking", methods=["POST"])
    @require_page(GatedPage.PLAYER_TRACKING)
    def add_tracking_record():
        data = _json_body()
        if not _may_edit_roster(data.get("team_id")):
            return _access_denied()
        record = get_state().tracking.add_record(data)
        return jsonify({"success": True, "record": {**record.to_row(), "time": record.formatted_time}}), 201

    @app.route("/api/tracking/<record_id>", methods=["DELETE"])
    @require_page(GatedPage.PLAYER_TRACKING)
    def delete_tracking_record(record_id: str):
        service = get_state().tracking
        if not _may_edit_roster(service.get_record(record_id).team_id):
            return _access_denied()
        service.delete_record(record_id)
        return jsonify({"success": True})

    @app.route("/api/tracking/export", methods=["GET"])
    @require_page(GatedPage.PLAYER_TRACKING)
    def export_tracking():
        """Download tracking records as CSV."""
        service = get_state().tracking
        team_id = request.args.get("team_id")
        csv_content = service.export_csv(service.list_records(_current_user(), team_id))
        return Response(
            csv_content,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename=player_tracking_{team_id or 'all'}.csv"},
        )

    # ==================== Coach administration ==================== #

    def admin_only(f: Callable) -> Callable:
        @wraps(f)
        @login_required
        def decorated_function(*args, **kwargs):
            if not authorization.can_manage_coaches(_current_user()):
                return _access_denied()
            return f(*args, **kwargs)
        return decorated_function

    @app.route("/api/admin/coaches", methods=["GET"])
    @admin_only
    def list_coaches():
        return jsonify({"success": True, "coaches": get_state().admin.list_coaches()})

    @app.route("/api/admin/coaches", methods=["POST"])
    @admin_only
    def create_coach():
        coach = get_state().admin.create_coach(_json_body())
        return jsonify({"success": True, "coach": coach}), 201

    @app.route("/api/admin/coaches/<coach_id>/active", methods=["POST"])
    @admin_only
    def set_coach_active(coach_id: str):
        data = _json_body()
        if not isinstance(data.get("active"), bool):
            raise ValidationError({"active": "Active must be true or false"})
        coach = get_state().admin.set_coach_active(coach_id, data["active"])
        return jsonify({"success": True, "coach": coach})

    @app.route("/api/admin/coaches/<coach_id>/permissions", methods=["PUT"])
    @admin_only
    def update_coach_permissions(coach_id: str):
        permissions = get_state().admin.update_permissions(coach_id, _json_body())
        return jsonify({"success": True, "permissions": permissions.to_dict()})

    return app


def run_web_app(config: Optional[AppConfig] = None) -> None:
    """
    Run the web application.

    Args:
        config: Deployment settings (defaults to the environment)
    """
    config = config or AppConfig.from_env()
    configure_logging(logfile=config.log_file)
    app = create_app(config)
    logger.info("Starting %s on %s:%d", APP_TITLE, config.host, config.port)
    try:
        app.run(host=config.host, port=config.port, debug=config.debug, use_reloader=False)
    finally:
        get_state(app).matches.shutdown()
