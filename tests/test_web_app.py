"""
API tests for the Flask web application.

Each test builds a fresh app over an in-memory store with manually driven
match clocks. Sessions live in the test client's cookie jar.
"""
import unittest
from unittest.mock import patch

from rugby_scoring.config import AppConfig
from rugby_scoring.services import AdminService, InMemoryStore, ManualTicker, PersistenceError
from rugby_scoring.ui.web_app import create_app, get_state

NOW = "rugby_scoring.services.auth_service.now_ts"


class WebAppTestCase(unittest.TestCase):
    def setUp(self) -> None:
        config = AppConfig(data_file=None, secret_key="test-secret")
        self.store = InMemoryStore()
        admin = AdminService(self.store)
        admin.create_admin({"username": "root", "password": "admin123", "full_name": "Admin"})
        self.coach = admin.create_coach({"username": "sam", "password": "scrum123", "full_name": "Sam Coach"})
        self.other_coach = admin.create_coach({"username": "kim", "password": "ruck1234", "full_name": "Kim Coach"})
        self.app = create_app(config, store=self.store, ticker_factory=lambda match_id: ManualTicker())
        self.app.testing = True
        self.client = self.app.test_client()

    def tearDown(self) -> None:
        get_state(self.app).matches.shutdown()

    def login(self, username: str, password: str, **extra):
        return self.client.post("/api/auth/login", json={"username": username, "password": password, **extra})

    def grant(self, coach_id: str, **flags) -> None:
        AdminService(self.store).update_permissions(coach_id, flags)

    def setup_fixture(self) -> dict:
        """Tournament, two teams (Lions owned by sam) with players, and a match."""
        self.login("root", "admin123")
        tournament = self.client.post("/api/tournaments", json={
            "name": "Cup", "start_date": "2026-05-01", "end_date": "2026-05-03",
        }).get_json()["tournament"]
        lions = self.client.post("/api/teams", json={"name": "Lions", "coach_id": self.coach["id"]}).get_json()["team"]
        tigers = self.client.post("/api/teams", json={"name": "Tigers", "coach_id": self.other_coach["id"]}).get_json()["team"]
        flanker = self.client.post("/api/players", json={"name": "Flanker", "jersey_number": 7, "team_id": lions["id"]}).get_json()["player"]
        fly_half = self.client.post("/api/players", json={"name": "Fly Half", "jersey_number": 10, "team_id": lions["id"]}).get_json()["player"]
        scrum_half = self.client.post("/api/players", json={"name": "Scrum Half", "jersey_number": 9, "team_id": tigers["id"]}).get_json()["player"]
        match = self.client.post("/api/matches", json={
            "tournament_id": tournament["id"], "team1_id": lions["id"], "team2_id": tigers["id"],
            "scheduled_date": "2026-05-01T14:00",
        }).get_json()["match"]
        return {
            "tournament": tournament, "lions": lions, "tigers": tigers, "match": match,
            "flanker": flanker, "fly_half": fly_half, "scrum_half": scrum_half,
        }

    def ticker(self, match_id: str) -> ManualTicker:
        return get_state(self.app).matches.load_live_match(match_id).timer.ticker


class AuthEndpointTests(WebAppTestCase):
    def test_requires_login(self) -> None:
        response = self.client.get("/api/teams")
        self.assertEqual(response.status_code, 401)
        self.assertFalse(response.get_json()["success"])

    def test_login_and_logout(self) -> None:
        response = self.login("sam", "scrum123")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["user"]["role"], "coach")
        self.assertEqual(self.client.get("/api/permissions").get_json()["role"], "coach")
        self.client.post("/api/auth/logout")
        self.assertEqual(self.client.get("/api/permissions").status_code, 401)

    def test_bad_password(self) -> None:
        response = self.login("sam", "wrong")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()["error"], "Invalid username or password")

    def test_inactive_coach(self) -> None:
        AdminService(self.store).set_coach_active(self.coach["id"], False)
        response = self.login("sam", "scrum123")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()["reason"], "inactive_account")

    def test_coach_session_expires(self) -> None:
        with patch(NOW, return_value=0.0):
            self.login("sam", "scrum123")
        with patch(NOW, return_value=7200.0):
            response = self.client.get("/api/permissions")
        self.assertEqual(response.status_code, 401)
        self.assertIn("expired", response.get_json()["error"])

    def test_activity_keeps_session_alive(self) -> None:
        with patch(NOW, return_value=0.0):
            self.login("sam", "scrum123")
        with patch(NOW, return_value=7000.0):
            self.assertEqual(self.client.post("/api/auth/activity").status_code, 200)
        with patch(NOW, return_value=14000.0):
            self.assertEqual(self.client.get("/api/permissions").status_code, 200)

    def test_polling_is_not_activity(self) -> None:
        with patch(NOW, return_value=0.0):
            self.login("sam", "scrum123")
        with patch(NOW, return_value=7000.0):
            self.assertEqual(self.client.get("/api/permissions").status_code, 200)
        with patch(NOW, return_value=7200.0):
            self.assertEqual(self.client.get("/api/permissions").status_code, 401)

    def test_each_client_has_its_own_session(self) -> None:
        self.login("root", "admin123")
        self.assertEqual(self.client.get("/api/admin/coaches").status_code, 200)
        other = self.app.test_client()
        self.assertEqual(other.get("/api/admin/coaches").status_code, 401)
        other.post("/api/auth/login", json={"username": "sam", "password": "scrum123"})
        self.assertEqual(other.get("/api/permissions").get_json()["role"], "coach")
        self.assertEqual(self.client.get("/api/permissions").get_json()["role"], "admin")

    def test_deactivated_coach_loses_session(self) -> None:
        self.login("sam", "scrum123")
        AdminService(self.store).set_coach_active(self.coach["id"], False)
        self.assertEqual(self.client.get("/api/permissions").status_code, 401)

    def test_login_with_role(self) -> None:
        response = self.login("root", "admin123", role="admin")
        self.assertEqual(response.get_json()["user"]["role"], "admin")
        response = self.login("sam", "scrum123", role="admin")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()["reason"], "role_mismatch")
        self.assertEqual(response.get_json()["error"], "Invalid username or role")
        self.assertEqual(self.login("sam", "scrum123", role="viewer").status_code, 400)


class PermissionEndpointTests(WebAppTestCase):
    def test_coach_without_flag_gets_access_denied(self) -> None:
        self.login("sam", "scrum123")
        response = self.client.get("/api/teams")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.get_json()["error"], "Access Denied")

    def test_granted_permission_applies_after_refresh(self) -> None:
        self.login("sam", "scrum123")
        self.grant(self.coach["id"], teams=True)
        self.assertEqual(self.client.get("/api/auth/session").status_code, 200)
        self.assertEqual(self.client.get("/api/teams").status_code, 200)
        pages = self.client.get("/api/permissions").get_json()["pages"]
        self.assertTrue(pages["teams"])
        self.assertFalse(pages["statistics"])

    def test_admin_sees_every_page(self) -> None:
        self.login("root", "admin123")
        pages = self.client.get("/api/permissions").get_json()["pages"]
        self.assertTrue(all(pages.values()))

    def test_coach_cannot_manage_coaches(self) -> None:
        self.grant(self.coach["id"], teams=True, players=True, matches=True)
        self.login("sam", "scrum123")
        self.assertEqual(self.client.get("/api/admin/coaches").status_code, 403)

    def test_coach_cannot_edit_other_coach_team(self) -> None:
        fixture = self.setup_fixture()
        self.grant(self.coach["id"], teams=True, players=True)
        self.login("sam", "scrum123")
        response = self.client.put(f"/api/teams/{fixture['tigers']['id']}", json={"name": "Renamed"})
        self.assertEqual(response.status_code, 403)
        response = self.client.put(f"/api/teams/{fixture['lions']['id']}", json={"name": "Pride"})
        self.assertEqual(response.status_code, 200)
        response = self.client.post("/api/players", json={
            "name": "Intruder", "jersey_number": 20, "team_id": fixture["tigers"]["id"],
        })
        self.assertEqual(response.status_code, 403)


class MatchEndpointTests(WebAppTestCase):
    def test_live_scoring_flow(self) -> None:
        fixture = self.setup_fixture()
        match_id = fixture["match"]["id"]
        lions_id, tigers_id = fixture["lions"]["id"], fixture["tigers"]["id"]

        response = self.client.post(f"/api/matches/{match_id}/status", json={"status": "live"})
        self.assertEqual(response.status_code, 200)
        self.ticker(match_id).fire(750)

        response = self.client.post(f"/api/matches/{match_id}/scores", json={
            "team_id": lions_id, "player_id": fixture["flanker"]["id"], "score_type": "try",
        })
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.get_json()["event"]["match_time"], "12:30")
        self.client.post(f"/api/matches/{match_id}/scores", json={
            "team_id": lions_id, "player_id": fixture["fly_half"]["id"], "score_type": "conversion",
        })
        self.ticker(match_id).fire(1050)
        self.client.post(f"/api/matches/{match_id}/scores", json={
            "team_id": tigers_id, "player_id": fixture["scrum_half"]["id"], "score_type": "penalty",
        })
        self.client.post(f"/api/matches/{match_id}/status", json={"status": "half-time"})

        data = self.client.get(f"/api/matches/{match_id}").get_json()
        self.assertEqual((data["match"]["team1_score"], data["match"]["team2_score"]), (7, 3))
        self.assertEqual(data["match"]["clock"], "30:00")
        self.assertFalse(data["match"]["controls"]["can_enter_scores"])
        self.assertEqual([e["type"] for e in data["timeline"]], ["penalty", "conversion", "try"])

        stats = self.client.get(f"/api/matches/{match_id}/statistics").get_json()["report"]
        self.assertEqual(stats["teams"][0]["tries"], 1)
        self.assertEqual(stats["teams"][1]["top_scorer_name"], "Scrum Half")

        export = self.client.get(f"/api/matches/{match_id}/statistics/export")
        self.assertEqual(export.mimetype, "text/csv")

    def test_score_rejected_when_not_live(self) -> None:
        fixture = self.setup_fixture()
        response = self.client.post(f"/api/matches/{fixture['match']['id']}/scores", json={
            "team_id": fixture["lions"]["id"], "player_id": fixture["flanker"]["id"], "score_type": "try",
        })
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "Score input is only available during live matches")

    def test_illegal_transition_and_unknown_status(self) -> None:
        match_id = self.setup_fixture()["match"]["id"]
        self.assertEqual(self.client.post(f"/api/matches/{match_id}/status", json={"status": "half-time"}).status_code, 400)
        response = self.client.post(f"/api/matches/{match_id}/status", json={"status": "abandoned"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("status", response.get_json()["errors"])

    def test_coach_controls(self) -> None:
        fixture = self.setup_fixture()
        match_id = fixture["match"]["id"]
        self.client.post(f"/api/matches/{match_id}/status", json={"status": "live"})
        self.grant(self.coach["id"], matches=True)
        self.login("sam", "scrum123")

        self.assertEqual(self.client.post(f"/api/matches/{match_id}/status", json={"status": "ended"}).status_code, 403)
        response = self.client.post(f"/api/matches/{match_id}/timer")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.get_json()["match"]["timer_running"])

        response = self.client.post(f"/api/matches/{match_id}/scores", json={
            "team_id": fixture["tigers"]["id"], "player_id": fixture["scrum_half"]["id"], "score_type": "try",
        })
        self.assertEqual(response.status_code, 403)
        response = self.client.post(f"/api/matches/{match_id}/scores", json={
            "team_id": fixture["lions"]["id"], "player_id": fixture["flanker"]["id"], "score_type": "try",
        })
        self.assertEqual(response.status_code, 201)
        controls = self.client.get(f"/api/matches/{match_id}").get_json()["user_controls"]
        self.assertEqual(controls["scorable_team_ids"], [fixture["lions"]["id"]])
        self.assertFalse(controls["can_change_status"])

    def test_coach_without_team_cannot_score(self) -> None:
        fixture = self.setup_fixture()
        match_id = fixture["match"]["id"]
        self.client.post(f"/api/matches/{match_id}/status", json={"status": "live"})
        newcomer = AdminService(self.store).create_coach({
            "username": "lee", "password": "maul1234", "full_name": "Lee Coach",
        })
        self.grant(newcomer["id"], matches=True)
        self.login("lee", "maul1234")
        for team, player in (("lions", "flanker"), ("tigers", "scrum_half")):
            with self.subTest(team=team):
                response = self.client.post(f"/api/matches/{match_id}/scores", json={
                    "team_id": fixture[team]["id"], "player_id": fixture[player]["id"], "score_type": "try",
                })
                self.assertEqual(response.status_code, 403)
        controls = self.client.get(f"/api/matches/{match_id}").get_json()["user_controls"]
        self.assertEqual(controls["scorable_team_ids"], [])

    def test_scorer_cannot_be_deleted_or_moved(self) -> None:
        fixture = self.setup_fixture()
        match_id = fixture["match"]["id"]
        flanker_id = fixture["flanker"]["id"]
        self.client.post(f"/api/matches/{match_id}/status", json={"status": "live"})
        self.client.post(f"/api/matches/{match_id}/scores", json={
            "team_id": fixture["lions"]["id"], "player_id": flanker_id, "score_type": "try",
        })

        self.assertEqual(self.client.delete(f"/api/players/{flanker_id}").status_code, 400)
        response = self.client.put(f"/api/players/{flanker_id}", json={"team_id": fixture["tigers"]["id"]})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.client.delete(f"/api/teams/{fixture['lions']['id']}").status_code, 400)

        live = get_state(self.app).matches.load_live_match(match_id)
        self.assertEqual(live.match.team1_score, 5)
        self.assertEqual(live.player(flanker_id).points(), 5)
        self.assertTrue(live.verify_consistency())

    def test_unknown_match(self) -> None:
        self.login("root", "admin123")
        self.assertEqual(self.client.get("/api/matches/nope").status_code, 404)


class RegistryEndpointTests(WebAppTestCase):
    def test_validation_errors_are_per_field(self) -> None:
        fixture = self.setup_fixture()
        response = self.client.post("/api/players", json={
            "name": "Clash", "jersey_number": 7, "team_id": fixture["lions"]["id"], "age": 12,
        })
        self.assertEqual(response.status_code, 400)
        errors = response.get_json()["errors"]
        self.assertEqual(errors["jersey_number"], "Jersey number already exists in this team")
        self.assertEqual(errors["age"], "Age must be between 16 and 50")

    def test_non_text_team_name_is_not_a_server_error(self) -> None:
        self.login("root", "admin123")
        response = self.client.post("/api/teams", json={"name": 123, "logo": "x"})
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.get_json()["team"]["name"], "123")

    def test_storage_failure_is_generic_500(self) -> None:
        self.login("root", "admin123")
        with patch.object(self.store, "insert", side_effect=PersistenceError("connection reset")):
            response = self.client.post("/api/teams", json={"name": "Lions"})
        self.assertEqual(response.status_code, 500)
        self.assertNotIn("connection reset", response.get_json()["error"])

    def test_reads_fail_open(self) -> None:
        self.login("root", "admin123")
        with patch.object(self.store, "select", side_effect=PersistenceError("offline")):
            response = self.client.get("/api/tournaments")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["tournaments"], [])

    def test_tracking_record_and_export(self) -> None:
        fixture = self.setup_fixture()
        response = self.client.post("/api/tracking", json={
            "team_id": fixture["lions"]["id"], "player_id": fixture["flanker"]["id"],
            "time": "3:07.25", "action": "Carry", "points_h": 40,
        })
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.get_json()["record"]["time"], "3:07.25")

        export = self.client.get(f"/api/tracking/export?team_id={fixture['lions']['id']}")
        lines = export.get_data(as_text=True).splitlines()
        self.assertEqual(lines[0], "Time,Player,Jersey Number,Action,Description,Field Position,Points H,Points V,Created At")
        self.assertTrue(lines[1].startswith("3:07.25,Flanker,7,Carry,,,40.0,,"))

    def test_admin_coach_management(self) -> None:
        self.login("root", "admin123")
        response = self.client.post("/api/admin/coaches", json={
            "username": "lee", "password": "maul1234", "full_name": "Lee Coach",
        })
        self.assertEqual(response.status_code, 201)
        coach_id = response.get_json()["coach"]["id"]
        response = self.client.put(f"/api/admin/coaches/{coach_id}/permissions", json={"statistics": True})
        self.assertTrue(response.get_json()["permissions"]["statistics"])
        response = self.client.post(f"/api/admin/coaches/{coach_id}/active", json={"active": "no"})
        self.assertEqual(response.status_code, 400)
        response = self.client.post(f"/api/admin/coaches/{coach_id}/active", json={"active": False})
        self.assertFalse(response.get_json()["coach"]["is_active"])
        self.assertEqual(len(self.client.get("/api/admin/coaches").get_json()["coaches"]), 3)


if __name__ == "__main__":
    unittest.main()
