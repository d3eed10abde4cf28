import unittest

from rugby_scoring.models import GatedPage, PermissionSet, Role, User
from rugby_scoring.services import authorization


def make_coach(**flags) -> User:
    return User(id="c1", username="coach", role=Role.COACH, full_name="Coach",
                team_id="A", permissions=PermissionSet.defaults().updated(flags))


ADMIN = User(id="a1", username="admin", role=Role.ADMIN, full_name="Admin")


class CheckPermissionTests(unittest.TestCase):
    def test_admin_allowed_everywhere_regardless_of_flags(self) -> None:
        for page in GatedPage:
            self.assertTrue(authorization.check_permission(ADMIN, page))
        self.assertTrue(authorization.check_permission(ADMIN, "anything"))

    def test_coach_follows_stored_flags(self) -> None:
        coach = make_coach(matches=True)
        for page in GatedPage:
            with self.subTest(page=page):
                expected = page is GatedPage.MATCHES
                self.assertEqual(authorization.check_permission(coach, page), expected)

    def test_unset_flag_and_unknown_page_deny(self) -> None:
        coach = User(id="c2", username="new", role=Role.COACH, full_name="New",
                     permissions=PermissionSet({}))
        self.assertFalse(authorization.check_permission(coach, "teams"))
        self.assertFalse(authorization.check_permission(make_coach(teams=True), "billing"))

    def test_absent_user_denied(self) -> None:
        self.assertFalse(authorization.check_permission(None, GatedPage.TEAMS))


class MutationTests(unittest.TestCase):
    def test_admin_bypasses_ownership(self) -> None:
        self.assertTrue(authorization.authorize_mutation(ADMIN, ["someone-else"]))

    def test_coach_needs_matching_owner(self) -> None:
        coach = make_coach()
        self.assertTrue(authorization.authorize_mutation(coach, ["c1"]))
        self.assertTrue(authorization.authorize_mutation(coach, [None, "A"]))
        self.assertFalse(authorization.authorize_mutation(coach, ["c9", "B"]))
        self.assertFalse(authorization.authorize_mutation(coach, [None]))

    def test_absent_user_cannot_mutate(self) -> None:
        self.assertFalse(authorization.authorize_mutation(None, ["c1"]))

    def test_status_and_timer_controls(self) -> None:
        coach = make_coach()
        self.assertTrue(authorization.can_change_status(ADMIN))
        self.assertFalse(authorization.can_change_status(coach))
        self.assertTrue(authorization.can_toggle_timer(coach))
        self.assertTrue(authorization.can_toggle_timer(ADMIN))
        self.assertFalse(authorization.can_toggle_timer(None))
        self.assertFalse(authorization.can_manage_coaches(coach))

    def test_scorable_teams(self) -> None:
        self.assertEqual(authorization.scorable_team_ids(ADMIN, ("A", "B")), ["A", "B"])
        self.assertEqual(authorization.scorable_team_ids(make_coach(), ("A", "B")), ["A"])
        self.assertEqual(authorization.scorable_team_ids(None, ("A", "B")), [])
        teamless = User(id="c9", username="new", role=Role.COACH, full_name="New Coach")
        self.assertEqual(authorization.scorable_team_ids(teamless, ("A", "B")), [])

    def test_resolve_role(self) -> None:
        self.assertIs(authorization.resolve_role(make_coach()), Role.COACH)


if __name__ == "__main__":
    unittest.main()
