import csv
import io
import unittest

from rugby_scoring.models import Role, User
from rugby_scoring.services import InMemoryStore, TrackingService, ValidationError
from rugby_scoring.utils import TRACKING_CSV_COLUMNS


class TrackingServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryStore()
        self.store.insert("teams", {"id": "A", "name": "Lions", "coach_id": "c1"})
        self.store.insert("teams", {"id": "B", "name": "Tigers", "coach_id": "c2"})
        self.store.insert("players", {"id": "p7", "team_id": "A", "jersey_number": 7, "name": "Flanker"})
        self.store.insert("players", {"id": "p9", "team_id": "B", "jersey_number": 9, "name": "Scrum Half"})
        self.service = TrackingService(self.store)
        self.admin = User(id="a1", username="root", role=Role.ADMIN, full_name="Admin")

    def _record(self, **overrides):
        data = {"team_id": "A", "player_id": "p7", "time": "12:34.56", "action": "Tackle"}
        data.update(overrides)
        return self.service.add_record(data)

    def test_add_record_parses_time(self) -> None:
        record = self._record(points_h="12.5", field_position="22m")
        self.assertAlmostEqual(record.tracking_time, 754.56)
        self.assertEqual(record.formatted_time, "12:34.56")
        self.assertEqual(record.points_h, 12.5)
        self.assertIsNone(record.points_v)

    def test_time_format_enforced(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            self._record(time="12:3")
        self.assertEqual(ctx.exception.errors["time"], "Time format should be MM:SS.ss")
        with self.assertRaises(ValidationError) as ctx:
            self._record(time="1:75")
        self.assertEqual(ctx.exception.errors["time"], "Seconds must be less than 60")

    def test_player_and_action_required(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            self.service.add_record({"team_id": "A", "time": "1:00"})
        self.assertEqual(set(ctx.exception.errors), {"player_id", "action"})

    def test_player_must_be_on_team(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            self._record(player_id="p9")
        self.assertIn("player_id", ctx.exception.errors)

    def test_negative_points_rejected(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            self._record(points_h="-1", points_v="abc")
        self.assertEqual(set(ctx.exception.errors), {"points_h", "points_v"})

    def test_records_ordered_by_time_and_scoped(self) -> None:
        self._record(time="5:00")
        self._record(time="0:30")
        self.service.add_record({"team_id": "B", "player_id": "p9", "time": "1:00", "action": "Pass"})
        coach = User(id="c1", username="sam", role=Role.COACH, full_name="Sam")
        self.assertEqual([r.formatted_time for r in self.service.list_records(coach)], ["0:30.00", "5:00.00"])
        self.assertEqual(len(self.service.list_records(self.admin)), 3)
        self.assertEqual(len(self.service.list_records(self.admin, team_id="B")), 1)

    def test_csv_export(self) -> None:
        self._record(time="1:05.50", description="Big hit", points_v=3)
        text = self.service.export_csv(self.service.list_records(self.admin))
        rows = list(csv.reader(io.StringIO(text)))
        self.assertEqual(rows[0], TRACKING_CSV_COLUMNS)
        self.assertEqual(rows[1][:8], ["1:05.50", "Flanker", "7", "Tackle", "Big hit", "", "", "3.0"])
        self.assertTrue(rows[1][8])

    def test_csv_export_without_records(self) -> None:
        self.assertEqual(self.service.export_csv([]), ",".join(TRACKING_CSV_COLUMNS) + "\n")


if __name__ == "__main__":
    unittest.main()
