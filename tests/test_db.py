import sqlite3
import tempfile
import unittest
from pathlib import Path

from matchimport.db.database import get_connection
from matchimport.db.repositories import (
    CompetitionRepository,
    MatchRepository,
    PlayerRepository,
    TournamentRepository,
)


class DatabaseCrudTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = Path(self.temp_dir.name) / "test.db"
        self.connection = get_connection(self.db_path)
        self.players = PlayerRepository(self.connection)
        self.competitions = CompetitionRepository(self.connection)
        self.tournaments = TournamentRepository(self.connection)
        self.matches = MatchRepository(self.connection)

    def tearDown(self) -> None:
        self.connection.close()
        self.temp_dir.cleanup()

    def _player(self, code: str, **data) -> int:
        return self.players.create({"passport_code": code, "username": code.lower(), **data})

    def test_player_lookup_by_passport_code(self) -> None:
        player_id = self._player("PKL-1", display_name="Alice", gender="female")

        player = self.players.get_by_passport_code("PKL-1")
        self.assertIsNotNone(player)
        self.assertEqual(player["id"], player_id)
        self.assertEqual(player["ranking_points"], 0)
        self.assertIsNone(self.players.get_by_passport_code("PKL-2"))

        self._player("PKL-2")
        found = self.players.list_by_passport_codes(["PKL-2", "PKL-1", "PKL-9", "PKL-1"])
        self.assertEqual(sorted(item["passport_code"] for item in found), ["PKL-1", "PKL-2"])
        self.assertEqual(self.players.list_by_passport_codes([]), [])

    def test_passport_code_is_unique(self) -> None:
        self._player("PKL-1")
        with self.assertRaises(sqlite3.IntegrityError):
            self._player("PKL-1")

    def test_award_match_accumulates(self) -> None:
        player_id = self._player("PKL-1")

        with self.connection:
            self.players.award_match(player_id, ranking_points=3.0, pickle_points=5, won=True, match_date="2025-03-15")
            self.players.award_match(player_id, ranking_points=1.0, pickle_points=2, won=False, match_date=None)

        player = self.players.get(player_id)
        self.assertEqual(player["ranking_points"], 4.0)
        self.assertEqual(player["pickle_points"], 7)
        self.assertEqual(player["total_matches"], 2)
        self.assertEqual(player["matches_won"], 1)
        self.assertEqual(player["last_match_date"], "2025-03-15")

    def test_profile_overrides_never_blank_values(self) -> None:
        player_id = self._player("PKL-1", gender="male", birth_date="1990-01-01")

        with self.connection:
            self.players.apply_profile_overrides(player_id, birth_date="1991-02-02")
        player = self.players.get(player_id)
        self.assertEqual(player["gender"], "male")
        self.assertEqual(player["birth_date"], "1991-02-02")

        with self.connection:
            self.players.apply_profile_overrides(player_id, gender="female")
        self.assertEqual(self.players.get(player_id)["gender"], "female")

    def test_gender_is_constrained(self) -> None:
        with self.assertRaises(sqlite3.IntegrityError):
            self._player("PKL-1", gender="M")

    def test_competition_multipliers(self) -> None:
        self.competitions.create({"name": "Open", "points_multiplier": 1.5})
        self.competitions.create({"name": "Juniors"})

        self.assertEqual(self.competitions.multipliers_by_name(), {"Juniors": 1.0, "Open": 1.5})
        with self.assertRaises(sqlite3.IntegrityError):
            self.competitions.create({"name": "Broken", "points_multiplier": 0})

    def test_tournament_get_or_create(self) -> None:
        first_id, created = self.tournaments.get_or_create({"name": "Open", "start_date": "2025-03-15"})
        second_id, created_again = self.tournaments.get_or_create({"name": "Open"})

        self.assertTrue(created)
        self.assertFalse(created_again)
        self.assertEqual(first_id, second_id)
        self.assertEqual(len(self.tournaments.list()), 1)

    def test_match_idempotency_key_is_unique(self) -> None:
        one = self._player("PKL-1")
        two = self._player("PKL-2")
        tournament_id, _ = self.tournaments.get_or_create({"name": "Open"})
        data = {
            "tournament_id": tournament_id,
            "player_one_id": one,
            "player_two_id": two,
            "score_player_one": 11,
            "score_player_two": 7,
            "winner_team": 1,
            "format_type": "singles",
            "match_date": "2025-03-15",
            "points_awarded": 4.0,
            "pickle_points_awarded": 6,
            "idempotency_key": "abc",
        }

        with self.connection:
            match_id = self.matches.create(data)
        self.assertTrue(self.matches.exists_with_key("abc"))
        self.assertFalse(self.matches.exists_with_key("def"))
        self.assertEqual(self.matches.get(match_id)["winner_team"], 1)
        self.assertEqual(len(self.matches.list(tournament_id=tournament_id)), 1)

        with self.assertRaises(sqlite3.IntegrityError):
            with self.connection:
                self.matches.create(data)
        self.assertEqual(self.matches.count(), 1)


if __name__ == "__main__":
    unittest.main()
