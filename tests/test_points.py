import unittest
from decimal import Decimal

from matchimport.domain.points import (
    base_points,
    gender_bonus_applies,
    is_cross_gender_pairing,
    normalize_gender,
    pickle_points_for,
    player_match_points,
    to_multiplier,
)


class BasePointsTests(unittest.TestCase):
    def test_base_points_table(self) -> None:
        cases = [
            ("singles", None, Decimal("4.00")),
            ("doubles", None, Decimal("8.00")),
            ("singles", 1.5, Decimal("6.00")),
            ("doubles", "2", Decimal("16.00")),
            ("doubles", Decimal("0.5"), Decimal("4.00")),
        ]
        for match_type, multiplier, expected in cases:
            with self.subTest(match_type=match_type, multiplier=multiplier):
                self.assertEqual(base_points(match_type, multiplier), expected)

    def test_unknown_match_type_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            base_points("triples")


class MultiplierTests(unittest.TestCase):
    def test_defaults_to_one(self) -> None:
        self.assertEqual(to_multiplier(None), Decimal("1.0"))

    def test_invalid_multipliers(self) -> None:
        with self.assertRaises(ValueError):
            to_multiplier(0)
        with self.assertRaises(ValueError):
            to_multiplier(-1.5)
        with self.assertRaises(TypeError):
            to_multiplier(True)


class GenderTests(unittest.TestCase):
    def test_normalize_gender_table(self) -> None:
        cases = [
            ("M", "male"),
            (" male ", "male"),
            ("男", "male"),
            ("f", "female"),
            ("Female", "female"),
            ("女", "female"),
            ("x", None),
            ("", None),
            (None, None),
        ]
        for raw, expected in cases:
            with self.subTest(raw=raw):
                self.assertEqual(normalize_gender(raw), expected)

    def test_cross_gender_pairing(self) -> None:
        self.assertTrue(is_cross_gender_pairing(["male", "female"], ["male", "male"]))
        self.assertTrue(is_cross_gender_pairing(["female", "female"], ["female", "m"]))
        self.assertFalse(is_cross_gender_pairing(["male", "male"], ["female", "female"]))
        self.assertFalse(is_cross_gender_pairing(["female", None], ["male", None]))

    def test_bonus_threshold(self) -> None:
        cases = [
            ("female", 0, True, True),
            ("female", Decimal("999.99"), True, True),
            ("female", 1000, True, False),
            ("female", 10, False, False),
            ("male", 10, True, False),
            (None, 10, True, False),
        ]
        for gender, points, cross_gender, expected in cases:
            with self.subTest(gender=gender, points=points, cross_gender=cross_gender):
                self.assertEqual(gender_bonus_applies(gender, points, cross_gender), expected)


class PlayerMatchPointsTests(unittest.TestCase):
    def test_player_points_table(self) -> None:
        cases = [
            (True, "male", 0, False, None, Decimal("3.00")),
            (False, "male", 0, False, None, Decimal("1.00")),
            (True, "female", 500, True, None, Decimal("3.45")),
            (False, "female", 500, True, None, Decimal("1.15")),
            (True, "female", 1500, True, None, Decimal("3.00")),
            (True, "female", 500, True, 2, Decimal("6.90")),
            (False, "male", 0, True, 1.5, Decimal("1.50")),
        ]
        for won, gender, current, cross_gender, multiplier, expected in cases:
            with self.subTest(won=won, gender=gender, current=current, multiplier=multiplier):
                self.assertEqual(
                    player_match_points(
                        won=won,
                        gender=gender,
                        current_points=current,
                        cross_gender=cross_gender,
                        multiplier=multiplier,
                    ),
                    expected,
                )


class PicklePointsTests(unittest.TestCase):
    def test_pickle_points_table(self) -> None:
        cases = [
            (Decimal("4"), 6),
            (Decimal("8"), 12),
            (Decimal("3"), 5),
            (Decimal("1"), 2),
            (Decimal("8.45"), 13),
            (Decimal("3.45"), 5),
            (0, 0),
        ]
        for ranking_points, expected in cases:
            with self.subTest(ranking_points=ranking_points):
                self.assertEqual(pickle_points_for(ranking_points), expected)


if __name__ == "__main__":
    unittest.main()
