import os
import sys
import unittest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from config import ODDSAPI_TO_ABBR
from pickem_odds.teams import full_name, is_known, normalize_abbreviation, to_abbreviation


class TeamNamesTestCase(unittest.TestCase):
    def test_table_covers_all_32_franchises(self):
        self.assertEqual(len(ODDSAPI_TO_ABBR), 32)
        self.assertEqual(len(set(ODDSAPI_TO_ABBR.values())), 32)

    def test_translation_is_total_and_stable(self):
        for name, abbr in ODDSAPI_TO_ABBR.items():
            self.assertEqual(to_abbreviation(name), abbr)
            self.assertEqual(to_abbreviation(name), to_abbreviation(name))
            self.assertEqual(full_name(abbr), name)

    def test_examples(self):
        self.assertEqual(to_abbreviation("Kansas City Chiefs"), "KC")
        self.assertEqual(to_abbreviation("Washington Commanders"), "WAS")
        self.assertEqual(to_abbreviation(" San Francisco 49ers "), "SF")

    def test_unknown_name_passes_through(self):
        self.assertEqual(to_abbreviation("Washington Redskins"), "Washington Redskins")
        self.assertEqual(to_abbreviation(""), "")
        self.assertFalse(is_known(to_abbreviation("Washington Redskins")))

    def test_espn_aliases(self):
        self.assertEqual(normalize_abbreviation("WSH"), "WAS")
        self.assertEqual(normalize_abbreviation("jac"), "JAX")
        self.assertEqual(normalize_abbreviation("LA"), "LAR")
        self.assertEqual(normalize_abbreviation("KC"), "KC")
        self.assertEqual(full_name("WSH"), "Washington Commanders")


if __name__ == '__main__':
    unittest.main()
