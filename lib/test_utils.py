"""
Test suite for lib/utils.py
"""

import os
import tempfile
import unittest

from lib.utils import jsonDumps, load_dotenv


class TestUtils(unittest.TestCase):

    def test_json_dumps_compact_by_default(self):
        """Compact separators and sorted keys unless indent is requested"""
        self.assertEqual(jsonDumps({"b": 1, "a": "μ"}), '{"a":"μ","b":1}')

    def test_json_dumps_pretty(self):
        """Indent disables compact separators"""
        self.assertEqual(jsonDumps({"a": 1}, indent=2), '{\n  "a": 1\n}')

    def test_load_dotenv_missing_file(self):
        """Missing .env file yields nothing"""
        self.assertEqual(load_dotenv("/nonexistent/.env", populateEnv=False), {})

    def test_load_dotenv_parses_pairs(self):
        """Comments are skipped, quotes are stripped, values may contain '='"""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, ".env")
            with open(path, "wt", encoding="utf-8") as f:
                f.write('# comment\nCLASSGUARD_TEST_A="value"\nCLASSGUARD_TEST_B=x=y\n\n')

            ret = load_dotenv(path, populateEnv=True)

        try:
            self.assertEqual(ret, {"CLASSGUARD_TEST_A": "value", "CLASSGUARD_TEST_B": "x=y"})
            self.assertEqual(os.environ["CLASSGUARD_TEST_A"], "value")
        finally:
            os.environ.pop("CLASSGUARD_TEST_A", None)
            os.environ.pop("CLASSGUARD_TEST_B", None)


if __name__ == "__main__":
    unittest.main()
