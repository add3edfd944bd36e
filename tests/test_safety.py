"""Safety tests to ensure the test suite never touches real data.

Every test must run against the temporary working directory and database
set up by the autouse fixture in conftest.py, never ./db or ./data of the
repository.
"""

from pathlib import Path

import pytest

from uniport.config.app_config import load_app_config
from uniport.db.database import get_db_path

TESTS_DIR = Path(__file__).resolve().parent


class TestIsolation:
    """Checks on the per-test isolation fixture."""

    def test_working_directory_is_temporary(self, tmp_path):
        assert Path.cwd().resolve() == tmp_path.resolve()

    def test_database_is_temporary(self, tmp_path):
        assert get_db_path().resolve().is_relative_to(tmp_path.resolve())

    def test_configured_database_resolves_inside_temp_dir(self, tmp_path):
        assert load_app_config().db_path.resolve().is_relative_to(tmp_path.resolve())


class TestTestFiles:
    """Meta-tests ensuring test modules do not reach for default paths."""

    def test_no_default_database(self):
        violations = []

        for test_file in sorted(TESTS_DIR.glob("test_*.py")):
            if test_file.name == Path(__file__).name:
                continue
            content = test_file.read_text(encoding="utf-8")

            if "init_db()" in content:  # no argument = default path
                violations.append(f"{test_file.name}: calls init_db() without a temp path")

            for literal in ('Path("db")', "Path('db')", 'Path("data")', "Path('data')"):
                if literal in content and "tmp_path" not in content:
                    violations.append(f"{test_file.name}: uses {literal} without tmp_path")

        if violations:
            pytest.fail(
                "Test files may not be properly isolated:\n"
                + "\n".join(f"  - {v}" for v in violations)
            )
