"""
Tests for the command-line interface.
"""

import json
import logging

import pytest

from jobly import __version__
from jobly.app import main
from jobly.logger import get_logger, reset_logger


@pytest.fixture
def seeded_url(database_url, job_ids):
    return database_url


def run(capsys, *argv):
    main(list(argv))
    return capsys.readouterr().out


class TestCommands:
    """Test CLI commands against a seeded database."""

    def test_version(self, capsys):
        assert run(capsys, "--version").strip() == __version__

    def test_init_db(self, tmp_path, capsys):
        url = f"sqlite:///{tmp_path / 'cli.db'}"
        out = run(capsys, "--database-url", url, "init-db")
        assert "Database ready" in out
        assert (tmp_path / "cli.db").exists()

    def test_companies_filtered(self, seeded_url, capsys):
        out = run(capsys, "--database-url", seeded_url, "companies", "--min-employees", "2", "--name", "c")
        companies = json.loads(out)["companies"]
        assert [c["handle"] for c in companies] == ["c2", "c3"]

    def test_company(self, seeded_url, capsys):
        out = run(capsys, "--database-url", seeded_url, "company", "c3")
        company = json.loads(out)["company"]
        assert company["name"] == "C3"
        assert [j["title"] for j in company["jobs"]] == ["j3"]

    def test_jobs_with_equity(self, seeded_url, capsys):
        out = run(capsys, "--database-url", seeded_url, "jobs", "--has-equity", "true")
        assert [j["title"] for j in json.loads(out)["jobs"]] == ["j3"]

    def test_job(self, seeded_url, job_ids, capsys):
        out = run(capsys, "--database-url", seeded_url, "job", str(job_ids["j2"]))
        assert json.loads(out)["job"]["salary"] == 2

    def test_users(self, seeded_url, capsys):
        out = run(capsys, "--database-url", seeded_url, "users")
        assert [u["username"] for u in json.loads(out)["users"]] == ["u1", "u2"]

    def test_user(self, seeded_url, job_ids, capsys):
        out = run(capsys, "--database-url", seeded_url, "user", "u1")
        assert json.loads(out)["user"]["jobs"] == [job_ids["j1"]]


class TestErrors:
    """Errors become a non-zero exit with the message."""

    def test_not_found(self, seeded_url):
        with pytest.raises(SystemExit) as exc:
            main(["--database-url", seeded_url, "company", "nope"])
        assert "No company: nope" in str(exc.value.code)

    def test_invalid_criteria(self, seeded_url):
        with pytest.raises(SystemExit) as exc:
            main(["--database-url", seeded_url, "jobs", "--has-equity", "ofcourseduh"])
        assert "hasEquity" in str(exc.value.code)

    def test_inverted_range(self, seeded_url):
        with pytest.raises(SystemExit):
            main(["--database-url", seeded_url, "companies", "--min-employees", "50", "--max-employees", "10"])


class TestDotenv:
    """Settings in .env apply to the whole command, logging included."""

    @pytest.fixture
    def dotenv_dir(self, monkeypatch, tmp_path):
        # setenv first so the values load_env writes are undone afterwards
        for name in ("JOBLY_LOG_LEVEL", "JOBLY_LOG_DIR"):
            monkeypatch.setenv(name, "unset")
            monkeypatch.delenv(name)
        monkeypatch.chdir(tmp_path)
        yield tmp_path
        reset_logger()

    def test_log_level_from_dotenv(self, dotenv_dir, capsys):
        get_logger()  # built before .env is read
        (dotenv_dir / ".env").write_text("JOBLY_LOG_LEVEL=DEBUG\n")

        run(capsys, "--version")

        assert get_logger().logger.level == logging.DEBUG

    def test_log_dir_from_dotenv(self, dotenv_dir, seeded_url, capsys):
        (dotenv_dir / ".env").write_text(f"JOBLY_LOG_DIR={dotenv_dir / 'logs'}\n")

        run(capsys, "--database-url", seeded_url, "users")

        assert list((dotenv_dir / "logs").glob("jobly_*.log"))
