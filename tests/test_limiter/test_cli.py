"""Tests for the quotagate command line."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

from quotagate.config.settings import Settings
from quotagate.limiter import cli
from quotagate.storage.connection import close_connection


@pytest.fixture
def run(tmp_path: Path, monkeypatch):
    settings = Settings(project_root=tmp_path)
    settings.ensure_dirs()
    monkeypatch.setattr(cli, "get_settings", lambda: settings)

    logger = logging.getLogger("quotagate")
    saved = (logger.handlers[:], logger.level, logger.propagate)

    def _run(*argv: str) -> int:
        monkeypatch.setattr(sys, "argv", ["quotagate", *argv])
        return cli.main()

    yield _run

    for handler in logger.handlers:
        if handler not in saved[0]:
            handler.close()
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]
    close_connection(settings.db_path)


class TestCli:
    def test_check(self, run, capsys):
        assert run("check", "10.0.0.9", "--times", "3") == 0
        out = capsys.readouterr().out
        assert "3. 10.0.0.9: ALLOW" in out
        assert "admitted 3/3" in out

    def test_show_unknown_key(self, run, capsys):
        assert run("show", "10.0.0.9") == 0
        assert "no usage recorded" in capsys.readouterr().out

    def test_show_after_check(self, run, capsys):
        run("check", "10.0.0.9", "--times", "2")
        capsys.readouterr()
        assert run("show", "10.0.0.9") == 0
        out = capsys.readouterr().out
        assert "algorithm=TOKEN_BUCKET" in out
        assert "/100" in out
        assert "status=OK" in out

    def test_reset(self, run, capsys):
        run("check", "10.0.0.9")
        assert run("reset", "10.0.0.9") == 0
        assert "reset 10.0.0.9" in capsys.readouterr().out

    def test_sweep(self, run, capsys):
        assert run("sweep") == 0
        assert "removed 0 expired buckets" in capsys.readouterr().out

    def test_missing_command(self, run):
        with pytest.raises(SystemExit):
            run()
