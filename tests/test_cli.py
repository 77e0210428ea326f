"""
tests.test_cli

Command line exit codes on configuration errors.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from cicd_monitor import cli
from cicd_monitor.cli import EXIT_CONFIG_ERROR, app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "MONITOR_ORGANIZATION",
        "MONITOR_PROJECT",
        "MONITOR_VALIDATION_DEFINITION_ID",
        "MONITOR_BUILD_DEFINITION_ID",
        "MONITOR_STORE_BACKEND",
        "PERSONAL_ACCESS_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)


def test_tick_with_missing_config_file_exits_2(tmp_path: Path) -> None:
    result = runner.invoke(app, ["tick", "--config", str(tmp_path / "absent.json")])

    assert result.exit_code == EXIT_CONFIG_ERROR


def test_tick_with_incomplete_config_exits_2(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"organization": "contoso"}), encoding="utf-8")

    result = runner.invoke(app, ["tick", "--config", str(path)])

    assert result.exit_code == EXIT_CONFIG_ERROR


def _complete_config(tmp_path: Path) -> Path:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "organization": "contoso",
                "project": "aks",
                "master_validation_e2e_id": 7,
                "aks_build_id": 9,
            }
        ),
        encoding="utf-8",
    )
    return path


def test_tick_without_pat_exits_2(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MONITOR_STORE_BACKEND", "file")

    result = runner.invoke(app, ["tick", "--config", str(_complete_config(tmp_path))])

    assert result.exit_code == EXIT_CONFIG_ERROR


def test_serve_without_pat_exits_2_before_starting_server(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("MONITOR_STORE_BACKEND", "file")
    started: list[object] = []
    monkeypatch.setattr(cli.uvicorn, "run", lambda *args, **kwargs: started.append(args))

    result = runner.invoke(app, ["serve", "--config", str(_complete_config(tmp_path))])

    assert result.exit_code == EXIT_CONFIG_ERROR
    assert started == []
