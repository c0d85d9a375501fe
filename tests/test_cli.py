from __future__ import annotations

import datetime as dt
from pathlib import Path

import pytest

from gista.cli import main


def _summary(email: str, sha: str) -> str:
    when = dt.datetime.now(dt.timezone.utc) - dt.timedelta(days=1)
    return "\x00".join(["", email, when.isoformat(), sha, "msg"])


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "data.log").write_text(
        "\n".join([_summary("a@x.com", "H1"), "3\t1\tfoo.txt", "", _summary("b@y.com", "H2"), "1\t0\tvendor/x.c"]) + "\n",
        encoding="utf-8",
    )
    return tmp_path


def test_help_lists_commands(capsys) -> None:
    assert main(["--help"]) == 0
    out = capsys.readouterr().out
    assert "dump" in out
    assert "stats" in out


def test_stats_prints_table(workdir: Path, capsys) -> None:
    code = main(["stats", "--log", "data.log", "--alias", "a@x.com=Alice", "--exclude", "vendor"])
    assert code == 0
    out = capsys.readouterr().out
    assert "Alice" in out
    row = next(line for line in out.splitlines() if line.startswith("Alice"))
    assert row.split()[1:6] == ["1", "1", "4", "3", "1"]


def test_stats_rejects_bad_alias(workdir: Path, capsys) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["stats", "--log", "data.log", "--alias", "nope"])
    assert exc.value.code == 2
    err = capsys.readouterr().err
    assert "usage: gista stats" in err
    assert "--alias expects RAW=CANONICAL, got: 'nope'" in err


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        '{"dpi": "x"}',
        '{"days": [1]}',
        "[1, 2]",
    ],
)
@pytest.mark.parametrize("command", [["run"], ["stats", "--log", "data.log"]])
def test_invalid_config_exits_one(workdir: Path, capsys, content: str, command: list[str]) -> None:
    (workdir / "gista.json").write_text(content, encoding="utf-8")
    assert main(command) == 1
    assert "Invalid config gista.json" in capsys.readouterr().err


def test_run_writes_png(workdir: Path) -> None:
    (workdir / "gista.cfg").write_text(
        "\n".join(
            [
                "# team report",
                ":alias Alice",
                "a@x.com",
                ":load data.log",
                ":figure 400x300",
                ':title "Everyone"',
                ":plot bars author commits lines-changed",
                ":save out/team.png",
            ]
        )
        + "\n",
        encoding="utf-8",
    )
    assert main(["--quiet", "--dpi", "50"]) == 0
    assert (workdir / "out" / "team.png").exists()


def test_run_uses_config_script(workdir: Path) -> None:
    (workdir / "scripts").mkdir()
    (workdir / "scripts" / "team.cfg").write_text(":days 30\n", encoding="utf-8")
    (workdir / "gista.json").write_text('{"script": "scripts/team.cfg"}\n', encoding="utf-8")
    assert main(["run", "--quiet"]) == 0


def test_missing_script_is_reported(workdir: Path, capsys) -> None:
    assert main(["run", "--script", "nope.cfg"]) == 1
    assert "File 'nope.cfg' does not exist" in capsys.readouterr().err


def test_script_error_exits_one(workdir: Path, capsys) -> None:
    (workdir / "gista.cfg").write_text(":load data.log\n:days soon\n", encoding="utf-8")
    assert main(["--quiet"]) == 1
    err = capsys.readouterr().err
    assert "line: 2" in err


def test_ingestion_error_exits_one(workdir: Path, capsys) -> None:
    (workdir / "bad.log").write_text("\n3\t1\torphan.txt\n", encoding="utf-8")
    assert main(["stats", "--log", "bad.log"]) == 1
    assert "line 2" in capsys.readouterr().err
