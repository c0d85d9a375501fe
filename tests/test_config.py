from __future__ import annotations

import json
from pathlib import Path

import pytest

from gista.config import Settings, load_config, settings_from_config


def test_missing_config_is_empty(tmp_path: Path) -> None:
    assert load_config(tmp_path / "gista.json") == {}
    assert settings_from_config({}) == Settings()


def test_settings_from_config_file(tmp_path: Path) -> None:
    path = tmp_path / "conf" / "gista.json"
    path.parent.mkdir()
    path.write_text(json.dumps({"script": "team.cfg", "dpi": 150, "days": 90, "skip_commits": 2}), encoding="utf-8")

    settings = settings_from_config(load_config(path), base_dir=path.parent)
    assert settings.script == path.parent / "team.cfg"
    assert settings.dpi == 150
    assert settings.days == 90.0
    assert settings.skip_commits == 2


def test_non_object_config_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "gista.json"
    path.write_text("[1, 2]\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)
