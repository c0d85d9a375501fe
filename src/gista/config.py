from __future__ import annotations

import dataclasses
import json
from pathlib import Path

from .clusters import DEFAULT_DAYS
from .render import DEFAULT_DPI

DEFAULT_SCRIPT = "gista.cfg"
DEFAULT_CONFIG = "gista.json"


@dataclasses.dataclass(frozen=True)
class Settings:
    script: Path = Path(DEFAULT_SCRIPT)
    dpi: int = DEFAULT_DPI
    days: float = DEFAULT_DAYS
    skip_commits: int = 0


def load_config(config_path: Path) -> dict:
    if not config_path.exists():
        return {}
    data = json.loads(config_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{config_path}: expected a JSON object")
    return data


def settings_from_config(config: dict, *, base_dir: Path | None = None) -> Settings:
    """
    Defaults for the CLI from a config dict. Relative `script` paths resolve
    against `base_dir` (the config file's directory).
    """
    defaults = Settings()
    script = Path(str(config.get("script") or DEFAULT_SCRIPT)).expanduser()
    if base_dir is not None and "script" in config and not script.is_absolute():
        script = base_dir / script
    return Settings(
        script=script,
        dpi=int(config.get("dpi", defaults.dpi)),
        days=float(config.get("days", defaults.days)),
        skip_commits=int(config.get("skip_commits", defaults.skip_commits)),
    )
