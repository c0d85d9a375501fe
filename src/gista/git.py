from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional

from .errors import GistaError

# One Summary record per commit (NUL-prefixed, NUL-separated), followed by
# the --numstat LoC records.
LOG_PRETTY = "%x00%ae%x00%ad%x00%H%x00%s"


def run_git(args: list[str], cwd: Path, timeout_s: int = 300) -> tuple[int, str, str]:
    proc = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        timeout=timeout_s,
    )
    return proc.returncode, proc.stdout, proc.stderr


def get_repo_toplevel(candidate: Path) -> Optional[Path]:
    code, out, _ = run_git(["rev-parse", "--show-toplevel"], cwd=candidate)
    if code != 0:
        return None
    try:
        return Path(out.strip()).resolve()
    except Exception:
        return None


def log_stats_command(*, all_refs: bool = False, include_merges: bool = False) -> list[str]:
    cmd = [
        "git",
        "log",
        "--numstat",
        "--date=iso-strict",
        f"--pretty=format:{LOG_PRETTY}",
    ]
    if all_refs:
        cmd.append("--all")
    if not include_merges:
        cmd.insert(2, "--no-merges")
    return cmd


def dump_log_stats(repo: Path, out_path: Path, *, all_refs: bool = False, include_merges: bool = False, timeout_s: int = 600) -> int:
    """
    Write the raw log-stats dump for `repo` to `out_path`.
    Returns the number of commits written.
    """
    out_path.parent.mkdir(parents=True, exist_ok=True)
    cmd = log_stats_command(all_refs=all_refs, include_merges=include_merges)
    with out_path.open("w", encoding="utf-8", newline="\n") as f:
        proc = subprocess.run(
            cmd,
            cwd=str(repo),
            stdout=f,
            stderr=subprocess.PIPE,
            text=True,
            timeout=timeout_s,
        )
    if proc.returncode != 0:
        raise GistaError(f"git log exited {proc.returncode}: {proc.stderr.strip()[:500]}")

    with out_path.open("r", encoding="utf-8", errors="replace") as f:
        return sum(1 for line in f if line.startswith("\0"))
