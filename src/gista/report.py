from __future__ import annotations

from .clusters import AUTHOR_STATS, ByAuthor


def fmt_int(n: float) -> str:
    return f"{int(n):,}"


def trunc(s: str, max_len: int) -> str:
    if len(s) <= max_len:
        return s
    if max_len <= 1:
        return s[:max_len]
    return s[: max_len - 1] + "…"


def bar(value: float, max_value: float, width: int = 22) -> str:
    if max_value <= 0:
        filled = 0
    else:
        filled = int(round((value / max_value) * width))
    filled = max(0, min(width, filled))
    return "[" + ("#" * filled) + ("-" * (width - filled)) + "]"


def render_author_table(cluster: ByAuthor, *, sort_by: str = "lines-changed", top_n: int = 0) -> str:
    """Plain-text per-author table, largest `sort_by` first."""
    keys = [k for k, _label in AUTHOR_STATS]
    rows = [(label, [cluster[k].values[i] for k in keys]) for i, label in enumerate(cluster.x_labels)]
    col = keys.index(sort_by)
    rows.sort(key=lambda r: (-r[1][col], r[0].lower()))
    if top_n > 0:
        rows = rows[:top_n]
    max_value = max((r[1][col] for r in rows), default=0)

    lines: list[str] = []
    lines.append(f"{'Author':20} {'Files':>7} {'Commits':>8} {'Changed':>10} {'Added':>10} {'Removed':>10}")
    lines.append("-" * 72)
    for name, values in rows:
        files, commits, changed, added, removed = values
        lines.append(
            f"{trunc(name, 20):20} {fmt_int(files):>7} {fmt_int(commits):>8} "
            f"{fmt_int(changed):>10} {fmt_int(added):>10} {fmt_int(removed):>10}  {bar(values[col], max_value, width=12)}"
        )
    if not rows:
        lines.append("(no authors)")
    return "\n".join(lines)
