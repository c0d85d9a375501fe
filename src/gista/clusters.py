from __future__ import annotations

import dataclasses
import datetime as dt
from collections import defaultdict
from typing import Callable, Iterable

from .models import Author, Commit, EntityGraph, File

DEFAULT_DAYS = 10000.0

# (key, label) in drawing order.
AUTHOR_STATS: tuple[tuple[str, str], ...] = (
    ("files-changed", "Files changed"),
    ("commits", "Commits"),
    ("lines-changed", "Lines changed"),
    ("lines-added", "Lines added"),
    ("lines-deleted", "Lines removed"),
)


@dataclasses.dataclass
class Series:
    label: str
    values: list[float]


@dataclasses.dataclass(frozen=True)
class ClusterState:
    exclude: tuple[str, ...] = ()
    include: tuple[str, ...] = ()
    days: float = DEFAULT_DAYS
    skip: int = 0
    now: dt.datetime | None = None

    def evaluation_instant(self) -> dt.datetime:
        if self.now is None:
            return dt.datetime.now(dt.timezone.utc)
        return as_aware(self.now)


def as_aware(ts: dt.datetime) -> dt.datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=dt.timezone.utc)
    return ts


def within_days(ts: dt.datetime, days: float, now: dt.datetime) -> bool:
    try:
        window = dt.timedelta(days=days)
    except OverflowError:
        return days > 0
    return as_aware(now) - as_aware(ts) < window


def valid_files(files: Iterable[File], exclude: Iterable[str], include: Iterable[str]) -> set[File]:
    """
    Files eligible for metrics: non-renames free of every exclude substring,
    plus (when include is non-empty) non-renames containing every include
    substring. Include only ever adds to the set.
    """
    files = [f for f in files if not f.is_move]
    exclude = list(exclude)
    include = list(include)

    valid = {f for f in files if all(s not in f.path for s in exclude)}
    if include:
        valid.update(f for f in files if all(s in f.path for s in include))
    return valid


def qualifying_commits(
    commits: Iterable[Commit],
    valid: set[File],
    *,
    days: float,
    skip: int,
    now: dt.datetime,
) -> list[Commit]:
    picked = [
        c
        for c in commits
        if c.changes
        and c.timestamp is not None
        and any(ch.file in valid for ch in c.changes)
        and within_days(c.timestamp, days, now)
    ]
    picked.sort(key=lambda c: as_aware(c.timestamp))
    return picked[max(0, skip):]


class ByAuthor:
    """Per-author cluster: one category per known author, five metric series."""

    name = "author"

    def __init__(self, graph: EntityGraph, state: ClusterState) -> None:
        self.graph = graph
        self.state = state
        self.authors: list[Author] = graph.authors
        self.x_labels = [a.short_name for a in self.authors]
        self._stats: dict[str, Series] = {}

    def __getitem__(self, stat: str) -> Series:
        return self._stats[stat]

    def __contains__(self, stat: object) -> bool:
        return stat in self._stats

    def keys(self) -> list[str]:
        return list(self._stats)

    def _add(self, stat: str, label: str) -> Series:
        if stat not in self._stats:
            self._stats[stat] = Series(label=label, values=[0.0] * len(self.authors))
        return self._stats[stat]

    def crunch(self) -> None:
        state = self.state
        now = state.evaluation_instant()
        valid = valid_files(self.graph.files, state.exclude, state.include)

        series = {key: self._add(key, label) for key, label in AUTHOR_STATS}

        by_author: dict[Author, list[Commit]] = defaultdict(list)
        for commit in self.graph.commits:
            if commit.author is not None:
                by_author[commit.author].append(commit)

        for index, author in enumerate(self.authors):
            commits = qualifying_commits(by_author.get(author, []), valid, days=state.days, skip=state.skip, now=now)
            changes = [ch for c in commits for ch in c.changes if not ch.is_move and ch.file in valid]

            adds = sum(ch.adds for ch in changes)
            deletes = sum(ch.deletes for ch in changes)
            series["files-changed"].values[index] = float(len({id(ch.file) for ch in changes}))
            series["commits"].values[index] = float(len(commits))
            series["lines-changed"].values[index] = float(adds + deletes)
            series["lines-added"].values[index] = float(adds)
            series["lines-deleted"].values[index] = float(deletes)


ClusterFactory = Callable[[EntityGraph, ClusterState], ByAuthor]

CLUSTERS: dict[str, ClusterFactory] = {
    ByAuthor.name: ByAuthor,
}
