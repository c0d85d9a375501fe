from __future__ import annotations

import dataclasses
import datetime as dt
import threading
from typing import Callable, Generic, Iterator, TypeVar

T = TypeVar("T")

MOVE_MARKER = " => "


# Entities compare by identity (eq=False): aggregation and filters rely on the
# registry handing out one object per key.
@dataclasses.dataclass(frozen=True, eq=False)
class Author:
    name: str

    @property
    def short_name(self) -> str:
        return self.name.split("@", 1)[0]


@dataclasses.dataclass(frozen=True, eq=False)
class File:
    path: str

    @property
    def is_move(self) -> bool:
        return MOVE_MARKER in self.path


@dataclasses.dataclass(frozen=True, eq=False)
class Change:
    file: File
    adds: int = 0
    deletes: int = 0

    @property
    def is_move(self) -> bool:
        return self.file.is_move

    @property
    def changed(self) -> int:
        return self.adds + self.deletes


@dataclasses.dataclass(eq=False)
class Commit:
    hash: str
    author: Author | None = None
    timestamp: dt.datetime | None = None
    summary: str = ""
    changes: list[Change] = dataclasses.field(default_factory=list)

    def add_change(self, file: File, adds: int = 0, deletes: int = 0) -> Change:
        change = Change(file=file, adds=adds, deletes=deletes)
        self.changes.append(change)
        return change


class Registry(Generic[T]):
    """Get-or-create map from identity string to a single live object."""

    def __init__(self, factory: Callable[[str], T]) -> None:
        self._factory = factory
        self._items: dict[str, T] = {}
        self._lock = threading.Lock()

    def get_or_create(self, key: str) -> T:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                item = self._factory(key)
                self._items[key] = item
            return item

    def get(self, key: str) -> T | None:
        return self._items.get(key)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items.values()))


class EntityGraph:
    def __init__(self) -> None:
        self._files: Registry[File] = Registry(File)
        self._authors: Registry[Author] = Registry(Author)
        self._commits: Registry[Commit] = Registry(Commit)

    def get_file(self, path: str) -> File:
        return self._files.get_or_create(path)

    def get_author(self, name: str) -> Author:
        return self._authors.get_or_create(name)

    def get_commit(self, hash: str) -> Commit:
        return self._commits.get_or_create(hash)

    def find_author(self, name: str) -> Author | None:
        return self._authors.get(name)

    def find_commit(self, hash: str) -> Commit | None:
        return self._commits.get(hash)

    @property
    def files(self) -> list[File]:
        return list(self._files)

    @property
    def authors(self) -> list[Author]:
        return sorted(self._authors, key=lambda a: a.name)

    @property
    def commits(self) -> list[Commit]:
        return list(self._commits)
