from __future__ import annotations

import datetime as dt
from pathlib import Path
from typing import Iterable, Mapping

from dateutil import parser as date_parser

from .errors import IngestionError
from .identity import resolve_author
from .models import Commit, EntityGraph

SUMMARY = "Summary"
LOC = "LoC"

SUMMARY_MARKER = "\0"


def classify(line: str) -> str:
    return SUMMARY if line.startswith(SUMMARY_MARKER) else LOC


def parse_timestamp(value: str) -> dt.datetime:
    return date_parser.parse(value)


def parse_count(value: str) -> int:
    # Binary diffs show "-" instead of a number.
    try:
        return int(value)
    except ValueError:
        return 0


def _apply_summary(graph: EntityGraph, line: str, aliases: Mapping[str, str] | None) -> Commit:
    fields = line.split(SUMMARY_MARKER)
    if len(fields) < 5:
        raise ValueError(f"expected 5 NUL-separated fields, found {len(fields)}")
    email = fields[1].strip()
    timestamp = parse_timestamp(fields[2].strip())
    commit_hash = fields[3].strip()
    summary = fields[4].strip()

    commit = graph.get_commit(commit_hash)
    commit.author = graph.get_author(resolve_author(email, aliases))
    commit.summary = summary
    commit.timestamp = timestamp
    return commit


def _apply_loc(graph: EntityGraph, line: str, commit: Commit) -> None:
    fields = line.split("\t", 2)
    if len(fields) < 3:
        raise ValueError(f"expected 3 tab-separated fields, found {len(fields)}")
    adds = parse_count(fields[0])
    deletes = parse_count(fields[1])
    commit.add_change(graph.get_file(fields[2]), adds, deletes)


def parse_log_lines(lines: Iterable[str], aliases: Mapping[str, str] | None = None) -> EntityGraph:
    """
    Build an EntityGraph from raw log lines.

    Each non-blank line is classified on its own: a leading NUL marks a Summary
    record, anything else is a LoC record for the last Summary seen. The first
    malformed line aborts the whole parse with IngestionError.
    """
    graph = EntityGraph()
    current: Commit | None = None

    for line_no, raw_line in enumerate(lines, start=1):
        line = raw_line.rstrip("\r\n")
        if not line.strip():
            continue

        kind = classify(line)
        try:
            if kind == SUMMARY:
                current = _apply_summary(graph, line, aliases)
            else:
                if current is None:
                    raise IngestionError(line_no, kind, "no preceding summary record")
                _apply_loc(graph, line, current)
        except IngestionError:
            raise
        except (ValueError, OverflowError) as e:
            raise IngestionError(line_no, kind, str(e)) from e

    return graph


def parse_log_file(path: Path, aliases: Mapping[str, str] | None = None) -> EntityGraph:
    with path.open("r", encoding="utf-8", errors="replace") as f:
        return parse_log_lines(f, aliases)
