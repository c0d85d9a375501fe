from __future__ import annotations

from typing import Iterable, Mapping


def resolve_author(email: str, aliases: Mapping[str, str] | None) -> str:
    """
    Map a raw author identity to its canonical one.
    Lookup is exact (no case folding); unknown identities pass through.
    """
    if not aliases:
        return email
    return aliases.get(email, email)


def register_aliases(aliases: dict[str, str], target: str, raw_identities: Iterable[str]) -> None:
    # Many-to-one; a later registration of the same raw identity wins.
    for raw in raw_identities:
        aliases[raw] = target
