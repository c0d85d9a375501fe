from __future__ import annotations

QUOTE = '"'


def split_tokens(line: str) -> list[str]:
    """
    Split a script line on whitespace, keeping double-quoted spans as one token.

    The line is cut at every quote; even segments sit outside quotes and are
    split on whitespace, odd segments are kept verbatim. An unterminated quote
    runs to the end of the line.
    """
    tokens: list[str] = []
    for index, segment in enumerate(line.split(QUOTE)):
        if index % 2 == 0:
            tokens.extend(segment.split())
        else:
            tokens.append(segment)
    return tokens
