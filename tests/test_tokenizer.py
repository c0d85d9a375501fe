from __future__ import annotations

from gista.tokenizer import split_tokens


def test_quoted_span_is_one_token() -> None:
    assert split_tokens('a "b c" d') == ["a", "b c", "d"]


def test_quoted_span_keeps_inner_whitespace() -> None:
    assert split_tokens(':title "  Team  stats "') == [":title", "  Team  stats "]


def test_blank_line_has_no_tokens() -> None:
    assert split_tokens("") == []
    assert split_tokens("   \t ") == []


def test_unterminated_quote_runs_to_end_of_line() -> None:
    assert split_tokens(':title "open ended title') == [":title", "open ended title"]


def test_adjacent_quotes_and_words() -> None:
    assert split_tokens('x"y z"w') == ["x", "y z", "w"]
    assert split_tokens(":plot  bars   author") == [":plot", "bars", "author"]
