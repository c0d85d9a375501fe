from __future__ import annotations

from pathlib import Path

import pytest

from gista.clusters import Series
from gista.render import GridFigure, MatplotlibBackend, bar_offsets


def test_bar_offsets() -> None:
    width, offsets = bar_offsets(4)
    assert width == pytest.approx(0.2)
    assert offsets == pytest.approx([0.0, 0.2, 0.4, 0.6])
    assert bar_offsets(0)[1] == []


def test_grid_has_cell() -> None:
    grid = GridFigure(figure=None, rows=2, cols=3)
    assert grid.has_cell(1, 2) is True
    assert grid.has_cell(2, 0) is False
    assert grid.has_cell(0, -1) is False


def test_whole_figure_is_saved_as_png(tmp_path: Path) -> None:
    backend = MatplotlibBackend(dpi=50)
    fig = backend.new_figure(400, 300)
    backend.bars(
        fig,
        None,
        ["alice", "bob"],
        [Series("Commits", [3.0, 1.0]), Series("Lines added", [120.0, 0.0])],
        "Team activity",
    )
    out = tmp_path / "nested" / "plot.png"
    backend.save(fig, out)
    backend.close(fig)

    assert out.exists()
    assert out.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"
    ax = fig.axes[0]
    assert ax.get_yscale() == "log"
    assert ax.get_title() == "Team activity"
    assert [t.get_text() for t in ax.get_xticklabels()] == ["alice", "bob"]


def test_grid_cells_are_addressed_row_major(tmp_path: Path) -> None:
    backend = MatplotlibBackend(dpi=50)
    fig = backend.new_grid(600, 400, 2, 2)
    backend.bars(fig, (1, 0), ["a"], [Series("Commits", [2.0])], None)
    backend.save(fig, tmp_path / "grid.png")
    backend.close(fig)

    titled = [i for i, ax in enumerate(fig.axes) if ax.get_legend() is not None]
    assert titled == [2]
    assert (tmp_path / "grid.png").exists()
