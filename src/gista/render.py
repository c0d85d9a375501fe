from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Protocol, Sequence, Union

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402

from .clusters import Series  # noqa: E402

DEFAULT_DPI = 100
GROUP_WIDTH = 0.8


@dataclasses.dataclass(frozen=True)
class NoTarget:
    pass


@dataclasses.dataclass(frozen=True)
class WholeFigure:
    figure: object


@dataclasses.dataclass(frozen=True)
class GridFigure:
    figure: object
    rows: int
    cols: int

    def has_cell(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols


DrawingTarget = Union[NoTarget, WholeFigure, GridFigure]


class RenderBackend(Protocol):
    def new_figure(self, width: int, height: int) -> object: ...

    def new_grid(self, width: int, height: int, rows: int, cols: int) -> object: ...

    def bars(
        self,
        figure: object,
        cell: tuple[int, int] | None,
        labels: Sequence[str],
        series: Sequence[Series],
        title: str | None,
    ) -> None: ...

    def save(self, figure: object, path: Path) -> None: ...

    def close(self, figure: object) -> None: ...


def bar_offsets(n_series: int) -> tuple[float, list[float]]:
    """Bar width and per-series x offsets for a grouped bar chart."""
    if n_series <= 0:
        return GROUP_WIDTH, []
    width = GROUP_WIDTH / n_series
    return width, [width * i for i in range(n_series)]


class MatplotlibBackend:
    def __init__(self, dpi: int = DEFAULT_DPI) -> None:
        self.dpi = dpi

    def _new(self, width: int, height: int, rows: int, cols: int):
        fig, _axes = plt.subplots(
            rows,
            cols,
            figsize=(width / self.dpi, height / self.dpi),
            dpi=self.dpi,
            squeeze=False,
        )
        return fig

    def new_figure(self, width: int, height: int):
        return self._new(width, height, 1, 1)

    def new_grid(self, width: int, height: int, rows: int, cols: int):
        return self._new(width, height, rows, cols)

    def _axes(self, figure, cell: tuple[int, int] | None):
        axes = figure.axes
        if cell is None:
            return axes[0]
        row, col = cell
        grid = axes[0].get_subplotspec().get_gridspec()
        return axes[row * grid.ncols + col]

    def bars(self, figure, cell, labels, series, title) -> None:
        ax = self._axes(figure, cell)
        xs = list(range(len(labels)))
        width, offsets = bar_offsets(len(series))
        for s, offset in zip(series, offsets):
            container = ax.bar([x + offset for x in xs], s.values, width=width, align="edge", label=s.label)
            ax.bar_label(container, labels=[f"{v:g}" if v > 0 else "" for v in s.values], fontsize=7)

        ax.set_yscale("log")
        ax.set_xticks([x + GROUP_WIDTH / 2 for x in xs])
        ax.set_xticklabels(labels, rotation=45, ha="right")
        if series:
            ax.legend(loc="upper right")
        ax.set_title(title or "")

    def save(self, figure, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        figure.tight_layout()
        figure.savefig(str(path), dpi=self.dpi, facecolor="white")

    def close(self, figure) -> None:
        plt.close(figure)
