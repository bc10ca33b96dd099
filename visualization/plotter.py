"""Visualization module for algorithm comparison results.

Generates figures using matplotlib:
- Depth and normal maps of the box, one row per algorithm
- Per-algorithm timing bar chart
"""

from __future__ import annotations

import logging
from pathlib import Path

import matplotlib

matplotlib.use("Agg")  # Non-interactive backend for headless rendering

import matplotlib.pyplot as plt
import numpy as np

from comparison.runner import ComparisonResults
from raybox.batch import intersect_rays
from raybox.geometry import Box

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Color Configuration
# ---------------------------------------------------------------------------

_DEPTH_CMAP = "viridis"
_BACKGROUND = "#1a1a2e"
_DPI = 150


# ---------------------------------------------------------------------------
# Ray grid
# ---------------------------------------------------------------------------


def orthographic_rays(
    box: Box,
    view_direction,
    resolution: int,
) -> tuple[np.ndarray, np.ndarray]:
    """Build an orthographic ray grid looking at the box centre.

    Parameters
    ----------
    box : Box
        Box to frame.
    view_direction : array-like
        Direction of the view rays. Shape: (3,).
    resolution : int
        Grid width and height.

    Returns
    -------
    origins : np.ndarray
        Shape: (resolution * resolution, 3).
    directions : np.ndarray
        Shape: (resolution * resolution, 3).
    """
    view = np.asarray(view_direction, dtype=np.float64)
    view = view / np.linalg.norm(view)

    helper = np.array([0.0, 0.0, 1.0]) if abs(view[2]) < 0.9 else np.array([1.0, 0.0, 0.0])
    right = np.cross(view, helper)
    right /= np.linalg.norm(right)
    up = np.cross(right, view)

    center = np.asarray(box.center, dtype=np.float64)
    extent = 1.2 * float(np.linalg.norm(box.radius))
    coords = np.linspace(-extent, extent, resolution)
    uu, vv = np.meshgrid(coords, coords[::-1], indexing="xy")

    origins = (
        center
        - 4.0 * extent * view
        + uu.reshape(-1, 1) * right
        + vv.reshape(-1, 1) * up
    )
    directions = np.broadcast_to(view, origins.shape).copy()
    return np.ascontiguousarray(origins), directions


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def plot_depth_maps(
    box: Box,
    algorithms: list[str],
    resolution: int = 256,
    view_direction=(-1.0, -0.6, -0.4),
    output_path: Path | str | None = None,
    dpi: int = _DPI,
) -> plt.Figure:
    """Plot hit distance and normal maps of one box for each algorithm.

    Parameters
    ----------
    box : Box
        Box to render.
    algorithms : list[str]
        Algorithm registry keys, one figure row each.
    resolution : int
        Image width and height in pixels.
    view_direction : array-like
        Orthographic view direction.
    output_path : Path or str, optional
        If provided, save figure to this path.
    dpi : int
        Figure resolution.

    Returns
    -------
    matplotlib.figure.Figure
        The generated figure.
    """
    origins, directions = orthographic_rays(box, view_direction, resolution)

    rows = len(algorithms)
    fig, axes = plt.subplots(
        rows, 2, figsize=(8, 4 * rows), facecolor=_BACKGROUND, squeeze=False
    )

    for row, name in enumerate(algorithms):
        hits, distances, normals = intersect_rays(box, origins, directions, name)

        depth = np.where(hits, distances, np.nan).reshape(resolution, resolution)
        rgb = np.where(hits[:, None], 0.5 * normals + 0.5, 0.0)
        rgb = np.clip(rgb, 0.0, 1.0).reshape(resolution, resolution, 3)

        ax_d, ax_n = axes[row]
        im = ax_d.imshow(depth, cmap=_DEPTH_CMAP)
        cbar = fig.colorbar(im, ax=ax_d, shrink=0.8, label="Hit distance")
        cbar.ax.yaxis.label.set_color("white")
        cbar.ax.tick_params(colors="white")
        ax_n.imshow(rgb)

        ax_d.set_title(f"{name} — distance", color="white")
        ax_n.set_title(f"{name} — normal", color="white")
        for ax in (ax_d, ax_n):
            ax.set_facecolor(_BACKGROUND)
            ax.set_xticks([])
            ax.set_yticks([])

        logger.debug("%s: %d / %d pixels hit", name, int(hits.sum()), hits.size)

    fig.tight_layout()

    if output_path is not None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=dpi, facecolor=fig.get_facecolor())
        logger.info("Depth/normal maps saved: %s", output_path)

    plt.close(fig)
    return fig


def plot_timings(
    results: ComparisonResults,
    output_path: Path | str | None = None,
    dpi: int = _DPI,
) -> plt.Figure:
    """Bar chart of nanoseconds per ray for each algorithm.

    Parameters
    ----------
    results : ComparisonResults
        Output of a comparison run.
    output_path : Path or str, optional
        If provided, save figure to this path.
    dpi : int
        Figure resolution.

    Returns
    -------
    matplotlib.figure.Figure
        The generated figure.
    """
    names = list(results.stats)
    ns = [results.stats[n].ns_per_ray for n in names]

    fig, ax = plt.subplots(1, 1, figsize=(8, 4.5), facecolor=_BACKGROUND)
    ax.set_facecolor(_BACKGROUND)
    bars = ax.bar(names, ns, color="#4ecdc4", edgecolor="white", linewidth=0.5)
    for bar, value in zip(bars, ns):
        ax.annotate(
            f"{value:.1f}",
            (bar.get_x() + bar.get_width() / 2.0, bar.get_height()),
            ha="center", va="bottom", color="white", fontsize=9,
        )

    ax.set_ylabel("ns / ray", color="white")
    ax.set_title(
        f"Ray-box intersection cost ({results.metadata.get('num_rays', 0)} rays)",
        fontsize=13, fontweight="bold", color="white",
    )
    ax.tick_params(colors="white")
    for spine in ax.spines.values():
        spine.set_edgecolor("#444")

    fig.tight_layout()

    if output_path is not None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=dpi, facecolor=fig.get_facecolor())
        logger.info("Timing chart saved: %s", output_path)

    plt.close(fig)
    return fig
