"""Data I/O manager — persist comparison results as NumPy arrays.

Saves and loads the raw outputs of a comparison run so that plots can be
regenerated, or runs diffed, without re-running the kernels.

File layout under output_dir/:
    rays.npz               — origins (N, 3), directions (N, 3), inside (N,)
    <algorithm>.npz        — hits (N,), distances (N,), normals (N, 3)
    metadata.json          — run metadata and per-algorithm statistics
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path

import numpy as np

from comparison.runner import ComparisonResults

logger = logging.getLogger(__name__)


def save_results(
    output_dir: Path | str,
    results: ComparisonResults,
) -> list[Path]:
    """Save all comparison results to disk as NumPy arrays + JSON.

    Parameters
    ----------
    output_dir : Path or str
        Output directory (created if needed).
    results : ComparisonResults
        Results of :meth:`ComparisonRunner.run`.

    Returns
    -------
    list[Path]
        Paths to all saved files.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    saved: list[Path] = []

    rays_path = output_dir / "rays.npz"
    np.savez_compressed(
        rays_path,
        origins=results.rays.origins,
        directions=results.rays.directions,
        inside=results.rays.inside,
    )
    saved.append(rays_path)

    for name in results.hits:
        path = output_dir / f"{name}.npz"
        np.savez_compressed(
            path,
            hits=results.hits[name],
            distances=results.distances[name],
            normals=results.normals[name],
        )
        saved.append(path)
        logger.debug("Saved %s: %d rays", path.name, results.hits[name].shape[0])

    meta_path = output_dir / "metadata.json"
    meta = dict(results.metadata)
    meta["algorithms"] = list(results.hits)
    meta["stats"] = {name: asdict(s) for name, s in results.stats.items()}
    with open(meta_path, "w", encoding="utf-8") as f:
        json.dump(_sanitize_for_json(meta), f, indent=2, ensure_ascii=False)
    saved.append(meta_path)

    logger.info("Saved %d files to %s", len(saved), output_dir)

    return saved


def load_results(
    output_dir: Path | str,
) -> dict[str, np.ndarray | dict]:
    """Load previously saved comparison results.

    Parameters
    ----------
    output_dir : Path or str
        Directory containing saved results.

    Returns
    -------
    dict
        Keys: 'rays' (dict of arrays), 'algorithms' (dict name -> dict of
        arrays) and 'metadata'.

    Raises
    ------
    FileNotFoundError
        If the directory or its metadata file does not exist.
    """
    output_dir = Path(output_dir)

    if not output_dir.exists():
        raise FileNotFoundError(f"Output directory not found: {output_dir}")

    meta_path = output_dir / "metadata.json"
    if not meta_path.exists():
        raise FileNotFoundError(f"Metadata file not found: {meta_path}")
    with open(meta_path, "r", encoding="utf-8") as f:
        metadata = json.load(f)

    data: dict = {"metadata": metadata, "algorithms": {}}

    rays_path = output_dir / "rays.npz"
    if rays_path.exists():
        with np.load(rays_path) as npz:
            data["rays"] = {k: npz[k] for k in npz.files}
    else:
        logger.warning("Missing file: %s", rays_path)
        data["rays"] = {}

    for name in metadata.get("algorithms", []):
        path = output_dir / f"{name}.npz"
        if not path.exists():
            logger.warning("Missing file: %s", path)
            continue
        with np.load(path) as npz:
            data["algorithms"][name] = {k: npz[k] for k in npz.files}
        logger.debug("Loaded %s", path.name)

    logger.info(
        "Loaded results from %s (%d algorithms)", output_dir, len(data["algorithms"])
    )

    return data


def _sanitize_for_json(obj: object) -> object:
    """Recursively convert NumPy types and other non-JSON types to Python natives."""
    if isinstance(obj, dict):
        return {k: _sanitize_for_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize_for_json(v) for v in obj]
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, np.bool_):
        return bool(obj)
    return obj
