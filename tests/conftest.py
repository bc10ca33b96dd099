"""Pytest configuration and shared fixtures for raybox tests."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import numpy as np
import pytest


# Add project root to path so imports work
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from raybox.geometry import Box, rotation_from_axis_angle  # noqa: E402

DEFAULT_CONFIG = PROJECT_ROOT / "config" / "default_config.yaml"


def pytest_configure(config: pytest.Config) -> None:
    """Configure logging for tests."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s [%(levelname)s] %(message)s",
    )


@pytest.fixture
def unit_box() -> Box:
    """Axis-aligned box centred at the origin with radius 1."""
    return Box.create((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))


@pytest.fixture
def rotated_box() -> Box:
    """Off-centre, non-cubic box rotated about a skew axis."""
    rotation = rotation_from_axis_angle((1.0, 2.0, 3.0), np.radians(37.0))
    return Box.create((0.5, -0.25, 1.0), (1.0, 0.5, 2.0), rotation)


@pytest.fixture
def default_config_path() -> Path:
    return DEFAULT_CONFIG
