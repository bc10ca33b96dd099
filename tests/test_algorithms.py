"""Tests for the five ray-box intersection algorithms.

Validates the shared contract (reference scenarios, inside-box and
parallel-ray conventions, oriented vs. axis-aligned paths) and the
cross-algorithm agreement on random rays.
"""

from __future__ import annotations

import numpy as np
import pytest

from comparison.ray_generator import generate_rays
from raybox import aila_wald, kay_kajiya, scratch, williams, woo
from raybox.batch import hit_rays, intersect_rays
from raybox.geometry import Box, Ray, rotation_from_axis_angle
from raybox.intersect import ALGORITHMS, get_intersector, hit, intersect

ALL = sorted(ALGORITHMS)
SLAB_FAMILY = ["aila_wald", "kay_kajiya", "scratch", "williams"]
ZERO_DIRECTION_SAFE = [n for n in ALL if ALGORITHMS[n].handles_zero_direction]


# ===================================================================
# REGISTRY
# ===================================================================


class TestRegistry:
    """Test suite for algorithm lookup."""

    def test_five_algorithms(self) -> None:
        assert ALL == ["aila_wald", "kay_kajiya", "scratch", "williams", "woo"]

    def test_modules_registered(self) -> None:
        for module in (aila_wald, woo, kay_kajiya, williams, scratch):
            name = module.__name__.rsplit(".", 1)[1]
            assert get_intersector(name).intersect_box is module.intersect_box
            assert get_intersector(name).hit_box is module.hit_box

    def test_unknown_algorithm(self, unit_box: Box) -> None:
        with pytest.raises(KeyError, match="Unknown algorithm"):
            intersect(unit_box, Ray.create((0, 0, -5), (0, 0, 1)), algorithm="nope")


# ===================================================================
# REFERENCE SCENARIOS
# ===================================================================


class TestScenarios:
    """Unit box at the origin, identity rotation."""

    @pytest.mark.parametrize("algorithm", ALL)
    @pytest.mark.parametrize("oriented", [True, False])
    def test_head_on_hit(self, unit_box: Box, algorithm: str, oriented: bool) -> None:
        """origin (-5, 0, 0), direction +x → distance 4, normal -x."""
        ray = Ray.create((-5.0, 0.0, 0.0), (1.0, 0.0, 0.0))
        result = intersect(unit_box, ray, algorithm, oriented=oriented)

        assert result.hit
        assert result.distance == pytest.approx(4.0)
        np.testing.assert_allclose(result.normal, (-1.0, 0.0, 0.0), atol=1e-12)

    @pytest.mark.parametrize("algorithm", SLAB_FAMILY)
    def test_inside_slab_family_exit(self, unit_box: Box, algorithm: str) -> None:
        """Origin inside → first exit plane with outward normal."""
        ray = Ray.create((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))
        result = intersect(unit_box, ray, algorithm)

        assert result.hit
        assert result.distance == pytest.approx(1.0)
        np.testing.assert_allclose(result.normal, (0.0, 0.0, 1.0), atol=1e-12)

    def test_inside_woo_short_circuit(self, unit_box: Box) -> None:
        """Woo reports distance 0 and -direction for an inside origin."""
        ray = Ray.create((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))
        result = intersect(unit_box, ray, "woo")

        assert result.hit
        assert result.distance == 0.0
        np.testing.assert_allclose(result.normal, (0.0, 0.0, -1.0), atol=1e-12)

    @pytest.mark.parametrize("algorithm", ALL)
    def test_passes_above(self, unit_box: Box, algorithm: str) -> None:
        """origin (-5, 2, 0), direction +x misses every algorithm."""
        ray = Ray.create((-5.0, 2.0, 0.0), (1.0, 0.0, 0.0))

        assert not intersect(unit_box, ray, algorithm).hit
        assert not hit(unit_box, ray, algorithm)

    @pytest.mark.parametrize("algorithm", ALL)
    def test_behind_origin(self, unit_box: Box, algorithm: str) -> None:
        """Box entirely behind the ray origin."""
        ray = Ray.create((5.0, 0.1, 0.2), (1.0, 0.01, 0.02))

        assert not intersect(unit_box, ray, algorithm).hit
        assert not hit(unit_box, ray, algorithm)

    @pytest.mark.parametrize("algorithm", ALL)
    def test_miss_outputs_are_nan(self, unit_box: Box, algorithm: str) -> None:
        ray = Ray.create((-5.0, 2.0, 0.0), (1.0, 0.0, 0.0))
        result = intersect(unit_box, ray, algorithm)

        assert np.isnan(result.distance)
        assert np.all(np.isnan(result.normal))

    @pytest.mark.parametrize("algorithm", ALL)
    def test_rotated_box(self, algorithm: str) -> None:
        """A 2x1x1 box rotated 90° about z spans 1 along world x and 2 along y."""
        rotation = rotation_from_axis_angle((0.0, 0.0, 1.0), np.pi / 2.0)
        box = Box.create((0.0, 0.0, 0.0), (2.0, 1.0, 1.0), rotation)

        along_x = intersect(box, Ray.create((-5.0, 0.0, 0.0), (1.0, 0.0, 0.0)), algorithm)
        along_y = intersect(box, Ray.create((0.0, -5.0, 0.0), (0.0, 1.0, 0.0)), algorithm)

        assert along_x.hit and along_y.hit
        assert along_x.distance == pytest.approx(4.0)
        assert along_y.distance == pytest.approx(3.0)
        np.testing.assert_allclose(along_x.normal, (-1.0, 0.0, 0.0), atol=1e-12)
        np.testing.assert_allclose(along_y.normal, (0.0, -1.0, 0.0), atol=1e-12)

    @pytest.mark.parametrize("algorithm", ALL)
    def test_kernels_accept_plain_tuples(self, algorithm: str) -> None:
        """The kernels can be called directly with tuples."""
        intersector = get_intersector(algorithm)
        identity = ((1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0))
        hit_flag, distance, normal = intersector.intersect_box(
            (10.0, 0.0, 0.0), (1.0, 1.0, 1.0), (1.0, 1.0, 1.0), identity,
            (10.0, 0.0, -3.0), (0.0, 0.0, 0.5), False, (1e30, 1e30, 2.0),
        )
        assert hit_flag
        assert distance == pytest.approx(4.0)  # plane z=-1 reached at t=2/0.5
        assert tuple(normal) == (0.0, 0.0, -1.0)


# ===================================================================
# PARALLEL RAYS
# ===================================================================


class TestParallelRays:
    """Rays with an exactly-zero direction component."""

    @pytest.mark.parametrize("algorithm", ZERO_DIRECTION_SAFE)
    @pytest.mark.parametrize(
        "origin",
        [(-5.0, 1.5, 0.0), (-5.0, 0.0, -1.01), (0.0, 3.0, 0.0)],
    )
    def test_parallel_outside_slab_misses(
        self, unit_box: Box, algorithm: str, origin: tuple
    ) -> None:
        direction = (1.0, 0.0, 0.0) if origin[0] != 0.0 else (0.0, 0.0, 1.0)
        ray = Ray.create(origin, direction)

        assert not intersect(unit_box, ray, algorithm, oriented=False).hit
        assert not intersect(unit_box, ray, algorithm, oriented=True).hit
        assert not hit(unit_box, ray, algorithm)

    @pytest.mark.parametrize("algorithm", ZERO_DIRECTION_SAFE)
    def test_parallel_inside_slab_hits(self, unit_box: Box, algorithm: str) -> None:
        ray = Ray.create((-5.0, 0.5, -0.5), (2.0, 0.0, 0.0))
        result = intersect(unit_box, ray, algorithm)

        assert result.hit
        assert result.distance == pytest.approx(2.0)
        np.testing.assert_allclose(result.normal, (-1.0, 0.0, 0.0), atol=1e-12)

    def test_aila_wald_with_ieee_infinity(self, unit_box: Box) -> None:
        """A caller-supplied true infinity still rejects a parallel miss."""
        ray = Ray.create((-5.0, 2.0, 0.5), (1.0, 0.0, 0.0))
        inv = (1.0, np.inf, np.inf)

        assert not intersect(unit_box, ray, "aila_wald", oriented=False, inv_dir=inv).hit
        assert not hit(unit_box, ray, "aila_wald", inv_dir=inv)


# ===================================================================
# ORIGINS ON THE SURFACE
# ===================================================================


def _assert_outward(origin, direction, result) -> None:
    """The normal is the signed axis of the face holding the hit point."""
    point = np.asarray(origin) + result.distance * np.asarray(direction)
    axis = int(np.argmax(np.abs(point)))
    assert abs(point[axis]) == pytest.approx(1.0)
    expected = np.zeros(3)
    expected[axis] = np.sign(point[axis])
    np.testing.assert_allclose(result.normal, expected, atol=1e-12)


class TestSurfaceOrigins:
    """Rays starting exactly on a face of the unit box."""

    LEAVING = ((0.0, 1.0, 0.0), (1.0, -0.5, 0.1))
    ENTERING = ((-1.0, 0.2, 0.3), (1.0, 0.1, -0.2))

    @pytest.mark.parametrize("algorithm", SLAB_FAMILY)
    @pytest.mark.parametrize("oriented", [True, False])
    @pytest.mark.parametrize("case", ["leaving", "entering"])
    def test_slab_family_normal_is_outward(
        self, unit_box: Box, algorithm: str, oriented: bool, case: str
    ) -> None:
        origin, direction = self.LEAVING if case == "leaving" else self.ENTERING
        result = intersect(unit_box, Ray.create(origin, direction), algorithm, oriented=oriented)

        assert result.hit
        assert result.distance >= 0.0
        _assert_outward(origin, direction, result)

    def test_aila_wald_skips_zero_entry(self, unit_box: Box) -> None:
        """t0 == 0 is not a forward hit, so the exit plane is reported."""
        origin, direction = self.ENTERING
        result = intersect(unit_box, Ray.create(origin, direction), "aila_wald")

        assert result.distance == pytest.approx(2.0)
        np.testing.assert_allclose(result.normal, (1.0, 0.0, 0.0), atol=1e-12)

    @pytest.mark.parametrize("algorithm", ["kay_kajiya", "williams", "scratch"])
    def test_zero_entry_is_taken(self, unit_box: Box, algorithm: str) -> None:
        origin, direction = self.ENTERING
        result = intersect(unit_box, Ray.create(origin, direction), algorithm)

        assert result.distance == 0.0
        np.testing.assert_allclose(result.normal, (-1.0, 0.0, 0.0), atol=1e-12)

    @pytest.mark.parametrize("case", ["leaving", "entering"])
    def test_woo_treats_surface_as_inside(self, unit_box: Box, case: str) -> None:
        origin, direction = self.LEAVING if case == "leaving" else self.ENTERING
        result = intersect(unit_box, Ray.create(origin, direction), "woo")

        assert result.hit
        assert result.distance == 0.0

    @pytest.mark.parametrize("algorithm", SLAB_FAMILY)
    def test_batch_driver_agrees(self, unit_box: Box, algorithm: str) -> None:
        origins = np.array([self.LEAVING[0], self.ENTERING[0]])
        directions = np.array([self.LEAVING[1], self.ENTERING[1]])
        hits, dist, normals = intersect_rays(unit_box, origins, directions, algorithm)

        for i in range(2):
            single = intersect(unit_box, Ray.create(origins[i], directions[i]), algorithm)
            assert hits[i] == single.hit
            assert dist[i] == pytest.approx(single.distance)
            np.testing.assert_allclose(normals[i], single.normal, atol=1e-12)


# ===================================================================
# PROPERTIES ON RANDOM RAYS
# ===================================================================


@pytest.fixture
def random_rays(rotated_box: Box):
    return generate_rays(rotated_box, 4000, seed=7, target_jitter=1.5)


class TestCrossAlgorithmAgreement:
    """All five algorithms must tell the same story on well-posed rays."""

    def test_hits_and_distances_agree(self, rotated_box: Box, random_rays) -> None:
        ref_hits, ref_dist, _ = intersect_rays(
            rotated_box, random_rays.origins, random_rays.directions, "aila_wald"
        )
        assert 0.1 < ref_hits.mean() < 0.9, "Ray set should mix hits and misses"

        for name in ALL:
            hits, dist, _ = intersect_rays(
                rotated_box, random_rays.origins, random_rays.directions, name
            )
            assert (hits == ref_hits).mean() >= 0.999, name
            both = hits & ref_hits
            np.testing.assert_allclose(dist[both], ref_dist[both], rtol=1e-4, err_msg=name)

    def test_williams_and_scratch_identical(self, rotated_box: Box, random_rays) -> None:
        a = intersect_rays(rotated_box, random_rays.origins, random_rays.directions, "williams")
        b = intersect_rays(rotated_box, random_rays.origins, random_rays.directions, "scratch")
        for x, y in zip(a, b):
            np.testing.assert_array_equal(x, y)

    @pytest.mark.parametrize("algorithm", ALL)
    def test_hit_point_on_surface(self, rotated_box: Box, random_rays, algorithm: str) -> None:
        hits, dist, normals = intersect_rays(
            rotated_box, random_rays.origins, random_rays.directions, algorithm
        )
        points = random_rays.origins[hits] + dist[hits][:, None] * random_rays.directions[hits]

        rotation = np.asarray(rotated_box.rotation)
        local = (points - np.asarray(rotated_box.center)) @ rotation.T
        scaled = local * np.asarray(rotated_box.inv_radius)
        np.testing.assert_allclose(np.abs(scaled).max(axis=1), 1.0, atol=1e-9)

        # Normal is a signed box axis pointing out of the face that was hit
        local_normals = normals[hits] @ rotation.T
        axis = np.argmax(np.abs(scaled), axis=1)
        expected = np.zeros_like(local_normals)
        expected[np.arange(axis.size), axis] = np.sign(scaled[np.arange(axis.size), axis])
        np.testing.assert_allclose(local_normals, expected, atol=1e-9)

    @pytest.mark.parametrize("algorithm", ALL)
    def test_identity_oriented_matches_axis_aligned(self, algorithm: str) -> None:
        box = Box.create((0.3, -0.2, 0.1), (1.0, 0.5, 2.0))
        rays = generate_rays(box, 2000, seed=11, inside_fraction=0.2)

        oriented = intersect_rays(box, rays.origins, rays.directions, algorithm, oriented=True)
        aligned = intersect_rays(box, rays.origins, rays.directions, algorithm, oriented=False)
        for x, y in zip(oriented, aligned):
            np.testing.assert_array_equal(x, y)

    @pytest.mark.parametrize("algorithm", ALL)
    def test_hit_only_matches_full_test(self, algorithm: str) -> None:
        box = Box.create((0.3, -0.2, 0.1), (1.0, 0.5, 2.0))
        rays = generate_rays(box, 2000, seed=5)

        full_hits, _, _ = intersect_rays(box, rays.origins, rays.directions, algorithm)
        fast_hits = hit_rays(box, rays.origins, rays.directions, algorithm)
        np.testing.assert_array_equal(full_hits, fast_hits)


class TestInsideRays:
    """Per-algorithm inside-box conventions on random interior origins."""

    @pytest.mark.parametrize("algorithm", SLAB_FAMILY)
    def test_slab_family_always_exits(self, rotated_box: Box, algorithm: str) -> None:
        rays = generate_rays(rotated_box, 500, seed=3, inside_fraction=1.0)
        hits, dist, _ = intersect_rays(rotated_box, rays.origins, rays.directions, algorithm)

        assert hits.all()
        assert np.all(dist > 0.0)

    def test_woo_reports_zero_and_reversed_direction(self, rotated_box: Box) -> None:
        rays = generate_rays(rotated_box, 500, seed=3, inside_fraction=1.0)
        hits, dist, normals = intersect_rays(rotated_box, rays.origins, rays.directions, "woo")

        assert hits.all()
        assert np.all(dist == 0.0)
        np.testing.assert_allclose(normals, -rays.directions, atol=1e-12)


class TestBatchValidation:
    """Input checking and per-ray results of the parallel drivers."""

    def test_bad_shape(self, unit_box: Box) -> None:
        with pytest.raises(ValueError, match=r"\(N, 3\)"):
            intersect_rays(unit_box, np.zeros((4, 2)), np.zeros((4, 2)))

    def test_length_mismatch(self, unit_box: Box) -> None:
        with pytest.raises(ValueError, match="differ in length"):
            hit_rays(unit_box, np.zeros((4, 3)), np.ones((5, 3)))

    @pytest.mark.parametrize("algorithm", ALL)
    @pytest.mark.parametrize("rotated", [False, True])
    def test_matches_single_ray_api(
        self, unit_box: Box, rotated_box: Box, algorithm: str, rotated: bool
    ) -> None:
        """The parallel driver runs for aligned and rotated boxes alike."""
        box = rotated_box if rotated else unit_box
        origins = np.array([[-5.0, 0.1, 0.2], [0.3, 6.0, -0.4], [-5.0, 4.0, 0.0]])
        directions = np.array([[1.0, 1e-9, 1e-9], [-0.05, -1.0, 0.1], [1.0, 0.01, 0.02]])

        hits, dist, normals = intersect_rays(box, origins, directions, algorithm)

        for i in range(len(origins)):
            single = intersect(box, Ray.create(origins[i], directions[i]), algorithm)
            assert hits[i] == single.hit
            if single.hit:
                assert dist[i] == pytest.approx(single.distance)
                np.testing.assert_allclose(normals[i], single.normal, atol=1e-12)
            else:
                assert np.isnan(dist[i])
