"""Tests for print-simulation playback helpers."""

from __future__ import annotations

import math

import numpy as np
import pytest

from vessel_cam.configs.loader import VesselParams
from vessel_cam.geometry.playback import (
    active_layer_rings,
    clip_plane_height,
    current_layer,
    is_playback_visible,
    nozzle_position,
)
from vessel_cam.geometry.surface import evaluate_surface


@pytest.fixture()
def params() -> VesselParams:
    return VesselParams(height=120, layers=60, segments=200)


class TestClipPlane:
    def test_proportional_height(self, params: VesselParams) -> None:
        assert clip_plane_height(params, 0.5) == pytest.approx(60.0)
        assert clip_plane_height(params, 0.0) == 0.0

    @pytest.mark.parametrize("progress", [0.995, 0.999, 1.0, 1.5])
    def test_complete_shows_everything(
        self, params: VesselParams, progress: float,
    ) -> None:
        assert clip_plane_height(params, progress) == math.inf

    def test_negative_progress_clamped(self, params: VesselParams) -> None:
        assert clip_plane_height(params, -1.0) == 0.0


class TestOverlay:
    @pytest.mark.parametrize(
        "progress, visible",
        [(0.0, False), (0.005, False), (0.01, True), (0.5, True), (0.995, False)],
    )
    def test_visibility_window(self, progress: float, visible: bool) -> None:
        assert is_playback_visible(progress) is visible

    def test_current_layer(self, params: VesselParams) -> None:
        assert current_layer(params, 0.0) == 0
        assert current_layer(params, 0.5) == 30
        assert current_layer(params, 1.0) == 59

    def test_nozzle_on_spiral(self, params: VesselParams) -> None:
        p = nozzle_position(params, 0.25)
        expected = evaluate_surface(params, 0.25 * 60, 0.25)
        assert p == expected
        assert p.y == pytest.approx(30.0)


class TestActiveRings:
    def test_vase_has_no_inner_ring(self, params: VesselParams) -> None:
        outer, inner = active_layer_rings(params.with_changes(wall_thickness=0), 0.4)
        assert inner is None
        assert outer.shape == (129, 3)

    def test_segments_capped(self, params: VesselParams) -> None:
        outer, inner = active_layer_rings(params, 0.4, max_segments=32)
        assert outer.shape == inner.shape == (33, 3)

    def test_low_resolution_not_raised(self, params: VesselParams) -> None:
        outer, _ = active_layer_rings(params.with_changes(segments=12), 0.4)
        assert outer.shape == (13, 3)

    def test_inner_ring_offset_by_wall(self) -> None:
        params = VesselParams(
            height=100, base_radius=30, noise_scale=0, twist=0, wall_thickness=3
        )
        outer, inner = active_layer_rings(params, 0.6)
        np.testing.assert_allclose(np.hypot(outer[:, 0], outer[:, 2]), 30.0)
        np.testing.assert_allclose(np.hypot(inner[:, 0], inner[:, 2]), 27.0)
        np.testing.assert_allclose(inner[:, 1], outer[:, 1])
        np.testing.assert_allclose(outer[:, 1], 60.0)

    def test_ring_is_closed(self, params: VesselParams) -> None:
        outer, _ = active_layer_rings(params, 0.3)
        np.testing.assert_allclose(outer[0], outer[-1], atol=1e-9)
