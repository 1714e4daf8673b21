"""Tests for landmark smoothing utilities."""

import math

import pytest
import numpy as np

from neurolens.analysis.smoothing import EMASmoother, LandmarkFilterBank, LandmarkSmoother, LowPassFilter
from neurolens.detection.landmarks import NUM_LANDMARKS, Landmark, Point, PoseLandmark


class TestLowPassFilter:
    def test_first_sample_is_seed(self):
        lp = LowPassFilter()
        assert lp.filter(10.0, alpha=0.1) == 10.0
        assert lp.initialized
        assert lp.last_value == 10.0

    def test_exponential_update(self):
        lp = LowPassFilter()
        lp.filter(0.0, 0.5)
        assert lp.filter(10.0, 0.5) == pytest.approx(5.0)
        assert lp.filter(10.0, 0.5) == pytest.approx(7.5)

    def test_reset_clears_state(self):
        lp = LowPassFilter()
        lp.filter(3.0, 0.5)
        lp.reset()
        assert not lp.initialized
        assert lp.last_value == 0.0
        assert lp.filter(42.0, 0.5) == 42.0


class TestLandmarkSmoother:
    """Test One Euro Filter over landmark positions."""

    def test_first_sample_returns_input(self):
        """First sample should pass through unchanged."""
        f = LandmarkSmoother()
        point = Point(0.4, 0.6, -0.1)
        result = f.filter(point, timestamp_ms=0.0)
        assert result == point

    def test_second_frame_uses_millisecond_time_step(self):
        """alpha = 1 / (1 + tau / dt) with dt taken directly in milliseconds."""
        f = LandmarkSmoother(min_cutoff=1.0, beta=0.0)
        f.filter(Point(0.0, 0.0), 0.0)

        result = f.filter(Point(1.0, 1.0), 33.0)

        tau = 1.0 / (2 * math.pi * 1.0)
        alpha = 1.0 / (1.0 + tau / 33.0)
        assert result.x == pytest.approx(alpha)
        assert result.x == pytest.approx(0.9952, abs=1e-4)

    def test_second_frame_with_seconds_time_step(self):
        f = LandmarkSmoother(min_cutoff=1.0, beta=0.0, timestamp_unit="s")
        f.filter(Point(0.0, 0.0), 0.0)

        result = f.filter(Point(1.0, 1.0), 33.0)

        tau = 1.0 / (2 * math.pi * 1.0)
        assert result.x == pytest.approx(1.0 / (1.0 + tau / 0.033))

    def test_second_frame_is_already_smoothed(self):
        """Position filters are seeded on the first frame.

        This diverges from a filter that seeds its position memory lazily on
        the second frame and therefore passes that frame through raw: here the
        second output is already a blend of the first and second samples.
        """
        f = LandmarkSmoother(min_cutoff=1.0, beta=0.0, timestamp_unit="s")
        f.filter(Point(0.2, 0.2), 0.0)

        result = f.filter(Point(0.8, 0.8), 33.0)

        assert 0.2 < result.x < 0.8

    def test_invalid_timestamp_unit_raises(self):
        with pytest.raises(ValueError):
            LandmarkSmoother(timestamp_unit="us")
        with pytest.raises(ValueError):
            LandmarkFilterBank(timestamp_unit="us")

    def test_converges_to_constant(self):
        f = LandmarkSmoother(min_cutoff=1.0, beta=0.0)
        f.filter(Point(0.0, 0.0), 0.0)

        outputs = [f.filter(Point(0.5, 0.5), i * 33.0) for i in range(1, 101)]

        xs = [p.x for p in outputs]
        assert all(b >= a for a, b in zip(xs, xs[1:]))
        assert 0.0 < xs[0] < 0.5
        assert outputs[-1].x == pytest.approx(0.5, abs=1e-3)
        assert outputs[-1].y == pytest.approx(0.5, abs=1e-3)

    def test_smooths_noisy_signal(self):
        """Filter should reduce noise in a stationary landmark."""
        f = LandmarkSmoother(min_cutoff=1.0, beta=0.0, timestamp_unit="s")

        rng = np.random.default_rng(42)
        noisy = [Point(0.5 + rng.normal() * 0.02, 0.5) for _ in range(30)]
        timestamps = [i * 33.0 for i in range(30)]  # 30fps

        filtered = [f.filter(p, t) for p, t in zip(noisy, timestamps)]

        assert np.var([p.x for p in filtered]) < np.var([p.x for p in noisy])

    def test_preserves_fast_movements(self):
        """Filter should have less lag for fast movements (with beta > 0)."""
        f_with_beta = LandmarkSmoother(min_cutoff=1.0, beta=0.5, timestamp_unit="s")
        f_no_beta = LandmarkSmoother(min_cutoff=1.0, beta=0.0, timestamp_unit="s")

        # Simulate sudden jump
        values = [100.0] * 10 + [200.0] * 10
        timestamps = [i * 33.0 for i in range(20)]

        with_beta = [f_with_beta.filter(Point(v, 0.0), t).x for v, t in zip(values, timestamps)]
        no_beta = [f_no_beta.filter(Point(v, 0.0), t).x for v, t in zip(values, timestamps)]

        # 5 frames after the jump, with_beta should be closer to 200
        assert with_beta[15] > no_beta[15]

    def test_axes_do_not_share_memory(self):
        """Each axis keeps its own filter state (no cross-axis contamination)."""
        f = LandmarkSmoother(min_cutoff=1.0, beta=0.5)
        point = Point(0.2, 0.8, 0.5)

        for i in range(10):
            result = f.filter(point, i * 33.0)

        assert result.x == pytest.approx(0.2)
        assert result.y == pytest.approx(0.8)
        assert result.z == pytest.approx(0.5)

    def test_z_only_filtered_when_present(self):
        f = LandmarkSmoother()
        f.filter(Point(0.1, 0.1), 0.0)
        result = f.filter(Point(0.2, 0.2), 33.0)
        assert result.z is None

    def test_z_appearing_mid_session_is_seeded(self):
        f = LandmarkSmoother()
        f.filter(Point(0.1, 0.1), 0.0)
        result = f.filter(Point(0.1, 0.1, 0.7), 33.0)
        assert result.z == pytest.approx(0.7)

    def test_same_timestamp_passes_through(self):
        """Duplicate timestamp returns input and does not advance filter memory."""
        f = LandmarkSmoother()
        reference = LandmarkSmoother()
        for t, p in [(0.0, Point(0.1, 0.1)), (33.0, Point(0.3, 0.3))]:
            f.filter(p, t)
            reference.filter(p, t)

        duplicate = Point(0.9, 0.9)
        assert f.filter(duplicate, 33.0) == duplicate

        nxt = Point(0.35, 0.35)
        assert f.filter(nxt, 66.0) == reference.filter(nxt, 66.0)

    def test_out_of_order_timestamp_passes_through(self):
        f = LandmarkSmoother()
        f.filter(Point(0.1, 0.1), 100.0)
        late = Point(0.5, 0.5)
        assert f.filter(late, 50.0) == late
        assert f.last_timestamp == 50.0

    def test_reset_clears_state(self):
        f = LandmarkSmoother()
        f.filter(Point(0.1, 0.1), 0.0)
        f.filter(Point(0.2, 0.2), 33.0)

        f.reset()

        assert f.last_timestamp is None
        point = Point(0.9, 0.9)
        assert f.filter(point, 1000.0) == point

    def test_invalid_cutoffs_raise(self):
        with pytest.raises(ValueError):
            LandmarkSmoother(min_cutoff=0)
        with pytest.raises(ValueError):
            LandmarkSmoother(min_cutoff=-1)
        with pytest.raises(ValueError):
            LandmarkSmoother(d_cutoff=0)


class TestEMASmoother:
    def test_first_output_equals_input(self):
        ema = EMASmoother(alpha=0.3)
        point = Point(0.25, 0.75, 0.1)
        assert ema.smooth(point) == point

    def test_recurrence_per_axis(self):
        a = 0.3
        ema = EMASmoother(alpha=a)
        inputs = [Point(0.1, 0.9, 0.0), Point(0.4, 0.6, 1.0), Point(0.2, 0.3, 0.5)]

        prev = ema.smooth(inputs[0])
        for p in inputs[1:]:
            out = ema.smooth(p)
            assert out.x == pytest.approx(a * p.x + (1 - a) * prev.x)
            assert out.y == pytest.approx(a * p.y + (1 - a) * prev.y)
            assert out.z == pytest.approx(a * p.z + (1 - a) * prev.z)
            prev = out

    def test_z_requires_both_points(self):
        ema = EMASmoother()
        ema.smooth(Point(0.1, 0.1))
        assert ema.smooth(Point(0.2, 0.2, 0.5)).z is None

    def test_alpha_is_clamped(self):
        assert EMASmoother(alpha=1.5).alpha == 1.0
        assert EMASmoother(alpha=-0.2).alpha == 0.0

    def test_reset(self):
        ema = EMASmoother(alpha=0.5)
        ema.smooth(Point(0.0, 0.0))
        ema.reset()
        point = Point(1.0, 1.0)
        assert ema.smooth(point) == point


class TestLandmarkFilterBank:
    """Test LandmarkFilterBank over full poses."""

    @pytest.fixture
    def bank(self):
        return LandmarkFilterBank(min_cutoff=1.0, beta=0.0, timestamp_unit="s")

    @pytest.fixture
    def standing_pose(self):
        return [
            Landmark(x=0.3 + i * 0.01, y=0.1 + i * 0.02, z=0.0, visibility=0.9)
            for i in range(NUM_LANDMARKS)
        ]

    def test_first_frame_passes_through(self, bank, standing_pose):
        result = bank.smooth(standing_pose, timestamp_ms=0.0)
        assert result == standing_pose
        assert len(bank) == NUM_LANDMARKS

    def test_filters_created_lazily(self, bank, standing_pose):
        assert len(bank) == 0
        bank.smooth(standing_pose[:5], 0.0)
        assert len(bank) == 5
        assert 4 in bank
        assert 5 not in bank

    def test_visibility_preserved(self, bank, standing_pose):
        bank.smooth(standing_pose, 0.0)
        moved = [Landmark(lm.x + 0.05, lm.y, lm.z, visibility=0.42) for lm in standing_pose]
        result = bank.smooth(moved, 33.0)
        assert all(lm.visibility == 0.42 for lm in result)
        assert result[0].x != moved[0].x

    def test_missing_entries_stay_none(self, bank, standing_pose):
        frame = list(standing_pose)
        frame[3] = None
        result = bank.smooth(frame, 0.0)
        assert result[3] is None
        assert 3 not in bank

    def test_smooths_noisy_sequence(self, bank, standing_pose):
        rng = np.random.default_rng(42)
        frames = [
            [Landmark(lm.x + rng.normal() * 0.01, lm.y, visibility=0.9) for lm in standing_pose]
            for _ in range(30)
        ]
        smoothed = bank.smooth_batch(frames, [i * 33.0 for i in range(30)])

        noisy_x = [f[PoseLandmark.NOSE].x for f in frames]
        smoothed_x = [f[PoseLandmark.NOSE].x for f in smoothed]
        assert np.var(smoothed_x) < np.var(noisy_x)

    def test_reset_clears_all_filters(self, bank, standing_pose):
        bank.smooth(standing_pose, 0.0)
        bank.smooth(standing_pose, 33.0)

        bank.reset()
        assert len(bank) == 0

        new_pose = [Landmark(0.9, 0.9, visibility=0.9) for _ in range(NUM_LANDMARKS)]
        assert bank.smooth(new_pose, 1000.0) == new_pose

    def test_reset_landmark(self, bank, standing_pose):
        bank.smooth(standing_pose, 0.0)
        bank.reset_landmark(PoseLandmark.NOSE)

        moved = [Landmark(0.9, 0.9, visibility=0.9) for _ in range(NUM_LANDMARKS)]
        result = bank.smooth(moved, 33.0)

        # Nose starts over, the rest keep their history
        assert result[PoseLandmark.NOSE].x == 0.9
        assert result[PoseLandmark.LEFT_SHOULDER].x < 0.9

    def test_batch_mismatched_lengths_raises(self, bank, standing_pose):
        with pytest.raises(ValueError):
            bank.smooth_batch([standing_pose, standing_pose], [0.0])

    def test_ema_method(self, standing_pose):
        bank = LandmarkFilterBank(method="ema", ema_alpha=0.5)
        bank.smooth(standing_pose, 0.0)
        moved = [Landmark(lm.x + 0.1, lm.y, visibility=lm.visibility) for lm in standing_pose]
        result = bank.smooth(moved, 33.0)
        assert result[0].x == pytest.approx(standing_pose[0].x + 0.05)

    def test_unknown_method_raises(self):
        with pytest.raises(ValueError):
            LandmarkFilterBank(method="kalman")
