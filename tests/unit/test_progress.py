"""Tests for ProgressEstimator — weighting, monotonicity, and ETA."""

from __future__ import annotations

import pytest

from buildsift.core.progress import ProgressEstimator, estimate_eta


def _feed(estimator: ProgressEstimator, lines: list[str]) -> None:
    for line in lines:
        estimator.consume(line)


class TestEstimateEta:
    def test_half_done_after_ten_seconds(self):
        assert estimate_eta(0.5, 10.0) == pytest.approx(10.0)

    @pytest.mark.parametrize("progress", [0.0, 0.05, 0.1, 1.0])
    def test_withheld_outside_open_interval(self, progress: float):
        assert estimate_eta(progress, 10.0) is None

    def test_never_negative(self):
        assert estimate_eta(0.9, 0.0) == 0.0

    def test_custom_threshold(self):
        assert estimate_eta(0.05, 10.0, min_progress=0.01) is not None


class TestWeighting:
    def test_targets_and_files(self, fake_clock):
        est = ProgressEstimator(total_targets=2, clock=fake_clock)
        _feed(
            est,
            [
                "=== BUILD TARGET Core OF PROJECT App ===",
                "Compiling A.swift (1/2)",
                "Compiling B.swift (2/2)",
                "=== BUILD TARGET App OF PROJECT App ===",
            ],
        )
        snap = est.snapshot
        assert snap.completed_targets == frozenset({"Core"})
        assert snap.current_target == "App"
        # 0.7 * 1/2 + 0.3 * 2/2
        assert snap.progress_percentage == pytest.approx(0.65)

    def test_zero_totals_stay_at_zero(self, fake_clock):
        est = ProgressEstimator(total_targets=0, clock=fake_clock)
        _feed(est, ["=== BUILD TARGET A OF PROJECT P ===", "=== BUILD TARGET B OF PROJECT P ==="])
        assert est.snapshot.progress_percentage == 0.0
        est.consume("Building 40%")
        assert est.snapshot.progress_percentage == pytest.approx(0.4)

    def test_repeated_target_counted_once(self, fake_clock):
        est = ProgressEstimator(total_targets=4, clock=fake_clock)
        _feed(
            est,
            [
                "=== BUILD TARGET A OF PROJECT P ===",
                "=== BUILD TARGET A OF PROJECT P ===",
                "=== BUILD TARGET B OF PROJECT P ===",
                "=== BUILD TARGET A OF PROJECT P ===",
                "=== BUILD TARGET B OF PROJECT P ===",
            ],
        )
        assert est.snapshot.completed_targets == frozenset({"A", "B"})
        assert est.snapshot.completed_target_count == 2

    def test_file_total_keeps_maximum(self, fake_clock):
        est = ProgressEstimator(clock=fake_clock)
        _feed(est, ["Compiling A.swift (1/10)", "Compiling B.swift (2/4)"])
        assert est.snapshot.total_files == 10
        assert est.snapshot.completed_files == 2
        assert est.snapshot.current_file == "B.swift"


class TestMonotonicity:
    def test_progress_never_decreases(self, fake_clock):
        est = ProgressEstimator(total_targets=2, clock=fake_clock)
        lines = [
            "Compiling 80% done",
            "Compiling A.swift (1/10)",
            "Building 20%",
            "=== BUILD TARGET A OF PROJECT P ===",
            "Compiling B.swift (9/10)",
            "Compiling C.swift (1/100)",
        ]
        seen = []
        for line in lines:
            seen.append(est.consume(line).progress_percentage)
        assert seen == sorted(seen)
        assert all(0.0 <= p <= 1.0 for p in seen)

    def test_percent_is_capped(self, fake_clock):
        est = ProgressEstimator(clock=fake_clock)
        est.consume("Building 250%")
        assert est.snapshot.progress_percentage == 1.0


class TestPhaseAndTimestamps:
    def test_target_change_resets_phase(self, fake_clock):
        est = ProgressEstimator(clock=fake_clock)
        est.consume("Ld /out/App normal")
        assert est.snapshot.current_phase == "Linking"
        est.consume("=== BUILD TARGET B OF PROJECT P ===")
        assert est.snapshot.current_phase == "Building"

    def test_initial_phase(self, fake_clock):
        assert ProgressEstimator(clock=fake_clock).snapshot.current_phase == "Starting"

    def test_last_progress_only_moves_on_progress(self, fake_clock):
        est = ProgressEstimator(clock=fake_clock)
        est.consume("CompileSwift normal /src/A.swift")
        marked = est.snapshot.last_progress_at
        fake_clock.advance(30)
        est.consume("note: still going")
        est.consume("CompileSwift normal /src/B.swift")  # same phase, no progress
        assert est.snapshot.last_progress_at == marked
        fake_clock.advance(5)
        est.consume("Ld /out/App normal")
        assert est.snapshot.last_progress_at == fake_clock.now

    def test_new_percent_batch_counts_as_activity(self, fake_clock):
        est = ProgressEstimator(clock=fake_clock)
        est.consume("Building 90%")
        for pct in (10, 20, 30):
            fake_clock.advance(50)
            est.consume(f"Compiling {pct}%")
            assert est.snapshot.last_progress_at == fake_clock.now
        assert est.snapshot.progress_percentage == pytest.approx(0.9)

    def test_repeated_percent_is_not_activity(self, fake_clock):
        est = ProgressEstimator(clock=fake_clock)
        est.consume("Compiling 40%")
        marked = est.snapshot.last_progress_at
        fake_clock.advance(20)
        est.consume("Compiling 40%")
        assert est.snapshot.last_progress_at == marked

    def test_first_line_recorded(self, fake_clock):
        est = ProgressEstimator(clock=fake_clock)
        assert est.snapshot.first_line_at is None
        fake_clock.advance(2)
        est.consume("hello")
        assert est.snapshot.first_line_at == fake_clock.now
        assert est.snapshot.lines_processed == 1


class TestCurrentProgress:
    def test_eta_refreshed_against_clock(self, fake_clock):
        est = ProgressEstimator(clock=fake_clock)
        fake_clock.advance(10)
        est.consume("Building 50%")
        assert est.get_current_progress().estimated_time_remaining == pytest.approx(10.0)
        fake_clock.advance(10)
        assert est.get_current_progress().estimated_time_remaining == pytest.approx(20.0)

    def test_eta_absent_at_low_progress(self, fake_clock):
        est = ProgressEstimator(clock=fake_clock)
        fake_clock.advance(10)
        est.consume("Building 5%")
        assert est.calculate_eta() is None

    def test_finalize_freezes_state(self, fake_clock):
        est = ProgressEstimator(clock=fake_clock)
        est.consume("Building 30%")
        final = est.finalize()
        assert final.finalized
        est.consume("Building 90%")
        assert est.snapshot.progress_percentage == pytest.approx(0.3)
        assert est.finalize() is est.snapshot
