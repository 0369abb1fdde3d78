"""
Tests for synthetic data, CSV loaders and the command line.

Tests cover:
1. Synthetic GPS traces and strength histories
2. CSV loading, validation and DataFrame conversion
3. CLI commands end to end

Run with: python -m pytest tests/test_data.py -v
"""

import json
from datetime import datetime

import numpy as np
import pandas as pd
import pytest

from workout_core.geo import total_distance
from workout_core.one_rep_max import calculate
from workout_core.progression import SuggestionType, suggest_progression
from workout_core.run_metrics import calculate_splits, summarize_run
from workout_data.synthetic import generate_history, generate_route, HISTORY_PATTERNS
from workout_data.loaders import (
    history_to_dataframe,
    load_exercise_history,
    load_route_points,
    route_to_dataframe,
    splits_to_dataframe,
)
import main


@pytest.fixture
def history_csv(tmp_path):
    """Two exercises, one with a declining estimated 1RM."""
    path = tmp_path / "history.csv"
    pd.DataFrame({
        'exercise_id': [1, 1, 1, 2],
        'date': ['2024-03-10', '2024-03-07', '2024-03-04', '2024-03-09'],
        'best_weight': [80.0, 80.0, 80.0, 100.0],
        'best_reps': [6, 7, 8, 5],
        'estimated_one_rep_max': [95.0, 98.0, 100.0, 112.5],
    }).to_csv(path, index=False)
    return path


@pytest.fixture
def route_csv(tmp_path):
    path = tmp_path / "route.csv"
    route_to_dataframe(generate_route(2500, cadence=170, seed=1)).to_csv(path, index=False)
    return path


# =============================================================================
# Synthetic Data Tests
# =============================================================================

class TestGenerateRoute:
    """Tests for synthetic GPS traces."""

    def test_length_and_distance(self):
        points = generate_route(5500)

        assert len(points) == 56
        assert total_distance(points) == pytest.approx(5500, rel=1e-3)

    def test_pace(self):
        summary = summarize_run(generate_route(5500, pace_s_per_km=270))
        assert summary.avg_pace_seconds_per_km == pytest.approx(270, abs=1)
        assert len(summary.splits) == 5

    def test_timestamps_increase(self):
        points = generate_route(3000, pace_noise=0.1, start_timestamp=1_700_000_000_000, seed=3)
        timestamps = np.array([p.timestamp for p in points])

        assert timestamps[0] == 1_700_000_000_000
        assert np.all(np.diff(timestamps) > 0)

    def test_reproducible_with_seed(self):
        a = generate_route(2000, hr_noise=5, altitude_noise=1, pace_noise=0.05, seed=42)
        b = generate_route(2000, hr_noise=5, altitude_noise=1, pace_noise=0.05, seed=42)
        assert a == b

    def test_optional_sensors(self):
        points = generate_route(1500, heart_rate=None, altitude=None)
        summary = summarize_run(points)

        assert all(p.heart_rate is None for p in points)
        assert all(p.altitude is None for p in points)
        assert summary.avg_heart_rate is None
        assert summary.elevation_gain_m == 0.0

    def test_partial_final_sample(self):
        points = generate_route(1050, spacing_m=100)
        assert total_distance(points) == pytest.approx(1050, rel=1e-3)
        assert len(calculate_splits(points)) == 1


class TestGenerateHistory:
    """Tests for synthetic strength histories."""

    def test_newest_first(self):
        history = generate_history(5)
        dates = [e.date for e in history]

        assert len(history) == 5
        assert dates == sorted(dates, reverse=True)
        assert dates[-1] == datetime(2024, 1, 1)

    def test_recorded_one_rep_max(self):
        for entry in generate_history(6, pattern='declining'):
            assert entry.estimated_one_rep_max == pytest.approx(
                calculate(entry.best_weight, entry.best_reps)
            )

    def test_progressing_adds_reps(self):
        history = generate_history(4)
        result = suggest_progression(1, "Bench", history)

        assert history[0].best_reps == 11
        assert result.suggestion_type == SuggestionType.INCREASE_REPS
        assert result.suggested_reps == 12

    def test_progressing_tops_out(self):
        result = suggest_progression(1, "Bench", generate_history(5))

        assert result.suggestion_type == SuggestionType.INCREASE_WEIGHT
        assert result.suggested_weight == pytest.approx(62.5)

    def test_progressing_rolls_weight_over(self):
        newest = generate_history(6)[0]
        assert newest.best_weight == pytest.approx(62.5)
        assert newest.best_reps == 8

    def test_declining_deloads(self):
        result = suggest_progression(1, "Bench", generate_history(4, pattern='declining'))
        assert result.suggestion_type == SuggestionType.DELOAD

    def test_stalled_never_progresses_weight(self):
        for seed in range(10):
            result = suggest_progression(1, "Bench", generate_history(6, pattern='stalled', seed=seed))
            assert result.suggestion_type in (SuggestionType.MAINTAIN, SuggestionType.INCREASE_REPS)

    def test_unknown_pattern(self):
        with pytest.raises(ValueError):
            generate_history(3, pattern='plateau')


# =============================================================================
# Loader Tests
# =============================================================================

class TestLoadExerciseHistory:
    """Tests for the history CSV loader."""

    def test_load(self, history_csv):
        entries = load_exercise_history(history_csv)

        assert len(entries) == 4
        assert entries[0].exercise_id == 1
        assert entries[0].date == datetime(2024, 3, 10)
        assert entries[0].best_weight == 80.0
        assert entries[0].best_reps == 6
        assert entries[0].estimated_one_rep_max == 95.0

    def test_loaded_history_feeds_engine(self, history_csv):
        bench = [e for e in load_exercise_history(history_csv) if e.exercise_id == 1]
        assert suggest_progression(1, "Bench", bench).suggestion_type == SuggestionType.DELOAD

    def test_missing_one_rep_max_is_computed(self, tmp_path):
        path = tmp_path / "no_orm.csv"
        path.write_text("exercise_id,date,best_weight,best_reps\n1,2024-01-01,100,5\n")

        entry = load_exercise_history(path)[0]
        assert entry.estimated_one_rep_max == pytest.approx(112.5)
        assert entry.total_sets == 0

    def test_epoch_millis_dates(self, tmp_path):
        path = tmp_path / "millis.csv"
        path.write_text(
            "exercise_id,date,best_weight,best_reps\n"
            "1,1704067200000,60,8\n"
            "1,1704326400000,60,9\n"
        )
        entries = load_exercise_history(path)

        assert entries[0].date == 1704067200000
        assert suggest_progression(1, "Row", entries).current_reps == 9

    def test_missing_columns(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("exercise_id,date,best_weight\n1,2024-01-01,100\n")

        with pytest.raises(ValueError, match="best_reps"):
            load_exercise_history(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_exercise_history(tmp_path / "absent.csv")

    def test_dataframe_round_trip(self, tmp_path):
        history = generate_history(4)
        path = tmp_path / "roundtrip.csv"
        history_to_dataframe(history).to_csv(path, index=False)

        loaded = load_exercise_history(path)
        assert [e.date for e in loaded] == [e.date for e in history]
        assert [e.best_reps for e in loaded] == [e.best_reps for e in history]
        for original, restored in zip(history, loaded):
            assert restored.estimated_one_rep_max == pytest.approx(original.estimated_one_rep_max)
            assert restored.total_volume == pytest.approx(original.total_volume)


class TestLoadRoutePoints:
    """Tests for the GPS trace CSV loader."""

    def test_load(self, route_csv):
        points = load_route_points(route_csv)

        assert len(points) == 26
        assert points[0].heart_rate == 150
        assert points[0].cadence == 170
        assert points[0].speed is None
        assert total_distance(points) == pytest.approx(2500, rel=1e-3)

    def test_blank_optional_values(self, tmp_path):
        path = tmp_path / "sparse.csv"
        path.write_text(
            "latitude,longitude,timestamp,altitude,heart_rate\n"
            "0.0,0.0,0,12.5,140\n"
            "0.0009,0.0,30000,,\n"
        )
        points = load_route_points(path)

        assert points[0].altitude == 12.5
        assert points[0].heart_rate == 140
        assert points[1].altitude is None
        assert points[1].heart_rate is None
        assert points[1].cadence is None

    def test_rows_without_coordinates_dropped(self, tmp_path):
        path = tmp_path / "gaps.csv"
        path.write_text(
            "latitude,longitude,timestamp\n"
            "0.0,0.0,0\n"
            ",0.0,1000\n"
            "0.0009,0.0,2000\n"
        )
        assert [p.timestamp for p in load_route_points(path)] == [0, 2000]

    def test_missing_columns(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("latitude,longitude\n0.0,0.0\n")

        with pytest.raises(ValueError, match="timestamp"):
            load_route_points(path)

    def test_splits_table(self, route_csv):
        splits = calculate_splits(load_route_points(route_csv))
        table = splits_to_dataframe(splits)

        assert list(table.columns) == ['kilometer', 'duration', 'pace', 'elevation_change', 'avg_heart_rate']
        assert table['kilometer'].tolist() == [1, 2]


# =============================================================================
# CLI Tests
# =============================================================================

class TestCommandLine:
    """End-to-end tests for main.py commands."""

    def test_progression(self, history_csv, capsys):
        results = main.main(['progression', str(history_csv)])

        assert [r['exercise_id'] for r in results] == [1, 2]
        assert results[0]['suggestion_type'] == 'deload'
        assert results[1]['confidence'] == 0.5
        assert '"deload"' in capsys.readouterr().out

    def test_progression_single_exercise(self, history_csv):
        results = main.main(['progression', str(history_csv), '--exercise-id', '1', '--name', 'Bench'])

        assert len(results) == 1
        assert results[0]['exercise_name'] == 'Bench'
        assert results[0]['suggestion_type'] == 'deload'

    def test_run(self, route_csv, capsys):
        result = main.main(['run', str(route_csv), '--weight-kg', '65', '--max-hr', '190'])

        assert len(result['splits']) == 2
        assert result['avg_heart_rate'] == 150
        assert result['vo2max_estimate'] is not None
        assert 'kilometer' in capsys.readouterr().out

    def test_start_weight(self, capsys):
        weight = main.main(['start-weight', '100', '--reps', '10'])

        assert weight == pytest.approx(67.5)
        assert '67.5' in capsys.readouterr().out

    def test_params_file(self, tmp_path):
        path = tmp_path / "params.json"
        path.write_text(json.dumps({'progression': {'weight_increment': 5.0}, 'target_reps': [5, 8]}))

        config = main.main(['--params', str(path), 'params'])
        assert config['progression']['weight_increment'] == 5.0
        assert config['target_reps'] == [5, 8]

    def test_invalid_params_file(self, tmp_path):
        path = tmp_path / "params.json"
        path.write_text(json.dumps({'run': {'split_distance_m': -1}}))

        with pytest.raises(ValueError):
            main.main(['--params', str(path), 'params'])

    def test_demo(self):
        result = main.main(['demo', '--seed', '7'])

        assert set(result['suggestions']) == set(HISTORY_PATTERNS)
        assert result['suggestions']['declining']['suggestion_type'] == 'deload'
        assert len(result['run']['splits']) == 5

    def test_no_command(self, capsys):
        assert main.main([]) is None
        assert 'usage' in capsys.readouterr().out.lower()


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
