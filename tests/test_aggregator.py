import pandas as pd
import pytest

from stress_connectors import MockDataSource
from stress_scoring import RegionStressAggregator, StressInputError, filter_by_stress_level, summarize, top_stressed
from stress_scoring.aggregator import frame_to_snapshots
from stress_scoring.tiering import stress_level


class StubSource:
    """Serves fixed frames; None marks a feed as unavailable"""

    def __init__(self, frames):
        self.frames = frames

    def get_disasters(self, state=None, year=None):
        return self.frames["disasters"]

    def get_demand(self, state=None):
        return self.frames["demand"]

    def get_energy_burden(self, state=None, year=None):
        return self.frames["burden"]

    def get_migration(self, state=None, year=None):
        return self.frames["migration"]

    def get_storm_events(self, state=None, year=None):
        return self.frames["storms"]


@pytest.fixture
def mock_aggregator():
    source = MockDataSource(seed=7, disaster_count=80, storm_count=80, migration_flow_count=200)
    return RegionStressAggregator(source)


def test_score_frames_end_to_end(region_frames, as_of):
    df = RegionStressAggregator(StubSource(region_frames)).build_metrics_frame(as_of=as_of)

    assert len(df) == 1
    row = df.iloc[0]
    assert row["region_key"] == "TX-County 1"
    assert row["overall_stress_score"] == pytest.approx(73.6)
    assert row["stress_level"] == "High"
    assert bool(row["is_top_stressed"])
    assert row["missing_sources"] == []
    assert row["disaster_declarations_count"] == 5
    assert row["energy_demand_peak"] == 200.0
    assert row["net_migration"] == -2000
    assert row["latitude"] == pytest.approx(29.76)


def test_unavailable_feed_is_reported_missing(region_frames, as_of):
    region_frames["disasters"] = None
    df = RegionStressAggregator(StubSource(region_frames)).build_metrics_frame(as_of=as_of)

    row = df.iloc[0]
    assert row["missing_sources"] == ["disaster"]
    assert row["disaster_stress_score"] == 0.0
    # 0.4 * 80 + 0.2 * 100
    assert row["overall_stress_score"] == pytest.approx(52.0)


def test_region_without_declarations_scores_zero_disaster(region_frames, as_of):
    region_frames["disasters"] = region_frames["disasters"].iloc[0:0]
    df = RegionStressAggregator(StubSource(region_frames)).build_metrics_frame(as_of=as_of)

    row = df.iloc[0]
    assert row["disaster_stress_score"] == 0.0
    assert "disaster" not in row["missing_sources"]


def test_no_regions_returns_empty_frame():
    frames = {"disasters": None, "demand": None, "burden": None, "migration": None, "storms": None}
    df = RegionStressAggregator(StubSource(frames)).build_metrics_frame()
    assert df.empty
    assert summarize(df) is None


def test_invalid_region_input_raises(region_frames, as_of):
    region_frames["migration"].loc[0, "population"] = -10
    with pytest.raises(StressInputError):
        RegionStressAggregator(StubSource(region_frames)).build_metrics_frame(as_of=as_of)


def test_mock_metrics_frame(mock_aggregator, as_of):
    df = mock_aggregator.build_metrics_frame(state="TX", as_of=as_of)

    assert not df.empty
    assert (df["state"] == "TX").all()
    assert df["overall_stress_score"].is_monotonic_decreasing
    assert df["overall_stress_score"].between(0, 100).all()
    assert (df["stress_level"] == df["overall_stress_score"].map(stress_level)).all()


def test_mock_metrics_frame_is_deterministic(mock_aggregator, as_of):
    first = mock_aggregator.build_metrics_frame(state="FL", as_of=as_of)
    second = mock_aggregator.build_metrics_frame(state="FL", as_of=as_of)
    pd.testing.assert_frame_equal(first, second)


def test_snapshot_helpers(mock_aggregator, as_of):
    snapshots = mock_aggregator.score_regions(state="TX", as_of=as_of)
    assert snapshots

    top = top_stressed(snapshots, limit=5)
    assert len(top) <= 5
    assert all(s.is_top_stressed for s in top)

    high = filter_by_stress_level(snapshots, "High")
    assert all(s.stress_level == "High" for s in high)

    with pytest.raises(StressInputError):
        filter_by_stress_level(snapshots, "Extreme")


def test_summarize(region_frames, as_of):
    df = RegionStressAggregator(StubSource(region_frames)).build_metrics_frame(as_of=as_of)
    summary = summarize(df)

    assert summary["total_areas"] == 1
    assert summary["stress_levels"] == {"Low": 0, "Moderate": 0, "High": 1, "Critical": 0}
    assert summary["top_stressed_areas"] == 1
    assert summary["total_disasters"] == 5
    assert summary["average_energy_burden"] == pytest.approx(8.0)


def test_frame_to_snapshots_round_trip(region_frames, as_of):
    df = RegionStressAggregator(StubSource(region_frames)).build_metrics_frame(as_of=as_of)
    snapshot = frame_to_snapshots(df)[0]
    assert snapshot.region_key == "TX-County 1"
    assert snapshot.missing_sources == ()
