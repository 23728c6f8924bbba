import math
from datetime import date, datetime, timedelta, timezone

import numpy as np
import pandas as pd
import pytest

from stress_scoring import DemandSample, DisasterRecord, EnergyBurdenRecord, StressInputError, StressScorer, project_score


# Disaster stress

def test_disaster_stress_empty_is_zero(scorer, as_of):
    assert scorer.calculate_disaster_stress([], as_of=as_of) == 0.0


def test_disaster_stress_frequency_and_diversity(scorer, five_disasters, as_of):
    # 5/10 * 60 + 3/5 * 40
    assert scorer.calculate_disaster_stress(five_disasters, as_of=as_of) == pytest.approx(54.0)


def test_disaster_stress_saturates(scorer, as_of):
    types = ["Hurricane", "Flood", "Fire", "Tornado", "Drought", "Earthquake"]
    disasters = [DisasterRecord("r", types[i % len(types)], as_of) for i in range(30)]
    assert scorer.calculate_disaster_stress(disasters, as_of=as_of) == pytest.approx(100.0)


def test_disaster_stress_recency_decay(scorer, as_of):
    five_years_ago = as_of - timedelta(days=5 * 365)
    score = scorer.calculate_disaster_stress([DisasterRecord("r", "Flood", five_years_ago)], as_of=as_of)
    # half weight: 0.5/10 * 60 + 1/5 * 40
    assert score == pytest.approx(11.0)


def test_disaster_stress_old_records_only_count_for_diversity(scorer, as_of):
    old = as_of - timedelta(days=11 * 365)
    score = scorer.calculate_disaster_stress([DisasterRecord("r", "Flood", old)], as_of=as_of)
    assert score == pytest.approx(8.0)


def test_disaster_stress_future_and_undated_count_fully(scorer, as_of):
    future = as_of + timedelta(days=400)
    dated = scorer.calculate_disaster_stress([DisasterRecord("r", "Flood", future)], as_of=as_of)
    undated = scorer.calculate_disaster_stress([DisasterRecord("r", "Flood", None)], as_of=as_of)
    assert dated == pytest.approx(14.0)
    assert undated == pytest.approx(14.0)


def test_disaster_stress_naive_dates_are_utc(scorer):
    naive_as_of = datetime(2024, 6, 1)
    disasters = [DisasterRecord("r", "Flood", datetime(2024, 6, 1, tzinfo=timezone.utc))]
    assert scorer.calculate_disaster_stress(disasters, as_of=naive_as_of) == pytest.approx(14.0)


def test_disaster_stress_diversity_is_monotonic(scorer, as_of):
    same = [DisasterRecord("r", "Flood", as_of) for _ in range(4)]
    varied = [DisasterRecord("r", t, as_of) for t in ("Flood", "Fire", "Tornado", "Hurricane")]
    assert scorer.calculate_disaster_stress(varied, as_of=as_of) > scorer.calculate_disaster_stress(same, as_of=as_of)


def test_disaster_stress_from_counts(scorer):
    assert scorer.calculate_disaster_stress_from_counts(3, 2) == 35.0
    assert scorer.calculate_disaster_stress_from_counts(20, 10) == 100.0
    assert scorer.calculate_disaster_stress_from_counts(0, 0) == 0.0


def test_disaster_stress_from_counts_rejects_more_types_than_events(scorer):
    with pytest.raises(StressInputError):
        scorer.calculate_disaster_stress_from_counts(1, 2)


# Energy stress

def test_peak_demand(scorer, peaky_demand):
    peak = scorer.calculate_peak_demand(peaky_demand)
    assert peak == {"peak": 200.0, "peak_hour": 16, "average": 100.0}
    assert scorer.calculate_peak_demand([]) == {"peak": 0.0, "peak_hour": 0, "average": 0.0}


def test_energy_stress_components(scorer, peaky_demand, burden):
    assert scorer.calculate_energy_stress(peaky_demand) == pytest.approx(40.0)
    assert scorer.calculate_energy_stress([], burden) == pytest.approx(40.0)
    assert scorer.calculate_energy_stress(peaky_demand, burden) == pytest.approx(80.0)


def test_flat_demand_contributes_nothing(scorer):
    flat = [DemandSample("TX", datetime(2024, 1, 1, h), 100.0, hour=h) for h in range(24)]
    burden = EnergyBurdenRecord("r", 0.0, 0.0, 5.0)
    assert scorer.calculate_energy_stress(flat, burden) == 25.0


def test_zero_average_demand_is_flat(scorer):
    samples = [DemandSample("TX", datetime(2024, 1, 1), 0.0)]
    assert scorer.calculate_energy_stress(samples) == 0.0


def test_energy_burden_caps_at_sixty(scorer):
    burden = EnergyBurdenRecord("r", 0.0, 0.0, 30.0)
    assert scorer.calculate_energy_stress([], burden) == 60.0


def test_energy_stress_rejects_negative_demand(scorer):
    with pytest.raises(StressInputError):
        scorer.calculate_energy_stress([DemandSample("TX", datetime(2024, 1, 1), -5.0)])


def test_nightlight_energy_stress(scorer):
    assert scorer.calculate_nightlight_energy_stress(0.5, 80) == pytest.approx(90.0)
    assert scorer.calculate_nightlight_energy_stress(0.9, 100) == 100.0


# Migration stress

@pytest.mark.parametrize("net, population", [(500, 20000), (0, 20000), (-100, 0)])
def test_migration_stress_zero_cases(scorer, net, population):
    assert scorer.calculate_migration_stress(net, population) == 0.0


def test_migration_stress_outflow(scorer):
    assert scorer.calculate_migration_stress(-1000, 20000) == pytest.approx(50.0)
    assert scorer.calculate_migration_stress(-2000, 20000) == 100.0
    assert scorer.calculate_migration_stress(-5000, 20000) == 100.0


def test_migration_stress_rejects_bad_input(scorer):
    with pytest.raises(StressInputError):
        scorer.calculate_migration_stress(-100, -5)
    with pytest.raises(StressInputError):
        scorer.calculate_migration_stress(math.nan, 1000)


# Storm intensity

def test_storm_intensity():
    storms = pd.DataFrame({
        "damage_property": [5_000_000.0],
        "damage_crops": [0.0],
        "deaths": [10],
        "injuries": [40],
    })
    # 25 damage + 15 casualties + 0.4 frequency
    assert StressScorer().calculate_storm_intensity(storms) == pytest.approx(40.4)
    assert StressScorer().calculate_storm_intensity(None) == 0.0


# Weights and composite

def test_default_weights(scorer):
    assert scorer.weights == {"disaster": 0.4, "energy": 0.4, "migration": 0.2}
    assert scorer.top_stressed_threshold == 70


def test_weights_are_normalized():
    scorer = StressScorer(weights={"disaster": 1, "energy": 1, "migration": 2})
    assert scorer.weights == pytest.approx({"disaster": 0.25, "energy": 0.25, "migration": 0.5})


@pytest.mark.parametrize("weights", [
    {"disaster": 0.5, "flood": 0.5},
    {"disaster": -0.2, "energy": 1.2},
    {"disaster": 0, "energy": 0, "migration": 0},
])
def test_invalid_weights(weights):
    with pytest.raises(StressInputError):
        StressScorer(weights=weights)


def test_composite_stress(scorer):
    snapshot = scorer.calculate_composite_stress("r", 54.0, 80.0, 100.0)
    assert snapshot.overall_stress_score == pytest.approx(73.6)
    assert snapshot.stress_level == "High"
    assert snapshot.is_top_stressed
    assert snapshot.has_complete_data


def test_composite_stress_marks_unknown_sources(scorer):
    snapshot = scorer.calculate_composite_stress("r", disaster_score=50.0)
    assert snapshot.overall_stress_score == pytest.approx(20.0)
    assert snapshot.missing_sources == ("energy", "migration")
    assert snapshot.energy_stress_score == 0.0


def test_composite_stress_rejects_out_of_range(scorer):
    with pytest.raises(StressInputError):
        scorer.calculate_composite_stress("r", 120.0, 10.0, 10.0)


def test_composite_stress_is_monotonic(scorer):
    base = scorer.calculate_composite_stress("r", 40.0, 40.0, 40.0).overall_stress_score
    for bumped in ({"disaster_score": 60.0}, {"energy_score": 60.0}, {"migration_score": 60.0}):
        scores = {"disaster_score": 40.0, "energy_score": 40.0, "migration_score": 40.0, **bumped}
        assert scorer.calculate_composite_stress("r", **scores).overall_stress_score >= base


def test_county_energy_weighting_threshold():
    scorer = StressScorer(weights={"disaster": 0.6, "energy": 0.4, "migration": 0.0}, top_stressed_threshold=75)
    assert not scorer.calculate_composite_stress("r", 80.0, 65.0, 0.0).is_top_stressed
    assert scorer.calculate_composite_stress("r", 80.0, 70.0, 0.0).is_top_stressed


# End to end

def test_score_region_end_to_end(scorer, five_disasters, peaky_demand, burden, as_of):
    snapshot = scorer.score_region(
        "TX-County 1",
        disasters=five_disasters,
        demand=peaky_demand,
        burden=burden,
        net_migration=-2000,
        total_population=20000,
        as_of=as_of,
    )
    assert snapshot.disaster_stress_score == pytest.approx(54.0)
    assert snapshot.energy_stress_score == pytest.approx(80.0)
    assert snapshot.migration_stress_score == pytest.approx(100.0)
    assert snapshot.overall_stress_score == pytest.approx(73.6)
    assert snapshot.stress_level == "High"
    assert snapshot.is_top_stressed
    assert snapshot.missing_sources == ()


def test_score_region_empty_list_is_known_zero(scorer, as_of):
    snapshot = scorer.score_region("r", disasters=[], as_of=as_of)
    assert snapshot.disaster_stress_score == 0.0
    assert "disaster" not in snapshot.missing_sources
    assert snapshot.missing_sources == ("energy", "migration")


def test_disaster_stress_parses_iso_strings(scorer, as_of):
    iso = scorer.calculate_disaster_stress([DisasterRecord("r", "Flood", "2024-06-01T00:00:00Z")], as_of=as_of)
    assert iso == pytest.approx(14.0)

    half_year = scorer.calculate_disaster_stress([DisasterRecord("r", "Flood", "2023-12-04")], as_of=as_of)
    # 180 days: weight 1 - (180/365)/10
    assert half_year == pytest.approx((1 - 180 / 365 / 10) * 6 + 8)


def test_disaster_stress_unparseable_string_counts_as_current(scorer, as_of):
    assert scorer.calculate_disaster_stress([DisasterRecord("r", "Flood", "not-a-date")], as_of=as_of) == pytest.approx(14.0)


def test_score_region_with_dates_spread_over_the_past_year(scorer, peaky_demand, burden, as_of):
    days_ago = [0, 73, 146, 219, 292]
    types = ["Hurricane", "Flood", "Fire", "Flood", "Hurricane"]
    disasters = [DisasterRecord("TX-County 1", t, as_of - timedelta(days=d)) for t, d in zip(types, days_ago)]

    snapshot = scorer.score_region(
        "TX-County 1",
        disasters=disasters,
        demand=peaky_demand,
        burden=burden,
        net_migration=-2000,
        total_population=20000,
        as_of=as_of,
    )

    # weights 1, 0.98, 0.96, 0.94, 0.92 sum to 4.8
    assert snapshot.disaster_stress_score == pytest.approx(4.8 / 10 * 60 + 3 / 5 * 40)
    assert snapshot.disaster_stress_score == pytest.approx(52.8)
    assert snapshot.overall_stress_score == pytest.approx(0.4 * 52.8 + 0.4 * 80 + 0.2 * 100)
    assert snapshot.overall_stress_score == pytest.approx(73.12)
    assert snapshot.stress_level == "High"
    assert snapshot.is_top_stressed


# Range sweeps

SWEEP_SEEDS = range(25)
INCIDENT_TYPES = ["Hurricane", "Flood", "Fire", "Tornado", "Drought", "Earthquake", "Winter Storm"]


@pytest.mark.parametrize("seed", SWEEP_SEEDS)
def test_disaster_stress_in_range(scorer, as_of, seed):
    rng = np.random.default_rng(seed)
    disasters = [
        DisasterRecord("r", str(rng.choice(INCIDENT_TYPES)), as_of - timedelta(days=int(rng.integers(-400, 6000))))
        for _ in range(int(rng.integers(0, 60)))
    ]
    assert 0 <= scorer.calculate_disaster_stress(disasters, as_of=as_of) <= 100

    count = int(rng.integers(0, 40))
    assert 0 <= scorer.calculate_disaster_stress_from_counts(count, int(rng.integers(0, count + 1))) <= 100


@pytest.mark.parametrize("seed", SWEEP_SEEDS)
def test_energy_stress_in_range(scorer, seed):
    rng = np.random.default_rng(seed)
    samples = [
        DemandSample("TX", datetime(2024, 1, 1, h % 24), float(rng.random() * 10 ** rng.integers(0, 6)), hour=h % 24)
        for h in range(int(rng.integers(0, 48)))
    ]
    burden = EnergyBurdenRecord("r", 0.0, 0.0, float(rng.random() * 50))
    assert 0 <= scorer.calculate_energy_stress(samples, burden) <= 100
    assert 0 <= scorer.calculate_nightlight_energy_stress(float(rng.random()), float(rng.random() * 100)) <= 100


@pytest.mark.parametrize("seed", SWEEP_SEEDS)
def test_migration_stress_in_range(scorer, seed):
    rng = np.random.default_rng(seed)
    population = float(rng.integers(0, 1_000_000))
    net = float(rng.integers(-2_000_000, 2_000_000))
    assert 0 <= scorer.calculate_migration_stress(net, population) <= 100


@pytest.mark.parametrize("seed", SWEEP_SEEDS)
def test_composite_and_forecast_in_range(scorer, seed):
    rng = np.random.default_rng(seed)
    sub_scores = rng.random(3) * 100
    snapshot = scorer.calculate_composite_stress("r", *map(float, sub_scores))
    assert 0 <= snapshot.overall_stress_score <= 100

    as_of = date(int(rng.integers(1990, 2060)), int(rng.integers(1, 13)), 1)
    forecast = project_score(float(rng.random() * 100), as_of, int(rng.integers(0, 50)))
    assert 0 <= forecast <= 100
