import pytest

from pstatebalance.model import (
    Event,
    LoadBalancingModel,
    Thresholds,
    state_energy,
)

LIMITS = (3, 6, 12, 24, 48)


@pytest.fixture
def thresholds():
    return Thresholds(LIMITS)


@pytest.fixture
def model(thresholds):
    return LoadBalancingModel(thresholds=thresholds, gamma12=0.5)


@pytest.mark.parametrize(
    "count, level",
    [(0, 1), (3, 1), (4, 2), (6, 2), (7, 3), (12, 3), (13, 4), (24, 4), (25, 5), (48, 5), (49, 6), (90, 6)],
)
def test_threshold_levels(thresholds, count, level):
    assert thresholds.level(count) == level


def test_thresholds_reject_wrong_length():
    with pytest.raises(ValueError):
        Thresholds((1, 2, 3))


def test_thresholds_reject_decreasing():
    with pytest.raises(ValueError):
        Thresholds((5, 3, 12, 24, 48))


def test_initial_state_and_bounds(model):
    assert model.initial_state() == (0, 0)
    assert model.bounds() == ((0, 90), (0, 90))


def test_energy_of_empty_system(thresholds):
    assert state_energy(0, 0, thresholds, 0, 15, 1) == pytest.approx(240.0)


def test_energy_symmetric_and_migration_cost(model):
    for a, b in [(0, 5), (10, 40), (3, 90), (50, 7)]:
        assert model.energy(a, b, 0) == pytest.approx(model.energy(b, a, 0))
        assert model.energy(a, b, 4) == pytest.approx(model.energy(a, b, 0) + 4)


def test_model_energy_matches_function(model, thresholds):
    assert model.energy(20, 30, 2) == pytest.approx(state_energy(20, 30, thresholds, 2, 15, 1.0))


def test_no_migration_when_same_level(model):
    assert model.optimal_migration((5, 6)) is None
    assert model.optimal_migration((50, 90)) is None


@pytest.mark.parametrize("state", [(0, 10), (30, 2), (90, 0), (7, 49), (1, 90)])
def test_optimal_migration_invariants(model, state):
    migration = model.optimal_migration(state)
    a, b = state
    if migration is None:
        best = min(
            model.energy(i, a + b - i, abs(a - i))
            for i in range(a + b + 1)
            if i <= 90 and a + b - i <= 90
        )
        assert best >= model.energy(a, b, 0)
    else:
        first, second = migration.target
        assert first + second == a + b
        assert 0 <= first <= 90 and 0 <= second <= 90
        assert migration.count == abs(a - first) > 0
        assert migration.source == (1 if first < a else 2)
        assert migration.energy_after < migration.energy_before
        assert migration.energy_after == pytest.approx(model.energy(first, second, migration.count))


def test_uniformisation_rate_negative_raises(model):
    with pytest.raises(ValueError):
        model.uniformisation_rate(-1)


def test_uniformisation_rate_adds_migration_term(model):
    base = model.uniformisation_rate(0)
    assert model.uniformisation_rate(2) == pytest.approx(base + 0.25)


@pytest.mark.parametrize("gamma", [0.0, 0.5, 3.0])
@pytest.mark.parametrize("state", [(0, 0), (0, 10), (15, 15), (90, 90), (30, 2), (7, 49)])
def test_probabilities_sum_to_one(thresholds, gamma, state):
    model = LoadBalancingModel(thresholds=thresholds, gamma12=gamma)
    probabilities = [model.probability(event, state) for event in Event]
    assert all(p >= 0 for p in probabilities)
    assert sum(probabilities) == pytest.approx(1.0, abs=1e-12)


def test_migration_probability_only_for_source(model):
    state = (0, 10)
    migration = model.optimal_migration(state)
    assert migration is not None
    other = Event.MIGRATE_FROM_1 if migration.source == 2 else Event.MIGRATE_FROM_2
    own = Event.MIGRATE_FROM_2 if migration.source == 2 else Event.MIGRATE_FROM_1
    assert model.probability(other, state) == 0.0
    assert model.probability(own, state) > 0.0


def test_no_migration_probability_without_gamma(thresholds):
    model = LoadBalancingModel(thresholds=thresholds, gamma12=0.0)
    assert model.probability(Event.MIGRATE_FROM_1, (30, 2)) == 0.0
    assert model.probability(Event.MIGRATE_FROM_2, (0, 10)) == 0.0


def test_arrival_and_service_transitions(model):
    assert model.transition((4, 5), Event.ARRIVAL_1) == (5, 5)
    assert model.transition((4, 5), Event.ARRIVAL_2) == (4, 6)
    assert model.transition((4, 5), Event.SERVICE_1) == (3, 5)
    assert model.transition((4, 5), Event.SERVICE_2) == (4, 4)
    assert model.transition((4, 5), Event.LOOP) == (4, 5)


def test_transitions_respect_bounds(model):
    assert model.transition((90, 90), Event.ARRIVAL_1) == (90, 90)
    assert model.transition((90, 90), Event.ARRIVAL_2) == (90, 90)
    assert model.transition((0, 0), Event.SERVICE_1) == (0, 0)
    assert model.transition((0, 0), Event.SERVICE_2) == (0, 0)


def test_migration_transition_reaches_target(model):
    state = (0, 10)
    migration = model.optimal_migration(state)
    assert migration is not None
    event = Event.MIGRATE_FROM_1 if migration.source == 1 else Event.MIGRATE_FROM_2
    assert model.transition(state, event) == migration.target


def test_migration_transition_ignored_without_gamma(thresholds):
    model = LoadBalancingModel(thresholds=thresholds)
    assert model.transition((0, 10), Event.MIGRATE_FROM_2) == (0, 10)
    assert model.transition((30, 2), Event.MIGRATE_FROM_1) == (30, 2)


def test_transition_accepts_integer_events(model):
    assert model.transition((1, 1), 1) == model.transition((1, 1), Event.ARRIVAL_1)


def test_unknown_event_raises(model):
    with pytest.raises(ValueError):
        model.transition((1, 1), 8)
    with pytest.raises(ValueError):
        model.probability(0, (1, 1))