import pytest

from petri_workbench.classes import Marking
from petri_workbench.simulation import is_marking_safe, simulate, steps_to_trace


def test_sequential_net_runs_to_deadlock(sample_model):
    result = simulate(sample_model, max_steps=10, random_seed=0)
    assert result.deadlocked
    assert result.total_steps == 3
    assert [s.fired_transition for s in result.steps] == ['T0', 'T1', 'T2', None]
    assert result.steps[0].marking == {'P0': 1, 'P1': 0, 'P2': 0, 'P3': 0}
    assert result.final_marking == {'P0': 0, 'P1': 0, 'P2': 0, 'P3': 1}
    assert result.firing_counts == {'T0': 1, 'T1': 1, 'T2': 1}
    assert steps_to_trace(result, sample_model) == ['Enqueue', 'Begin', 'Finish']


def test_step_limit_on_live_net(cycle_model):
    result = simulate(cycle_model, max_steps=5, random_seed=1)
    assert not result.deadlocked
    assert result.total_steps == 5
    assert len(result.steps) == 6
    assert result.firing_counts == {'T0': 3, 'T1': 2}
    assert steps_to_trace(result, cycle_model) == ['go', 'back', 'go', 'back', 'go']


def test_same_seed_same_run(duplicate_label_model):
    runs = [simulate(duplicate_label_model, random_seed=7) for _ in range(2)]
    assert runs[0] == runs[1]


def test_zero_steps(sample_model):
    result = simulate(sample_model, max_steps=0)
    assert len(result.steps) == 1
    assert result.steps[0].fired_transition is None
    assert not result.deadlocked


def test_invisible_transitions_are_left_out_of_traces(tau_model):
    result = simulate(tau_model)
    assert steps_to_trace(result, tau_model) == ['A']


@pytest.mark.parametrize('max_steps, error', [(-1, ValueError), (2.5, TypeError)])
def test_invalid_step_limit(sample_model, max_steps, error):
    with pytest.raises(error):
        simulate(sample_model, max_steps=max_steps)


def test_is_marking_safe():
    assert is_marking_safe(Marking({'P0': 1, 'P1': 0}))
    assert not is_marking_safe(Marking({'P0': 2}))
    assert is_marking_safe({})
