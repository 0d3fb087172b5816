"""Shared model fixtures for the workbench tests."""

import pytest

from petri_workbench.classes import Arc, PetriNetInput, Place, Transition
from petri_workbench.sample import sample_petri_net


@pytest.fixture
def sample_model():
    """P0(1) -> Enqueue -> P1 -> Begin -> P2 -> Finish -> P3."""
    return sample_petri_net()


@pytest.fixture
def tau_model():
    """A silent transition has to fire before the visible 'A'."""
    return PetriNetInput(
        places=[Place('P0', tokens=1), Place('P1'), Place('P2')],
        transitions=[Transition('T0'), Transition('T1', 'A')],
        arcs=[Arc('P0', 'T0'), Arc('T0', 'P1'), Arc('P1', 'T1'), Arc('T1', 'P2')],
    )


@pytest.fixture
def duplicate_label_model():
    """Two transitions labelled 'A'; only the one through P2 leads on to 'B'."""
    return PetriNetInput(
        places=[Place('P0', tokens=1), Place('P1'), Place('P2'), Place('P3')],
        transitions=[Transition('T0', 'A'), Transition('T1', 'A'), Transition('T2', 'B')],
        arcs=[
            Arc('P0', 'T0'), Arc('T0', 'P1'),
            Arc('P0', 'T1'), Arc('T1', 'P2'),
            Arc('P2', 'T2'), Arc('T2', 'P3'),
        ],
    )


@pytest.fixture
def dead_model():
    """T0 also needs a token from the empty P1, so P0 can never be emptied."""
    return PetriNetInput(
        places=[Place('P0', tokens=1), Place('P1'), Place('P2')],
        transitions=[Transition('T0', 'A')],
        arcs=[Arc('P0', 'T0'), Arc('P1', 'T0'), Arc('T0', 'P2')],
    )


@pytest.fixture
def cycle_model():
    return PetriNetInput(
        places=[Place('P0', tokens=1), Place('P1')],
        transitions=[Transition('T0', 'go'), Transition('T1', 'back')],
        arcs=[Arc('P0', 'T0'), Arc('T0', 'P1'), Arc('P1', 'T1'), Arc('T1', 'P0')],
    )
