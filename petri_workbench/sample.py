"""Small demonstration net: a single token moving through a three-step pipeline."""

from .classes import Arc, PetriNetInput, Place, Transition


def sample_petri_net() -> PetriNetInput:
    return PetriNetInput(
        places=(
            Place('P0', 'Start', 1),
            Place('P1', 'Queued'),
            Place('P2', 'Processing'),
            Place('P3', 'Done'),
        ),
        transitions=(
            Transition('T0', 'Enqueue'),
            Transition('T1', 'Begin'),
            Transition('T2', 'Finish'),
        ),
        arcs=(
            Arc('P0', 'T0'),
            Arc('T0', 'P1'),
            Arc('P1', 'T1'),
            Arc('T1', 'P2'),
            Arc('P2', 'T2'),
            Arc('T2', 'P3'),
        ),
    )
