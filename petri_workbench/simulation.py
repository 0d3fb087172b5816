"""
Random token-game simulation.

Runs a single sequential firing sequence from the model's initial marking,
picking uniformly among enabled transitions, until deadlock or a step limit.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

import numpy as np

from .classes import Marking, PetriNetInput
from .firing import ArcIndex, enabled_transitions, fire

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulationStep:
    step: int
    marking: Marking
    fired_transition: Optional[str] = None


@dataclass(frozen=True)
class SimulationResult:
    steps: Tuple[SimulationStep, ...]
    firing_counts: Dict[str, int]
    deadlocked: bool

    @property
    def total_steps(self) -> int:
        return sum(1 for s in self.steps if s.fired_transition is not None)

    @property
    def final_marking(self) -> Marking:
        return self.steps[-1].marking


def simulate(model: PetriNetInput, max_steps: int = 100, random_seed: Optional[int] = 42) -> SimulationResult:
    """
    Fire randomly chosen enabled transitions.

    Each step records the marking before firing and the transition fired
    from it; the last step records the final marking with no firing.

    Parameters
    ----------
    model : PetriNetInput
        Net to simulate; its tokens are the initial marking.
    max_steps : int, default=100
        Maximum number of firings.
    random_seed : int, optional
        Seed for reproducibility; None draws fresh entropy.
    """
    if isinstance(max_steps, bool) or not isinstance(max_steps, int):
        raise TypeError(f"max_steps must be an integer, got {type(max_steps)}")
    if max_steps < 0:
        raise ValueError(f"max_steps must be non-negative, got {max_steps}")

    rng = np.random.default_rng(random_seed)
    index = ArcIndex(model)
    marking = Marking.from_model(model)
    steps: List[SimulationStep] = []
    counts: Counter = Counter()
    deadlocked = False

    for step in range(max_steps):
        candidates = enabled_transitions(marking, index)
        if not candidates:
            deadlocked = True
            break
        chosen = candidates[int(rng.integers(len(candidates)))]
        steps.append(SimulationStep(step, marking, chosen.id))
        marking = fire(marking, chosen.id, index)
        counts[chosen.id] += 1
    else:
        deadlocked = not enabled_transitions(marking, index)

    steps.append(SimulationStep(len(steps), marking))
    logger.debug(f"Simulation finished after {len(steps) - 1} firings (deadlocked={deadlocked})")
    return SimulationResult(tuple(steps), dict(counts), deadlocked)


def steps_to_trace(result: SimulationResult, model: PetriNetInput) -> List[str]:
    """Activity tokens of a run: labels (or ids) of visible fired transitions."""
    by_id = {t.id: t for t in model.transitions}
    trace = []
    for step in result.steps:
        if step.fired_transition is None:
            continue
        transition = by_id[step.fired_transition]
        if not transition.is_invisible:
            trace.append(transition.activity)
    return trace


def is_marking_safe(marking: Mapping[str, int]) -> bool:
    """True if no place holds more than one token."""
    return all(tokens <= 1 for tokens in marking.values())
