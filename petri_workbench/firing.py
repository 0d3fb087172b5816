"""
Firing semantics for place/transition nets.

Provides the token game used by both simulation and conformance checking:
- build_arc_index: per-transition input/output arcs, computed once per model
- is_enabled / fire: pure enabled check and firing on immutable markings
- replay_transitions: ordered replay of transition ids, strict or lenient
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .classes import Marking, PetriNetInput, Transition
from .exceptions import ReplayError

logger = logging.getLogger(__name__)

WeightedPlaces = Tuple[Tuple[str, int], ...]


class ArcIndex:
    """
    Input and output arcs of every transition of a model.

    Only arcs joining a place and a transition take part; parallel arcs
    between the same pair are merged by adding their weights so that the
    enabled check and the firing rule always agree.
    """

    def __init__(self, model: PetriNetInput):
        self.model = model
        self.place_ids = model.place_ids
        self.transitions: Tuple[Transition, ...] = model.transitions
        self.transitions_by_id: Dict[str, Transition] = {t.id: t for t in model.transitions}

        place_set = set(self.place_ids)
        inputs: Dict[str, Dict[str, int]] = {tid: {} for tid in self.transitions_by_id}
        outputs: Dict[str, Dict[str, int]] = {tid: {} for tid in self.transitions_by_id}
        for arc in model.arcs:
            if arc.source in place_set and arc.target in inputs:
                bucket = inputs[arc.target]
                bucket[arc.source] = bucket.get(arc.source, 0) + arc.weight
            elif arc.source in outputs and arc.target in place_set:
                bucket = outputs[arc.source]
                bucket[arc.target] = bucket.get(arc.target, 0) + arc.weight

        self.inputs: Dict[str, WeightedPlaces] = {tid: tuple(arcs.items()) for tid, arcs in inputs.items()}
        self.outputs: Dict[str, WeightedPlaces] = {tid: tuple(arcs.items()) for tid, arcs in outputs.items()}

    def __contains__(self, transition_id: str) -> bool:
        return transition_id in self.transitions_by_id

    def sink_places(self) -> frozenset:
        """Places without any outgoing arc to a transition."""
        consumed = {place for arcs in self.inputs.values() for place, _ in arcs}
        return frozenset(p for p in self.place_ids if p not in consumed)


NetLike = Union[ArcIndex, PetriNetInput]


def build_arc_index(model: PetriNetInput) -> ArcIndex:
    return ArcIndex(model)


def _as_index(net: NetLike) -> ArcIndex:
    return net if isinstance(net, ArcIndex) else ArcIndex(net)


def initial_marking(model: PetriNetInput) -> Marking:
    return Marking.from_model(model)


def _require_transition(index: ArcIndex, transition_id: str) -> None:
    if transition_id not in index:
        raise ValueError(f"Unknown transition: {transition_id}")


def is_enabled(marking: Marking, transition_id: str, net: NetLike) -> bool:
    """
    True iff every input place of the transition holds at least the arc weight.

    A transition without input arcs is always enabled.
    """
    index = _as_index(net)
    _require_transition(index, transition_id)
    for place_id, weight in index.inputs[transition_id]:
        if marking.tokens(place_id) < weight:
            return False
    return True


def fire(marking: Marking, transition_id: str, net: NetLike) -> Marking:
    """
    Fire a transition and return the resulting marking.

    The input marking is never modified.

    Raises
    ------
    ValueError
        If the transition is unknown or not enabled in `marking`.
    """
    index = _as_index(net)
    if not is_enabled(marking, transition_id, index):
        raise ValueError(f"Transition {transition_id} is not enabled in {marking}")

    counts = dict(marking)
    for place_id, weight in index.inputs[transition_id]:
        counts[place_id] = counts.get(place_id, 0) - weight
    for place_id, weight in index.outputs[transition_id]:
        counts[place_id] = counts.get(place_id, 0) + weight
    return Marking._trusted(counts)


def enabled_transitions(marking: Marking, net: NetLike) -> List[Transition]:
    """Enabled transitions in model declaration order."""
    index = _as_index(net)
    return [t for t in index.transitions if is_enabled(marking, t.id, index)]


@dataclass(frozen=True)
class ReplayResult:
    model: PetriNetInput
    warnings: Tuple[str, ...] = ()
    marking: Optional[Marking] = field(default=None, compare=False)


def replay_transitions(
    model: PetriNetInput,
    sequence: Sequence[str],
    strict: bool = True,
) -> ReplayResult:
    """
    Apply transition ids in the given order, starting from the model's tokens.

    Parameters
    ----------
    model : PetriNetInput
        The net whose place tokens form the starting marking.
    sequence : sequence of str
        Transition ids, fired exactly in this order.
    strict : bool, default=True
        If True, the first unknown or non-enabled step raises ReplayError and
        no model is returned. If False, such steps are skipped (marking
        unchanged) and reported as warnings.

    Returns
    -------
    ReplayResult
        The model with updated tokens, the warnings collected in lenient
        mode and the final marking.
    """
    index = ArcIndex(model)
    marking = Marking.from_model(model)
    warnings: List[str] = []

    for step, transition_id in enumerate(sequence, start=1):
        if transition_id not in index:
            message = f"Step {step}: transition not found: {transition_id}"
        elif not is_enabled(marking, transition_id, index):
            message = f"Step {step}: transition {transition_id} not enabled"
        else:
            marking = fire(marking, transition_id, index)
            continue

        if strict:
            raise ReplayError(message)
        warnings.append(message)

    return ReplayResult(model.with_tokens(marking), tuple(warnings), marking)


def apply_transitions(model: PetriNetInput, sequence: Sequence[str], strict: bool = True) -> PetriNetInput:
    """Replay `sequence` and return only the updated model, logging lenient warnings."""
    result = replay_transitions(model, sequence, strict=strict)
    if result.warnings:
        logger.warning(f"Replay warnings: {'; '.join(result.warnings)}")
    return result.model
