"""
Resolution of user-facing trace references (ids or labels) to transition ids,
and lenient replay of such references with per-step classification.

Alignment does not go through this module: it matches raw tokens itself and
explores every transition sharing an ambiguous label.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .classes import Marking, PetriNetInput
from .firing import ArcIndex, fire, is_enabled

STEP_VALID = 'valid'
STEP_INVALID = 'invalid'
STEP_MISSING = 'missing'
STEP_NOOP = 'noop'

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolveResult:
    ids: Tuple[str, ...]
    unknown: Tuple[str, ...]
    warnings: Tuple[str, ...]


def _labels_index(model: PetriNetInput) -> Dict[str, List[str]]:
    by_label: Dict[str, List[str]] = {}
    for t in model.transitions:
        if t.label:
            by_label.setdefault(t.label, []).append(t.id)
    return by_label


def _ambiguous_message(ref: str, matches: Sequence[str]) -> str:
    return f"Ambiguous label '{ref}' matches transitions: {', '.join(matches)}"


def resolve_transition_refs(model: PetriNetInput, refs: Sequence[str]) -> ResolveResult:
    """
    Resolve references to transition ids.

    - An exact id match wins.
    - Otherwise an exact label match resolves if that label is unique.
    - Ambiguous labels produce a warning and are dropped.
    - Anything else is reported as unknown.
    """
    id_set = set(model.transition_ids)
    by_label = _labels_index(model)

    ids: List[str] = []
    unknown: List[str] = []
    warnings: List[str] = []
    for ref in refs:
        if ref in id_set:
            ids.append(ref)
            continue
        matches = by_label.get(ref, [])
        if len(matches) == 1:
            ids.append(matches[0])
        elif len(matches) > 1:
            message = _ambiguous_message(ref, matches)
            logger.warning(message)
            warnings.append(message)
        else:
            unknown.append(ref)

    return ResolveResult(tuple(ids), tuple(unknown), tuple(warnings))


@dataclass(frozen=True)
class ReplayStep:
    step: int
    status: str
    name: str
    transition_id: Optional[str] = None


@dataclass(frozen=True)
class ReplayHighlights:
    """
    Token-replay view of a trace.

    - valid: transitions that were enabled when their event occurred
    - invalid_not_enabled: transitions that were not enabled at their event
    - missing_events: (reference, count) for references naming nothing
    - sequence: per-step classification in trace order
    """
    valid: Tuple[str, ...]
    invalid_not_enabled: Tuple[str, ...]
    missing_events: Tuple[Tuple[str, int], ...]
    sequence: Tuple[ReplayStep, ...]
    final_marking: Marking


def replay_highlights(model: PetriNetInput, refs: Sequence[str]) -> ReplayHighlights:
    """
    Replay references leniently from the model's tokens, classifying each step.

    Resolved and enabled steps fire (`valid`); resolved but non-enabled steps
    are skipped (`invalid`); unknown references are `missing`; ambiguous
    labels are `noop`.
    """
    index = ArcIndex(model)
    id_set = set(model.transition_ids)
    by_label = _labels_index(model)
    marking = Marking.from_model(model)

    valid: List[str] = []
    invalid: List[str] = []
    missing: Counter = Counter()
    sequence: List[ReplayStep] = []

    for step, ref in enumerate(refs, start=1):
        if ref in id_set:
            transition_id = ref
        else:
            matches = by_label.get(ref, [])
            if len(matches) > 1:
                logger.warning(_ambiguous_message(ref, matches))
                sequence.append(ReplayStep(step, STEP_NOOP, ref))
                continue
            if not matches:
                missing[ref] += 1
                sequence.append(ReplayStep(step, STEP_MISSING, ref))
                continue
            transition_id = matches[0]

        if is_enabled(marking, transition_id, index):
            marking = fire(marking, transition_id, index)
            if transition_id not in valid:
                valid.append(transition_id)
            sequence.append(ReplayStep(step, STEP_VALID, ref, transition_id))
        else:
            if transition_id not in invalid:
                invalid.append(transition_id)
            sequence.append(ReplayStep(step, STEP_INVALID, ref, transition_id))

    return ReplayHighlights(
        tuple(valid),
        tuple(invalid),
        tuple(missing.items()),
        tuple(sequence),
        marking,
    )
