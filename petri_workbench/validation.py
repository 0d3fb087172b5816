"""
Structural validation of canonical Petri net models.
"""

import logging
from typing import Any

from .classes import ARC_TYPES, PetriNetInput
from .exceptions import ParseError

logger = logging.getLogger(__name__)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_model(model: PetriNetInput) -> PetriNetInput:
    """
    Check the structural invariants of a model and return it unchanged.

    - place ids are unique among places, transition ids among transitions
    - no id is shared between a place and a transition
    - every arc endpoint resolves to a declared place or transition
    - tokens are integers >= 0, arc weights integers >= 1

    Arcs are not required to connect a place with a transition; such arcs
    simply never take part in firing.

    Raises
    ------
    ParseError
        On the first violated invariant. Models are never repaired.
    """
    place_ids = set()
    for place in model.places:
        if not isinstance(place.id, str) or not place.id:
            raise ParseError(f"place.id must be a non-empty string, got {place.id!r}")
        if place.id in place_ids:
            raise ParseError(f"Duplicate place id: {place.id}")
        if place.label is not None and not isinstance(place.label, str):
            raise ParseError(f"place.label must be a string, got {type(place.label)}")
        if not _is_int(place.tokens) or place.tokens < 0:
            raise ParseError(f"Place {place.id} tokens must be a non-negative integer, got {place.tokens!r}")
        place_ids.add(place.id)

    transition_ids = set()
    for transition in model.transitions:
        if not isinstance(transition.id, str) or not transition.id:
            raise ParseError(f"transition.id must be a non-empty string, got {transition.id!r}")
        if transition.id in transition_ids:
            raise ParseError(f"Duplicate transition id: {transition.id}")
        if transition.label is not None and not isinstance(transition.label, str):
            raise ParseError(f"transition.label must be a string, got {type(transition.label)}")
        transition_ids.add(transition.id)

    shared = sorted(place_ids & transition_ids)
    if shared:
        raise ParseError(f"Id used by both a place and a transition: {', '.join(shared)}")

    known = place_ids | transition_ids
    for arc in model.arcs:
        if arc.source not in known:
            raise ParseError(f"Arc.from not found: {arc.source}")
        if arc.target not in known:
            raise ParseError(f"Arc.to not found: {arc.target}")
        if not _is_int(arc.weight) or arc.weight < 1:
            raise ParseError(f"Arc {arc!r} weight must be an integer >= 1, got {arc.weight!r}")
        if arc.arc_type not in ARC_TYPES:
            raise ParseError(f"Arc {arc!r} has unknown arcType '{arc.arc_type}'")

    logger.debug(
        f"Validated model: {len(model.places)} places, "
        f"{len(model.transitions)} transitions, {len(model.arcs)} arcs"
    )
    return model
