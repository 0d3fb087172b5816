"""
Pure editing helpers over model snapshots.

Every function takes a `PetriNetInput` and returns a new one; nothing here
keeps state between calls, fresh ids included.
"""

from dataclasses import replace
from typing import Optional

from .classes import Arc, PetriNetInput, Place, Transition
from .validation import validate_model


def next_free_id(model: PetriNetInput, prefix: str) -> str:
    """First `{prefix}{n}` (n = 0, 1, ...) not used by any place or transition."""
    used = set(model.place_ids) | set(model.transition_ids)
    n = 0
    while f"{prefix}{n}" in used:
        n += 1
    return f"{prefix}{n}"


def _node_kind(model: PetriNetInput, node_id: str) -> Optional[str]:
    if node_id in model.place_ids:
        return 'place'
    if node_id in model.transition_ids:
        return 'transition'
    return None


def is_valid_connection(model: PetriNetInput, source: str, target: str) -> bool:
    """Arcs may only join a place and a transition, in either direction."""
    source_kind = _node_kind(model, source)
    target_kind = _node_kind(model, target)
    return source_kind is not None and target_kind is not None and source_kind != target_kind


def add_place(
    model: PetriNetInput,
    label: Optional[str] = None,
    tokens: int = 0,
    place_id: Optional[str] = None,
) -> PetriNetInput:
    place = Place(place_id or next_free_id(model, 'P'), label, tokens)
    return validate_model(replace(model, places=model.places + (place,)))


def add_transition(
    model: PetriNetInput,
    label: Optional[str] = None,
    transition_id: Optional[str] = None,
) -> PetriNetInput:
    transition = Transition(transition_id or next_free_id(model, 'T'), label)
    return validate_model(replace(model, transitions=model.transitions + (transition,)))


def add_arc(model: PetriNetInput, source: str, target: str, weight: int = 1) -> PetriNetInput:
    """
    Connect a place and a transition.

    Raises
    ------
    ValueError
        If an endpoint is unknown or both endpoints are of the same kind.
    """
    if not is_valid_connection(model, source, target):
        raise ValueError(f"Invalid connection {source} -> {target}: arcs must join a place and a transition")
    return validate_model(replace(model, arcs=model.arcs + (Arc(source, target, weight),)))


def remove_node(model: PetriNetInput, node_id: str) -> PetriNetInput:
    """Remove a place or transition together with its incident arcs."""
    return replace(
        model,
        places=tuple(p for p in model.places if p.id != node_id),
        transitions=tuple(t for t in model.transitions if t.id != node_id),
        arcs=tuple(a for a in model.arcs if node_id not in (a.source, a.target)),
    )


def remove_arc(model: PetriNetInput, source: str, target: str) -> PetriNetInput:
    return replace(model, arcs=tuple(a for a in model.arcs if (a.source, a.target) != (source, target)))


def set_tokens(model: PetriNetInput, place_id: str, tokens: int) -> PetriNetInput:
    """Set a place's initial tokens; negative requests are clamped to 0."""
    if place_id not in model.place_ids:
        raise ValueError(f"Unknown place: {place_id}")
    tokens = max(0, int(tokens))
    return replace(model, places=tuple(replace(p, tokens=tokens) if p.id == place_id else p for p in model.places))


def set_label(model: PetriNetInput, node_id: str, label: Optional[str]) -> PetriNetInput:
    kind = _node_kind(model, node_id)
    if kind == 'place':
        return replace(model, places=tuple(replace(p, label=label) if p.id == node_id else p for p in model.places))
    if kind == 'transition':
        return replace(
            model,
            transitions=tuple(replace(t, label=label) if t.id == node_id else t for t in model.transitions),
        )
    raise ValueError(f"Unknown node: {node_id}")
