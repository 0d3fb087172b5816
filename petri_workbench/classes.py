"""
Core value types for Petri net modeling and alignment-based conformance checking.

This module provides the passive data structures shared by every other module:
- Place, Transition, Arc: Basic Petri net components
- PetriNetInput: The canonical model (places, transitions, arcs)
- Marking: Immutable token distribution keyed by place id
- AlignmentMove, SearchNode, AlignmentResult: Alignment search structures

None of these types carry behaviour beyond lookups; enabling, firing and the
alignment search are free functions in `firing` and `alignment`.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, Iterator, Optional, Tuple

ARC_STANDARD = 'standard'
ARC_INHIBITOR = 'inhibitor'
ARC_TYPES = (ARC_STANDARD, ARC_INHIBITOR)

SYNC_MOVE = 'sync'
MODEL_MOVE = 'model'
LOG_MOVE = 'log'
MOVE_TYPES = (SYNC_MOVE, MODEL_MOVE, LOG_MOVE)


@dataclass(frozen=True)
class Place:
    id: str
    label: Optional[str] = None
    tokens: int = 0

    def __repr__(self):
        return self.id


@dataclass(frozen=True)
class Transition:
    id: str
    label: Optional[str] = None

    @property
    def is_invisible(self) -> bool:
        """A transition without a label is silent (tau)."""
        return not self.label

    @property
    def activity(self) -> str:
        return self.label if self.label else self.id

    def matches(self, token: str) -> bool:
        return token == self.id or (bool(self.label) and token == self.label)

    def __repr__(self):
        return self.id


@dataclass(frozen=True)
class Arc:
    source: str
    target: str
    weight: int = 1
    # Stored and serialized only; firing treats every arc as standard.
    arc_type: str = ARC_STANDARD

    def __repr__(self):
        return self.source + ' -> ' + self.target


@dataclass(frozen=True)
class PetriNetInput:
    """
    Canonical Petri net model.

    Collections are stored as tuples and the model is never mutated in place.
    """
    places: Tuple[Place, ...] = ()
    transitions: Tuple[Transition, ...] = ()
    arcs: Tuple[Arc, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'places', tuple(self.places))
        object.__setattr__(self, 'transitions', tuple(self.transitions))
        object.__setattr__(self, 'arcs', tuple(self.arcs))

    @property
    def place_ids(self) -> Tuple[str, ...]:
        return tuple(p.id for p in self.places)

    @property
    def transition_ids(self) -> Tuple[str, ...]:
        return tuple(t.id for t in self.transitions)

    def get_place(self, place_id: str) -> Optional[Place]:
        for place in self.places:
            if place.id == place_id:
                return place
        return None

    def get_transition(self, transition_id: str) -> Optional[Transition]:
        for transition in self.transitions:
            if transition.id == transition_id:
                return transition
        return None

    def with_tokens(self, tokens: Mapping) -> 'PetriNetInput':
        """Return a copy whose place token counts are taken from `tokens`."""
        places = tuple(replace(p, tokens=tokens.get(p.id, 0)) for p in self.places)
        return replace(self, places=places)

    def __repr__(self):
        return (
            f"PetriNetInput(places={len(self.places)}, "
            f"transitions={len(self.transitions)}, arcs={len(self.arcs)})"
        )


def _support_key(counts: Mapping) -> Tuple[Tuple[str, int], ...]:
    return tuple(sorted((place_id, n) for place_id, n in counts.items() if n != 0))


class Marking(Mapping):
    """
    Immutable assignment of token counts to place ids.

    Markings are pure values: firing never mutates one, it builds a new one.
    Equality and hashing go through the sorted `(place, tokens)` key of the
    places holding tokens; a place at 0 and an absent place are the same, as
    `tokens()` reads both as 0.
    """

    __slots__ = ('_tokens', '_key')

    def __init__(self, tokens: Optional[Mapping] = None):
        counts = dict(tokens or {})
        for place_id, n in counts.items():
            if isinstance(n, bool) or not isinstance(n, int):
                raise TypeError(f"Token count for place '{place_id}' must be an integer, got {type(n)}")
            if n < 0:
                raise ValueError(f"Token count for place '{place_id}' must be non-negative, got {n}")
        self._tokens = counts
        self._key = _support_key(counts)

    @classmethod
    def _trusted(cls, counts: Dict[str, int]) -> 'Marking':
        marking = cls.__new__(cls)
        marking._tokens = counts
        marking._key = _support_key(counts)
        return marking

    @classmethod
    def from_model(cls, model: PetriNetInput) -> 'Marking':
        """The declared initial marking of a model."""
        return cls({p.id: p.tokens for p in model.places})

    def __getitem__(self, place_id: str) -> int:
        return self._tokens[place_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tokens)

    def __len__(self) -> int:
        return len(self._tokens)

    def tokens(self, place_id: str) -> int:
        """Token count of a place, 0 for places the marking does not mention."""
        return self._tokens.get(place_id, 0)

    def key(self) -> Tuple[Tuple[str, int], ...]:
        return self._key

    def updated(self, delta: Iterable[Tuple[str, int]]) -> 'Marking':
        """Return a new marking with each `(place, change)` applied."""
        counts = dict(self._tokens)
        for place_id, change in delta:
            counts[place_id] = counts.get(place_id, 0) + change
        return Marking(counts)

    def total(self) -> int:
        return sum(self._tokens.values())

    def __eq__(self, other):
        if isinstance(other, Marking):
            return self._key == other._key
        if isinstance(other, Mapping):
            return self._key == _support_key(other)
        return NotImplemented

    def __hash__(self):
        return hash(self._key)

    def __repr__(self):
        return f"Marking({self._tokens})"


@dataclass(frozen=True)
class AlignmentMove:
    move_type: str
    activity: str

    def __repr__(self):
        return f"({self.move_type}, {self.activity})"


class SearchNode:
    """
    One state of the alignment search.

    Nodes live in a per-search arena (a list) and point at their predecessor
    by arena index; the chain is only walked backwards to rebuild the path.
    """

    __slots__ = ('marking', 'trace_index', 'cost', 'parent', 'move', 'key')

    def __init__(
        self,
        marking: Marking,
        trace_index: int,
        cost: float = 0.0,
        parent: int = -1,
        move: Optional[AlignmentMove] = None,
    ):
        self.marking = marking
        self.trace_index = trace_index
        self.cost = cost
        self.parent = parent
        self.move = move
        self.key = state_key(marking, trace_index)

    def __repr__(self):
        return f"SearchNode(idx={self.trace_index}, cost={self.cost}, marking={self.marking})"


def state_key(marking: Marking, trace_index: int) -> str:
    """Deterministic string key of a (marking, trace position) search state."""
    return repr((trace_index, marking.key()))


class SearchStatus(str, Enum):
    OPTIMAL = 'optimal'
    CAPPED = 'capped'
    EXHAUSTED = 'exhausted'


@dataclass(frozen=True)
class AlignmentResult:
    """
    Outcome of an alignment search.

    Only `SearchStatus.OPTIMAL` results are proven minimum-cost alignments.
    `CAPPED` results are best-effort reconstructions from the last expanded
    state and may neither be optimal nor reach the end of the trace.
    `EXHAUSTED` results carry an empty alignment and infinite cost.
    """
    alignment: Tuple[AlignmentMove, ...]
    cost: float
    status: SearchStatus = SearchStatus.OPTIMAL
    expansions: int = 0
    final_marking: Optional[Marking] = field(default=None, compare=False)

    @property
    def is_optimal(self) -> bool:
        return self.status is SearchStatus.OPTIMAL

    def move_counts(self) -> Dict[str, int]:
        counts = Counter(move.move_type for move in self.alignment)
        return {move_type: counts.get(move_type, 0) for move_type in MOVE_TYPES}
