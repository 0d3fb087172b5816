"""
Cost-optimal alignment between a trace and a Petri net.

The search runs Dijkstra (A* with a zero heuristic) over the implicit graph
of `(marking, trace position)` states:
- sync move:  the next trace token equals an enabled transition's id or
              label; fire it and advance the trace (cost 0)
- model move: fire any enabled transition without consuming the trace
              (cost 1, or 0 for invisible transitions)
- log move:   consume the next trace token without firing (cost 1)

A state is a goal once the whole trace is consumed and the marking is
accepting: every place that feeds some transition is empty, sink places may
hold any number of tokens.

Each invocation owns its queue, best-cost map and node arena, so separate
traces can be aligned concurrently without coordination.
"""

import logging
import math
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

import numpy as np

from .classes import (
    LOG_MOVE,
    MODEL_MOVE,
    SYNC_MOVE,
    AlignmentMove,
    AlignmentResult,
    Marking,
    PetriNetInput,
    SearchNode,
    SearchStatus,
)
from .firing import ArcIndex, fire, is_enabled
from .priority_queue import PriorityQueue
from .utils import DEFAULT_MAX_EXPANSIONS, CostFunction, make_cost_function, validate_search_parameters

logger = logging.getLogger(__name__)

_DEFAULT_COST_FUNCTION = make_cost_function()


def compute_sink_places(model: PetriNetInput) -> FrozenSet[str]:
    """Places with no outgoing arc to a transition."""
    return ArcIndex(model).sink_places()


def is_accepting(marking: Marking, sink_places: FrozenSet[str]) -> bool:
    for place_id, tokens in marking.items():
        if tokens != 0 and place_id not in sink_places:
            return False
    return True


def _reconstruct(arena: List[SearchNode], handle: int) -> Tuple[AlignmentMove, ...]:
    moves: List[AlignmentMove] = []
    node = arena[handle]
    while node.parent >= 0:
        moves.append(node.move)
        node = arena[node.parent]
    moves.reverse()
    return tuple(moves)


def _move_cost(cost_fn: CostFunction, move_type: str, transition=None) -> float:
    cost = cost_fn(move_type, transition)
    if cost < 0:
        raise ValueError(f"Move costs must be non-negative, got {cost} for a {move_type} move")
    return cost


def find_optimal_alignment(
    trace: Sequence[str],
    model: PetriNetInput,
    max_expansions: int = DEFAULT_MAX_EXPANSIONS,
    cost_function: Optional[CostFunction] = None,
) -> AlignmentResult:
    """
    Compute a minimum-cost alignment of `trace` against `model`.

    Parameters
    ----------
    trace : sequence of str
        Activity tokens; each may name a transition by id or by label.
    model : PetriNetInput
        The net; its place tokens are the initial marking.
    max_expansions : int, default=10000
        Upper bound on expanded states. When exceeded, the alignment leading
        to the most recently popped state is returned with status CAPPED.
    cost_function : callable, optional
        f(move_type, transition) -> non-negative cost; see
        `utils.make_cost_function`. Defaults to sync 0, model 1, tau 0, log 1.

    Returns
    -------
    AlignmentResult
        status OPTIMAL: proven minimum-cost alignment.
        status CAPPED: best-effort result, possibly not optimal and possibly
        not reaching the end of the trace or an accepting marking.
        status EXHAUSTED: no goal is reachable; empty alignment, cost inf.
    """
    validate_search_parameters(max_expansions)
    cost_fn = cost_function or _DEFAULT_COST_FUNCTION
    trace = list(trace)
    trace_len = len(trace)

    index = ArcIndex(model)
    sink_places = index.sink_places()
    transitions = index.transitions

    # Arena of search nodes; the queue holds handles. Ties on cost are broken
    # by handle, i.e. by insertion order.
    arena: List[SearchNode] = [SearchNode(Marking.from_model(model), 0)]

    def compare(a: int, b: int) -> int:
        ca, cb = arena[a].cost, arena[b].cost
        if ca != cb:
            return -1 if ca < cb else 1
        return a - b

    open_queue: PriorityQueue = PriorityQueue(compare, [0])
    best_cost: Dict[str, float] = {arena[0].key: 0.0}

    def relax(node: SearchNode) -> None:
        previous = best_cost.get(node.key)
        if previous is not None and previous <= node.cost:
            return
        best_cost[node.key] = node.cost
        arena.append(node)
        open_queue.push(len(arena) - 1)

    logger.debug(f"Aligning trace of length {trace_len} against {model!r}")
    expansions = 0

    while open_queue:
        handle = open_queue.pop()
        current = arena[handle]

        # Dominated by a cheaper path to the same state
        if best_cost.get(current.key, math.inf) < current.cost:
            continue

        if current.trace_index == trace_len and is_accepting(current.marking, sink_places):
            logger.debug(f"Optimal alignment found: cost={current.cost}, expansions={expansions}, states={len(best_cost)}")
            return AlignmentResult(
                _reconstruct(arena, handle), current.cost, SearchStatus.OPTIMAL, expansions, current.marking
            )

        expansions += 1
        if expansions > max_expansions:
            logger.warning(
                f"Alignment search capped after {max_expansions} expansions; "
                f"returning best-effort result at trace position {current.trace_index}/{trace_len}"
            )
            return AlignmentResult(
                _reconstruct(arena, handle), current.cost, SearchStatus.CAPPED, expansions - 1, current.marking
            )

        marking = current.marking
        pending = trace[current.trace_index] if current.trace_index < trace_len else None
        enabled = [t for t in transitions if is_enabled(marking, t.id, index)]

        # 1) Synchronous moves: every enabled transition matching the next token
        if pending is not None:
            for t in enabled:
                if not t.matches(pending):
                    continue
                relax(SearchNode(
                    fire(marking, t.id, index),
                    current.trace_index + 1,
                    current.cost + _move_cost(cost_fn, SYNC_MOVE, t),
                    handle,
                    AlignmentMove(SYNC_MOVE, t.activity),
                ))

        # 2) Model moves: any enabled transition, trace position unchanged
        for t in enabled:
            relax(SearchNode(
                fire(marking, t.id, index),
                current.trace_index,
                current.cost + _move_cost(cost_fn, MODEL_MOVE, t),
                handle,
                AlignmentMove(MODEL_MOVE, t.activity),
            ))

        # 3) Log move: skip the next token
        if pending is not None:
            relax(SearchNode(
                marking,
                current.trace_index + 1,
                current.cost + _move_cost(cost_fn, LOG_MOVE),
                handle,
                AlignmentMove(LOG_MOVE, pending),
            ))

    logger.warning(f"Alignment search exhausted after {expansions} expansions without reaching a goal state")
    return AlignmentResult((), math.inf, SearchStatus.EXHAUSTED, expansions, None)


def compute_alignment_fitness(alignment: Sequence[AlignmentMove], cost: float) -> float:
    """
    Alignment-based fitness in [0, 1]; 1 means only synchronous moves.

    An empty alignment scores 1 when its cost is 0 (empty trace on a net
    that already accepts) and 0 otherwise.
    """
    if len(alignment) == 0:
        return 1.0 if cost == 0 else 0.0
    return float(np.clip(1.0 - cost / len(alignment), 0.0, 1.0))


def alignment_fitness(result: AlignmentResult) -> float:
    return compute_alignment_fitness(result.alignment, result.cost)
