"""
Batch conformance checking of an event log against a model, by alignment
or by token replay.

For alignment every trace gets an independent `find_optimal_alignment` call, so
traces are distributed over joblib workers without any shared state.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from .alignment import compute_alignment_fitness, find_optimal_alignment
from .classes import LOG_MOVE, MODEL_MOVE, SYNC_MOVE, PetriNetInput, SearchStatus
from .trace import STEP_INVALID, STEP_MISSING, STEP_VALID, ReplayStep, replay_highlights
from .utils import DEFAULT_MAX_EXPANSIONS, CostFunction, validate_search_parameters
from .validation import validate_model

RESULT_COLUMNS = [
    'case_id', 'trace_length', 'cost', 'fitness', 'status',
    'n_sync', 'n_model', 'n_log', 'expansions',
]

DEVIATION_COLUMNS = ['case_id', 'step', 'activity', 'type', 'severity', 'transition_id', 'description']

DEVIATION_EXTRA = 'extra'
DEVIATION_NOT_ENABLED = 'deviation'
DEVIATION_AMBIGUOUS = 'ambiguous'

SEVERITY_LOW = 'low'
SEVERITY_MEDIUM = 'medium'
SEVERITY_HIGH = 'high'

Traces = Union[Mapping[str, Sequence[str]], Sequence[Sequence[str]]]

logger = logging.getLogger(__name__)


def _as_cases(traces: Traces) -> List[Tuple[str, List[str]]]:
    if isinstance(traces, Mapping):
        return [(str(case_id), list(trace)) for case_id, trace in traces.items()]
    return [(str(i), list(trace)) for i, trace in enumerate(traces)]


def _align_case(
    case_id: str,
    trace: Sequence[str],
    model: PetriNetInput,
    max_expansions: int,
    cost_function: Optional[CostFunction],
) -> Dict[str, Any]:
    try:
        result = find_optimal_alignment(trace, model, max_expansions, cost_function)
    except Exception:
        logger.exception(f"Alignment failed for case {case_id}")
        raise

    counts = result.move_counts()
    if result.status is SearchStatus.EXHAUSTED:
        fitness = 0.0
    else:
        fitness = compute_alignment_fitness(result.alignment, result.cost)

    return {
        'case_id': case_id,
        'trace_length': len(trace),
        'cost': result.cost,
        'fitness': fitness,
        'status': result.status.value,
        'n_sync': counts[SYNC_MOVE],
        'n_model': counts[MODEL_MOVE],
        'n_log': counts[LOG_MOVE],
        'expansions': result.expansions,
    }


def check_log_conformance(
    traces: Traces,
    model: PetriNetInput,
    n_jobs: int = 1,
    max_expansions: int = DEFAULT_MAX_EXPANSIONS,
    cost_function: Optional[CostFunction] = None,
    verbose: int = 0,
) -> pd.DataFrame:
    """
    Align every trace of a log against `model`.

    Parameters
    ----------
    traces : mapping or sequence
        Case id -> activity tokens, or a plain sequence of traces (case ids
        are then their positions as strings).
    model : PetriNetInput
        Validated before any trace is aligned.
    n_jobs : int, default=1
        joblib worker count; 1 runs sequentially, -1 uses all cores.
    max_expansions : int, default=10000
        Per-trace expansion cap.
    cost_function : callable, optional
        See `utils.make_cost_function`.
    verbose : int, default=0
        joblib verbosity.

    Returns
    -------
    pd.DataFrame
        One row per case with columns `RESULT_COLUMNS`, in input order.
        Exhausted searches report cost inf and fitness 0.
    """
    validate_search_parameters(max_expansions)
    validate_model(model)

    cases = _as_cases(traces)

    logger.info(f"Checking conformance of {len(cases)} traces (n_jobs={n_jobs})")
    rows = Parallel(n_jobs=n_jobs, verbose=verbose)(
        delayed(_align_case)(case_id, trace, model, max_expansions, cost_function)
        for case_id, trace in cases
    )

    df = pd.DataFrame(rows, columns=RESULT_COLUMNS)
    n_capped = int((df['status'] == SearchStatus.CAPPED.value).sum())
    if n_capped:
        logger.warning(f"{n_capped} of {len(df)} alignments hit the expansion cap and may not be optimal")
    summary = summarize_conformance(df)
    logger.info(f"Conformance check finished: mean fitness {summary['mean_fitness']:.4f}")
    return df


def summarize_conformance(df: pd.DataFrame) -> Dict[str, Any]:
    """
    Aggregate per-trace results from `check_log_conformance`.

    Returns
    -------
    dict
        n_traces, mean_fitness (nan for an empty log), perfect_fit_ratio,
        n_capped, n_exhausted.
    """
    fitness = df['fitness'].to_numpy(dtype=float)
    statuses = df['status'].to_numpy()
    n_traces = int(fitness.size)
    return {
        'n_traces': n_traces,
        'mean_fitness': float(np.mean(fitness)) if n_traces else math.nan,
        'perfect_fit_ratio': float(np.mean(fitness == 1.0)) if n_traces else math.nan,
        'n_capped': int(np.sum(statuses == SearchStatus.CAPPED.value)),
        'n_exhausted': int(np.sum(statuses == SearchStatus.EXHAUSTED.value)),
    }


@dataclass(frozen=True)
class LogReplayResult:
    """
    Token-replay conformance of a whole log.

    `fitness` is the share of events whose transition was enabled when the
    event occurred (0 for a log without events). `deviations` has one row per
    non-conforming event with columns `DEVIATION_COLUMNS`.
    """
    deviations: pd.DataFrame
    fitness: float
    n_traces: int
    n_events: int
    n_enabled: int

    @property
    def n_deviations(self) -> int:
        return len(self.deviations)


def _step_deviation(case_id: str, step: ReplayStep) -> Optional[Dict[str, Any]]:
    if step.status == STEP_VALID:
        return None
    if step.status == STEP_MISSING:
        kind, severity = DEVIATION_EXTRA, SEVERITY_LOW
        description = f"Step #{step.step}: Event '{step.name}' not found in model"
    elif step.status == STEP_INVALID:
        kind, severity = DEVIATION_NOT_ENABLED, SEVERITY_HIGH
        description = f"Step #{step.step}: Transition '{step.name}' was executed when not enabled"
    else:
        kind, severity = DEVIATION_AMBIGUOUS, SEVERITY_MEDIUM
        description = f"Step #{step.step}: Event '{step.name}' matches several transitions"
    return {
        'case_id': case_id,
        'step': step.step,
        'activity': step.name,
        'type': kind,
        'severity': severity,
        'transition_id': step.transition_id,
        'description': description,
    }


def replay_log_conformance(traces: Traces, model: PetriNetInput) -> LogReplayResult:
    """
    Replay every trace of a log on `model` and collect deviations.

    Each trace starts from the model's own tokens. Events resolve to
    transitions by id, then by unique label (see `trace.replay_highlights`):
    - enabled transitions fire and count towards fitness
    - transitions that are not enabled are `deviation` (high severity) and
      are skipped
    - events naming no transition are `extra` (low severity)
    - labels shared by several transitions are `ambiguous` (medium severity)

    Parameters
    ----------
    traces : mapping or sequence
        As for `check_log_conformance`.
    model : PetriNetInput
        Validated before replay.

    Returns
    -------
    LogReplayResult
    """
    validate_model(model)
    cases = _as_cases(traces)

    rows: List[Dict[str, Any]] = []
    n_events = n_enabled = 0
    for case_id, trace in cases:
        highlights = replay_highlights(model, trace)
        n_events += len(highlights.sequence)
        for step in highlights.sequence:
            deviation = _step_deviation(case_id, step)
            if deviation is None:
                n_enabled += 1
            else:
                rows.append(deviation)

    fitness = n_enabled / n_events if n_events else 0.0
    deviations = pd.DataFrame(rows, columns=DEVIATION_COLUMNS)
    logger.info(
        f"Replayed {len(cases)} traces ({n_events} events): "
        f"fitness {fitness:.4f}, {len(deviations)} deviations"
    )
    return LogReplayResult(deviations, fitness, len(cases), n_events, n_enabled)
