"""
Helper functions shared across the workbench: move-cost functions,
search parameter validation and logging setup.
"""

import logging
from typing import Callable, Optional, Union

from .classes import LOG_MOVE, MODEL_MOVE, SYNC_MOVE, Transition

MoveType = str
CostFunction = Callable[[MoveType, Optional[Transition]], float]

DEFAULT_MAX_EXPANSIONS = 10_000

logger = logging.getLogger(__name__)


def setup_logging(level=logging.INFO):
    """
    Set up logging configuration for command-line use.

    Parameters
    ----------
    level : int, default=logging.INFO
        Logging level (logging.DEBUG, logging.INFO, logging.WARNING, etc.)
    """
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler()
        ]
    )


def _validate_cost(name: str, value: Union[int, float]) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{name} must be a number, got {type(value)}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return float(value)


def make_cost_function(
    sync_move: Union[int, float] = 0,
    model_move: Union[int, float] = 1,
    log_move: Union[int, float] = 1,
    tau_move: Union[int, float] = 0,
) -> CostFunction:
    """
    Build f(move_type, transition) -> cost for the alignment search.

    Defaults:
      - sync:  0
      - model: 1 (visible transition)
      - tau:   0 (model move of an invisible transition)
      - log:   1

    All costs must be non-negative; uniform-cost search relies on it.
    """
    costs = {
        SYNC_MOVE: _validate_cost('sync_move', sync_move),
        MODEL_MOVE: _validate_cost('model_move', model_move),
        LOG_MOVE: _validate_cost('log_move', log_move),
    }
    tau_cost = _validate_cost('tau_move', tau_move)

    def cost_fn(move_type: MoveType, transition: Optional[Transition] = None) -> float:
        if move_type == MODEL_MOVE and transition is not None and transition.is_invisible:
            return tau_cost
        try:
            return costs[move_type]
        except KeyError:
            raise ValueError(f"Unknown move type '{move_type}'") from None

    return cost_fn


def validate_search_parameters(max_expansions: int) -> None:
    """
    Validate alignment search parameters.

    Raises
    ------
    TypeError
        If `max_expansions` is not an integer.
    ValueError
        If `max_expansions` is not positive.
    """
    if isinstance(max_expansions, bool) or not isinstance(max_expansions, int):
        raise TypeError(f"max_expansions must be an integer, got {type(max_expansions)}")
    if max_expansions <= 0:
        raise ValueError(f"max_expansions must be positive, got {max_expansions}")
