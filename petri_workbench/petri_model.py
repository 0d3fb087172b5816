"""
pm4py interoperability: conversion to and from pm4py Petri nets, and
model discovery with pm4py's inductive miner.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
import pm4py
from pm4py.objects.petri_net.obj import Marking as Pm4pyMarking
from pm4py.objects.petri_net.obj import PetriNet as Pm4pyPetriNet
from pm4py.objects.petri_net.utils import petri_utils

from .classes import Arc, PetriNetInput, Place, Transition
from .event_log import ACTIVITY_COLUMN, CASE_COLUMN, TIMESTAMP_COLUMN
from .validation import validate_model

logger = logging.getLogger(__name__)


def to_pm4py(model: PetriNetInput, name: str = 'net') -> Tuple[Any, Any]:
    """
    Build a pm4py Petri net from a model.

    Invisible transitions get a None label (pm4py's silent transitions);
    place labels are kept in the pm4py place properties.

    Returns
    -------
    (net, initial_marking)
    """
    net = Pm4pyPetriNet(name)
    nodes: Dict[str, Any] = {}

    for place in model.places:
        properties = {'label': place.label} if place.label else None
        pm4py_place = Pm4pyPetriNet.Place(place.id, properties=properties)
        net.places.add(pm4py_place)
        nodes[place.id] = pm4py_place

    for transition in model.transitions:
        pm4py_trans = Pm4pyPetriNet.Transition(transition.id, transition.label or None)
        net.transitions.add(pm4py_trans)
        nodes[transition.id] = pm4py_trans

    for arc in model.arcs:
        petri_utils.add_arc_from_to(nodes[arc.source], nodes[arc.target], net, weight=arc.weight)

    initial_marking = Pm4pyMarking()
    for place in model.places:
        if place.tokens > 0:
            initial_marking[nodes[place.id]] = place.tokens

    return net, initial_marking


def from_pm4py(net: Any, initial_marking: Optional[Any] = None) -> PetriNetInput:
    """
    Convert a pm4py Petri net into a validated model.

    pm4py keeps nodes in sets, so places, transitions and arcs are ordered by
    name for a deterministic result. Transitions whose name clashes with a
    place name are prefixed with 't_'.
    """
    initial_marking = initial_marking or {}

    pm4py_places = sorted(net.places, key=lambda p: str(p.name))
    place_ids = {p: str(p.name) for p in pm4py_places}
    places = _convert_places(pm4py_places, initial_marking)

    taken = set(place_ids.values())
    transition_ids: Dict[Any, str] = {}
    transitions: List[Transition] = []
    for pm4py_trans in sorted(net.transitions, key=lambda t: str(t.name)):
        transition_id = str(pm4py_trans.name)
        if transition_id in taken:
            transition_id = f"t_{transition_id}"
        taken.add(transition_id)
        transition_ids[pm4py_trans] = transition_id
        transitions.append(Transition(transition_id, pm4py_trans.label or None))

    node_ids = {**place_ids, **transition_ids}
    arcs = sorted(
        (Arc(node_ids[a.source], node_ids[a.target], int(getattr(a, 'weight', 1))) for a in net.arcs),
        key=lambda a: (a.source, a.target),
    )

    model = PetriNetInput(places, transitions, arcs)
    logger.debug(f"Converted pm4py net to {model!r}")
    return validate_model(model)


def _convert_places(pm4py_places: List[Any], initial_marking: Any) -> List[Place]:
    places = []
    for pm4py_place in pm4py_places:
        properties = getattr(pm4py_place, 'properties', None) or {}
        places.append(Place(
            id=str(pm4py_place.name),
            label=properties.get('label'),
            tokens=int(initial_marking.get(pm4py_place, 0)),
        ))
    return places


def prepare_df_for_discovery(
    df: pd.DataFrame,
    case_id_key: str = CASE_COLUMN,
    timestamp_key: str = TIMESTAMP_COLUMN,
) -> pd.DataFrame:
    """
    Ensure the timestamp column pm4py expects exists.

    Logs without timestamps get the per-case event position as a proxy.
    """
    df_copy = df.copy()
    if timestamp_key in df_copy.columns:
        df_copy[timestamp_key] = pd.to_datetime(df_copy[timestamp_key], utc=True)
    else:
        df_copy[timestamp_key] = pd.to_datetime(df_copy.groupby(case_id_key).cumcount(), unit='s', utc=True)
    return df_copy


def discover_petri_net(
    df: pd.DataFrame,
    activity_key: str = ACTIVITY_COLUMN,
    case_id_key: str = CASE_COLUMN,
    timestamp_key: str = TIMESTAMP_COLUMN,
) -> PetriNetInput:
    """
    Discover a Petri net from an event DataFrame with the inductive miner.

    Parameters
    ----------
    df : pd.DataFrame
        One row per event.
    activity_key, case_id_key, timestamp_key : str
        Column names; default to pm4py's XES convention.

    Returns
    -------
    PetriNetInput
        The discovered net with its initial marking as place tokens.
    """
    prep_df = prepare_df_for_discovery(df, case_id_key, timestamp_key)
    net, init_marking, _final_marking = pm4py.discover_petri_net_inductive(
        prep_df,
        activity_key=activity_key,
        case_id_key=case_id_key,
        timestamp_key=timestamp_key,
    )
    model = from_pm4py(net, init_marking)
    logger.info(f"Discovered {model!r} from {prep_df[case_id_key].nunique()} cases")
    return model
