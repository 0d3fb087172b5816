"""
Canonical JSON model handling and format dispatch.

`parse_petri_net(text, fmt)` turns JSON, PNML, DOT-subset or Mermaid-subset
text into a validated `PetriNetInput`; `serialize_petri_net(model, fmt)` is
its inverse. The JSON shape is `{places, transitions, arcs}` with arcs given
as `{from, to, weight?, arcType?}`.
"""

import json
import logging
from typing import Any, Dict, List

from .classes import ARC_STANDARD, Arc, PetriNetInput, Place, Transition
from .dot import parse_dot, to_dot
from .exceptions import ParseError
from .mermaid import parse_mermaid, to_mermaid
from .pnml import parse_pnml, to_pnml
from .validation import validate_model

SUPPORTED_FORMATS = ('json', 'pnml', 'dot', 'mermaid')

logger = logging.getLogger(__name__)


def _as_list(value: Any, name: str) -> List[Any]:
    if not isinstance(value, list):
        raise ParseError(f"{name} must be an array.")
    return value


def _as_object(value: Any, name: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ParseError(f"{name} must be an object.")
    return value


def _as_string(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise ParseError(f"{name} must be a string.")
    return value


def _optional_label(obj: Dict[str, Any], name: str):
    label = obj.get('label')
    if label is None:
        return None
    return _as_string(label, name)


def _as_int(value: Any, name: str, minimum: int) -> int:
    # JSON numbers like 2.0 are accepted when integral
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParseError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ParseError(f"{name} must be an integer, got {value!r}")
        value = int(value)
    if value < minimum:
        raise ParseError(f"{name} must be >= {minimum}, got {value}")
    return value


def model_from_dict(obj: Any) -> PetriNetInput:
    """
    Build a validated model from a decoded JSON object.

    Arc endpoints are read from `from`/`to`, with `sourceId`/`targetId`
    accepted as aliases. Missing `tokens` defaults to 0, missing `weight` to 1.
    """
    root = _as_object(obj, 'Root')

    places = []
    for raw in _as_list(root.get('places'), 'places'):
        p = _as_object(raw, 'place')
        pid = _as_string(p.get('id'), 'place.id')
        tokens = p.get('tokens')
        tokens = 0 if tokens is None else _as_int(tokens, f"place {pid} tokens", 0)
        places.append(Place(pid, _optional_label(p, 'place.label'), tokens))

    transitions = []
    for raw in _as_list(root.get('transitions'), 'transitions'):
        t = _as_object(raw, 'transition')
        tid = _as_string(t.get('id'), 'transition.id')
        transitions.append(Transition(tid, _optional_label(t, 'transition.label')))

    arcs = []
    for raw in _as_list(root.get('arcs'), 'arcs'):
        a = _as_object(raw, 'arc')
        source = _as_string(a.get('from', a.get('sourceId')), 'arc.from')
        target = _as_string(a.get('to', a.get('targetId')), 'arc.to')
        weight = a.get('weight')
        weight = 1 if weight is None else _as_int(weight, f"arc {source} -> {target} weight", 1)
        arc_type = _as_string(a.get('arcType', ARC_STANDARD), 'arc.arcType')
        arcs.append(Arc(source, target, weight, arc_type))

    return validate_model(PetriNetInput(places, transitions, arcs))


def model_to_dict(model: PetriNetInput) -> Dict[str, Any]:
    """Canonical JSON object; `tokens=0`, `weight=1` and absent labels are omitted."""
    places = []
    for p in model.places:
        entry: Dict[str, Any] = {'id': p.id}
        if p.label is not None:
            entry['label'] = p.label
        if p.tokens:
            entry['tokens'] = p.tokens
        places.append(entry)

    transitions = []
    for t in model.transitions:
        entry = {'id': t.id}
        if t.label is not None:
            entry['label'] = t.label
        transitions.append(entry)

    arcs = []
    for a in model.arcs:
        entry = {'from': a.source, 'to': a.target}
        if a.weight != 1:
            entry['weight'] = a.weight
        if a.arc_type != ARC_STANDARD:
            entry['arcType'] = a.arc_type
        arcs.append(entry)

    return {'places': places, 'transitions': transitions, 'arcs': arcs}


def parse_json(text: str) -> PetriNetInput:
    try:
        obj = json.loads(text)
    except (TypeError, ValueError):
        raise ParseError('Input is not valid JSON.') from None
    return model_from_dict(obj)


def to_json(model: PetriNetInput, indent: int = 2) -> str:
    return json.dumps(model_to_dict(model), indent=indent)


_PARSERS = {
    'json': parse_json,
    'pnml': parse_pnml,
    'dot': parse_dot,
    'mermaid': parse_mermaid,
}

_SERIALIZERS = {
    'json': to_json,
    'pnml': to_pnml,
    'dot': to_dot,
    'mermaid': to_mermaid,
}


def _normalize_format(fmt: str) -> str:
    key = (fmt or '').strip().lower()
    if key == 'mmd':
        key = 'mermaid'
    elif key == 'gv':
        key = 'dot'
    if key not in SUPPORTED_FORMATS:
        raise ValueError(f"Unsupported format '{fmt}'. Expected one of {SUPPORTED_FORMATS}")
    return key


def parse_petri_net(text: str, fmt: str = 'json') -> PetriNetInput:
    """
    Parse model text in the given format into a validated canonical model.

    Raises
    ------
    ParseError
        If the text is malformed or the model violates a structural invariant.
    ValueError
        If `fmt` is not one of SUPPORTED_FORMATS.
    """
    key = _normalize_format(fmt)
    model = _PARSERS[key](text)
    logger.debug(f"Parsed {key} model: {model!r}")
    return model


def serialize_petri_net(model: PetriNetInput, fmt: str = 'json') -> str:
    return _SERIALIZERS[_normalize_format(fmt)](model)


def format_from_filename(filename: str) -> str:
    """Guess the model format from a file extension (defaults to json)."""
    suffix = filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''
    if suffix in ('pnml', 'xml'):
        return 'pnml'
    if suffix in ('dot', 'gv'):
        return 'dot'
    if suffix in ('mmd', 'mermaid'):
        return 'mermaid'
    return 'json'
