"""
Mermaid flowchart export and Mermaid-subset import.

Places are written as circles `P0(("Start (x1)"))`, transitions as boxes
`T0["Enqueue"]` (`T0[""]` when invisible) and arcs as `P0 --> T0`, or
`P0 --|2|--> T0` when the weight is not 1. Inside quoted labels `\\`, `"`
and newlines are backslash-escaped.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

from .classes import Arc, PetriNetInput, Place, Transition
from .exceptions import ParseError
from .validation import validate_model

DIRECTIONS = ('LR', 'TB', 'TD', 'RL', 'BT')

logger = logging.getLogger(__name__)

_ID_RE = re.compile(r'^[A-Za-z0-9_]+$')
_HEADER_RE = re.compile(r'^(flowchart|graph)(\s+\w+)?\s*;?$')
_QUOTED = r'"((?:[^"\\]|\\.)*)"'
_PLACE_RE = re.compile(rf'^(\w+)\(\((?:{_QUOTED}|([^()"]*))\)\)\s*;?$')
_TRANSITION_RE = re.compile(rf'^(\w+)\[(?:{_QUOTED}|([^\[\]"]*))\]\s*;?$')
# Plain circles and boxes; `(((`, `[[`, `[(`, `[/` and `[\` are other shapes
_PLACE_START_RE = re.compile(r'^\w+\(\((?!\()')
_TRANSITION_START_RE = re.compile(r'^\w+\[(?![\[(/\\])')
_OTHER_NODE_RE = re.compile(r'^(\w+)\s*[\(\[\{>].*[\)\]\}]\s*;?$')
_EDGE_RE = re.compile(r'^(\w+)\s*-{2,}(?:\|([^|]*)\|-*)?>\s*(?:\|([^|]*)\|\s*)?(\w+)\s*;?$')
_TOKENS_RE = re.compile(r'^(.*?)\s?\(x(\d+)\)$', re.DOTALL)
_SKIP_RE = re.compile(r'^(%%|(classDef|class|style|linkStyle|subgraph|direction|click)\b|end$)')
_ESCAPE_RE = re.compile(r'\\(.)', re.DOTALL)
_UNESCAPES = {'\\': '\\', '"': '"', 'n': '\n'}


def _escape(text: str) -> str:
    return text.replace('\\', '\\\\').replace('"', '\\"').replace('\n', '\\n')


def _unescape(text: str) -> str:
    return _ESCAPE_RE.sub(lambda m: _UNESCAPES.get(m.group(1), m.group(0)), text)


def _check_id(node_id: str) -> str:
    if not _ID_RE.match(node_id):
        raise ValueError(f"Id '{node_id}' cannot be expressed in Mermaid (use letters, digits and '_')")
    return node_id


def _place_text(place: Place) -> str:
    text = place.label if place.label else place.id
    if place.tokens > 0 or _TOKENS_RE.match(text):
        text += f" (x{place.tokens})"
    return text


def to_mermaid(model: PetriNetInput, direction: str = 'LR') -> str:
    """
    Convert a model to Mermaid flowchart syntax.

    Raises
    ------
    ValueError
        If the direction is unknown or an id contains characters Mermaid
        node ids cannot carry.
    """
    if direction not in DIRECTIONS:
        raise ValueError(f"direction must be one of {DIRECTIONS}, got '{direction}'")

    lines = [f"flowchart {direction}"]
    for p in model.places:
        lines.append(f'{_check_id(p.id)}(("{_escape(_place_text(p))}"))')
    for t in model.transitions:
        label = t.label if t.label else ''
        lines.append(f'{_check_id(t.id)}["{_escape(label)}"]')
    for a in model.arcs:
        arrow = f"--|{a.weight}|-->" if a.weight != 1 else '-->'
        lines.append(f"{_check_id(a.source)} {arrow} {_check_id(a.target)}")
    return '\n'.join(lines)


def _parse_weight(raw: Optional[str], lineno: int) -> int:
    if raw is None or not raw.strip():
        return 1
    try:
        return int(raw.strip())
    except ValueError:
        raise ParseError(f"Line {lineno}: arc weight must be an integer, got '{raw}'") from None


def parse_mermaid(text: str) -> PetriNetInput:
    """
    Parse the Mermaid flowchart subset into a validated model.

    Raises
    ------
    ParseError
        If a line is not a header, node, edge or ignorable statement, a
        circle or box node is malformed, or a weight is not an integer.
    """
    # node id -> (kind, label, tokens), in declaration order
    nodes: Dict[str, Tuple[str, Optional[str], int]] = {}
    edges: List[Arc] = []

    for lineno, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or _HEADER_RE.match(line):
            continue

        match = _EDGE_RE.match(line)
        if match:
            source, target = match.group(1), match.group(4)
            weight = _parse_weight(match.group(2) if match.group(2) is not None else match.group(3), lineno)
            for node_id in (source, target):
                nodes.setdefault(node_id, ('place', None, 0))
            edges.append(Arc(source, target, weight))
            continue

        match = _PLACE_RE.match(line)
        if match:
            node_id = match.group(1)
            label = _unescape(match.group(2)) if match.group(2) is not None else match.group(3).strip()
            tokens = 0
            token_match = _TOKENS_RE.match(label)
            if token_match:
                label, tokens = token_match.group(1), int(token_match.group(2))
            nodes[node_id] = ('place', None if label == node_id or not label else label, tokens)
            continue

        match = _TRANSITION_RE.match(line)
        if match:
            if match.group(2) is not None:
                label = _unescape(match.group(2))
            else:
                label = match.group(3).strip()
            nodes[match.group(1)] = ('transition', label or None, 0)
            continue

        if _PLACE_START_RE.match(line) or _TRANSITION_START_RE.match(line):
            raise ParseError(f"Line {lineno}: malformed Mermaid node: {line}")

        match = _OTHER_NODE_RE.match(line)
        if match:
            # Unknown shapes are read as places
            nodes[match.group(1)] = ('place', None, 0)
            continue

        if _SKIP_RE.match(line):
            continue
        raise ParseError(f"Line {lineno}: unsupported Mermaid statement: {line}")

    places = [Place(nid, label, tokens) for nid, (kind, label, tokens) in nodes.items() if kind == 'place']
    transitions = [Transition(nid, label) for nid, (kind, label, _) in nodes.items() if kind == 'transition']
    logger.debug(f"Mermaid: {len(places)} places, {len(transitions)} transitions, {len(edges)} arcs")
    return validate_model(PetriNetInput(places, transitions, edges))
