"""
Graphviz DOT export and DOT-subset import.

Export goes through `graphviz.Digraph`: places are circles, transitions are
boxes, invisible transitions are black bars with an empty label. Tokens are
appended to the place label as a `\\nxN` line and arc weights other than 1
become edge labels. Quoted strings escape `\\`, `"` and newlines with a
backslash; labels are never emitted as HTML.

Import understands what export produces (and hand-written DOT of the same
shape): node statements with attribute lists and `a -> b [label=N]` edges.
Nodes of unknown shape, or only mentioned by edges, are read as places.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

from graphviz import Digraph, nohtml

from .classes import Arc, PetriNetInput, Place, Transition
from .exceptions import ParseError
from .validation import validate_model

RANK_DIRECTIONS = ('LR', 'TB', 'RL', 'BT')

PLACE_SHAPES = {'circle', 'doublecircle', 'ellipse', 'oval', 'point'}
TRANSITION_SHAPES = {'box', 'rect', 'rectangle', 'square'}

# Compared case-insensitively against the raw statement head, quotes included
STATEMENT_KEYWORDS = ('graph', 'node', 'edge')

logger = logging.getLogger(__name__)

_ID = r'"(?:[^"\\]|\\.)*"|-?(?:\.\d+|\d+(?:\.\d*)?)(?![\w.])|[^\s\[\];,="-][^\s\[\];,=]*'
_NODE_RE = re.compile(rf'^\s*({_ID})\s*\[(.*)\]\s*;?\s*$')
_EDGE_RE = re.compile(rf'^\s*({_ID})\s*->\s*({_ID})\s*(?:\[(.*)\])?\s*;?\s*$')
_ATTR_RE = re.compile(r'([A-Za-z_][\w]*)\s*=\s*("(?:[^"\\]|\\.)*"|<[^>]*>|[^\s,;\]]+)')
_TOKENS_RE = re.compile(r'^(.*)\n(?:•\s*)?x(\d+)$', re.DOTALL)
_ESCAPE_RE = re.compile(r'\\(.)', re.DOTALL)
_UNESCAPES = {'\\': '\\', '"': '"', 'n': '\n'}
_SKIP_RE = re.compile(r'^\s*((strict\s+)?(di)?graph\b.*\{|\}|\{|(graph|node|edge)\s*\[.*\]\s*;?|[A-Za-z_]\w*\s*=.*|subgraph\b.*|//.*|#.*|rank\s*=.*)\s*$')


def _escape(text: str) -> str:
    return text.replace('\\', '\\\\').replace('"', '\\"').replace('\n', '\\n')


def _unescape(text: str) -> str:
    # Other escapes such as \l are DOT layout hints and stay verbatim
    return _ESCAPE_RE.sub(lambda m: _UNESCAPES.get(m.group(1), m.group(0)), text)


def _place_text(place: Place) -> str:
    text = place.label if place.label else place.id
    if place.tokens > 0 or _TOKENS_RE.match(text):
        text += f"\nx{place.tokens}"
    return text


def to_dot(model: PetriNetInput, rankdir: str = 'LR', label: Optional[str] = None) -> str:
    """
    Render a model as DOT source.

    Parameters
    ----------
    model : PetriNetInput
        The model to render.
    rankdir : str, default='LR'
        One of LR, TB, RL, BT.
    label : str, optional
        Graph caption placed at the top.
    """
    if rankdir not in RANK_DIRECTIONS:
        raise ValueError(f"rankdir must be one of {RANK_DIRECTIONS}, got '{rankdir}'")

    viz = Digraph(name='PetriNet', engine='dot')
    viz.attr(rankdir=rankdir, bgcolor='white')
    if label:
        viz.attr(labelloc='t', label=nohtml(_escape(label)))
    viz.attr('node', fontsize='12')
    viz.attr('edge', fontsize='10', arrowsize='0.8')

    for p in model.places:
        viz.node(nohtml(_escape(p.id)), label=nohtml(_escape(_place_text(p))), shape='circle',
                 style='filled', fillcolor='#f2f7ff', color='#3b82f6')

    for t in model.transitions:
        if t.is_invisible:
            viz.node(nohtml(_escape(t.id)), label='', shape='box', style='filled', fillcolor='black',
                     height='0.3', width='0.15')
        else:
            viz.node(nohtml(_escape(t.id)), label=nohtml(_escape(t.label)), shape='box', style='filled',
                     fillcolor='#fff7ed', color='#f97316', height='0.3', width='0.6')

    for a in model.arcs:
        if a.weight != 1:
            viz.edge(_escape(a.source), _escape(a.target), label=str(a.weight))
        else:
            viz.edge(_escape(a.source), _escape(a.target))

    return viz.source


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return _unescape(value[1:-1])
    if len(value) >= 2 and value[0] == '<' and value[-1] == '>':
        return value[1:-1]
    return value


def _unquote_id(value: str) -> str:
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return _unescape(value[1:-1])
    return value


def _parse_attrs(text: Optional[str]) -> Dict[str, str]:
    if not text:
        return {}
    return {key: _unquote(value) for key, value in _ATTR_RE.findall(text)}


def parse_dot(text: str) -> PetriNetInput:
    """
    Parse the DOT subset into a validated model.

    Raises
    ------
    ParseError
        If there is no digraph header, a statement is not understood, or an
        edge label is not a positive integer weight.
    """
    if not re.search(r'^\s*(strict\s+)?digraph\b', text, re.MULTILINE):
        raise ParseError('Input is not a DOT digraph.')

    # node id -> (kind, label, tokens), in declaration order
    nodes: Dict[str, Tuple[str, Optional[str], int]] = {}
    edges: List[Arc] = []

    def declare(node_id: str) -> None:
        if node_id not in nodes:
            nodes[node_id] = ('place', None, 0)

    for lineno, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line:
            continue

        match = _EDGE_RE.match(line)
        if match:
            source, target = _unquote_id(match.group(1)), _unquote_id(match.group(2))
            attrs = _parse_attrs(match.group(3))
            weight = 1
            if attrs.get('label'):
                try:
                    weight = int(attrs['label'])
                except ValueError:
                    raise ParseError(f"Line {lineno}: edge label must be an integer weight, got '{attrs['label']}'") from None
            declare(source)
            declare(target)
            edges.append(Arc(source, target, weight))
            continue

        # `node [...]` sets defaults; `"node" [...]` declares a node with that id
        match = _NODE_RE.match(line)
        if match and match.group(1).lower() not in STATEMENT_KEYWORDS:
            node_id = _unquote_id(match.group(1))
            attrs = _parse_attrs(match.group(2))
            shape = attrs.get('shape', '').lower()
            kind = 'transition' if shape in TRANSITION_SHAPES else 'place'
            label = attrs.get('label')
            tokens = 0
            if kind == 'place' and label is not None:
                token_match = _TOKENS_RE.match(label)
                if token_match:
                    label, tokens = token_match.group(1), int(token_match.group(2))
            if kind == 'place' and label == node_id:
                label = None
            nodes[node_id] = (kind, label or None, tokens)
            continue

        if _SKIP_RE.match(line):
            continue
        raise ParseError(f"Line {lineno}: unsupported DOT statement: {line}")

    places = [Place(nid, label, tokens) for nid, (kind, label, tokens) in nodes.items() if kind == 'place']
    transitions = [Transition(nid, label) for nid, (kind, label, _) in nodes.items() if kind == 'transition']
    logger.debug(f"DOT: {len(places)} places, {len(transitions)} transitions, {len(edges)} arcs")
    return validate_model(PetriNetInput(places, transitions, edges))
