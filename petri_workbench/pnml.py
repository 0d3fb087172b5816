"""
PNML (Petri Net Markup Language) import and export.

Only the place/transition core is read: ids, `<name><text>` labels,
`<initialMarking><text>` tokens and `<inscription><text>` arc weights.
Graphics, tool-specific data and page structure are ignored on input.
"""

import logging
import re
import xml.etree.ElementTree as ET
from typing import Optional

from .classes import Arc, PetriNetInput, Place, Transition
from .exceptions import ParseError
from .validation import validate_model

PNML_NET_TYPE = 'http://www.pnml.org/version-2009/grammar/ptnet'

logger = logging.getLogger(__name__)


def _strip_namespace(elem: ET.Element) -> None:
    for node in elem.iter():
        if isinstance(node.tag, str) and '}' in node.tag:
            node.tag = node.tag.split('}', 1)[1]


def _text_of(parent: ET.Element, *path_parts: str) -> Optional[str]:
    elem = parent
    for part in path_parts:
        elem = elem.find(part)
        if elem is None:
            return None
    text = elem.find('text')
    if text is not None and text.text is not None:
        return text.text.strip()
    if elem.text and elem.text.strip():
        return elem.text.strip()
    return None


def _parse_count(raw: Optional[str], what: str, default: int, minimum: int) -> int:
    if raw is None or raw == '':
        return default
    # Some exporters wrap numbers in braces, e.g. {2}
    cleaned = re.sub(r'^\{\s*(.*?)\s*\}$', r'\1', raw)
    try:
        value = int(cleaned)
    except ValueError:
        raise ParseError(f"{what} must be an integer, got '{raw}'") from None
    if value < minimum:
        raise ParseError(f"{what} must be >= {minimum}, got {value}")
    return value


def _required_attr(elem: ET.Element, name: str) -> str:
    value = elem.get(name)
    if not value:
        raise ParseError(f"<{elem.tag}> element without '{name}' attribute")
    return value


def parse_pnml(text: str) -> PetriNetInput:
    """
    Parse PNML text into a validated model.

    Raises
    ------
    ParseError
        On XML syntax errors, a document without `<net>`, elements missing
        their ids, or non-integer markings and inscriptions.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise ParseError(f"Invalid XML format: {exc}") from None
    _strip_namespace(root)

    net = root if root.tag == 'net' else root.find('.//net')
    if net is None:
        raise ParseError('No Petri net found in PNML file')

    places = []
    for elem in net.iter('place'):
        pid = _required_attr(elem, 'id')
        tokens = _parse_count(_text_of(elem, 'initialMarking'), f"Place {pid} initialMarking", 0, 0)
        places.append(Place(pid, _text_of(elem, 'name'), tokens))

    transitions = []
    for elem in net.iter('transition'):
        tid = _required_attr(elem, 'id')
        transitions.append(Transition(tid, _text_of(elem, 'name')))

    arcs = []
    for elem in net.iter('arc'):
        source = _required_attr(elem, 'source')
        target = _required_attr(elem, 'target')
        weight = _parse_count(_text_of(elem, 'inscription'), f"Arc {source} -> {target} inscription", 1, 1)
        arcs.append(Arc(source, target, weight))

    logger.debug(f"PNML net {net.get('id')!r}: {len(places)} places, {len(transitions)} transitions, {len(arcs)} arcs")
    return validate_model(PetriNetInput(places, transitions, arcs))


def _add_text(parent: ET.Element, tag: str, value: str) -> None:
    ET.SubElement(ET.SubElement(parent, tag), 'text').text = value


def to_pnml(model: PetriNetInput, net_id: str = 'net1') -> str:
    """
    Serialize a model to PNML.

    Zero initial markings and unit inscriptions are omitted; labels are
    written only when present.
    """
    root = ET.Element('pnml')
    net = ET.SubElement(root, 'net', {'id': net_id, 'type': PNML_NET_TYPE})
    page = ET.SubElement(net, 'page', {'id': 'page1'})

    for p in model.places:
        elem = ET.SubElement(page, 'place', {'id': p.id})
        if p.label:
            _add_text(elem, 'name', p.label)
        if p.tokens > 0:
            _add_text(elem, 'initialMarking', str(p.tokens))

    for t in model.transitions:
        elem = ET.SubElement(page, 'transition', {'id': t.id})
        if t.label:
            _add_text(elem, 'name', t.label)

    for i, a in enumerate(model.arcs):
        elem = ET.SubElement(page, 'arc', {'id': f"a{i}", 'source': a.source, 'target': a.target})
        if a.weight != 1:
            _add_text(elem, 'inscription', str(a.weight))

    ET.indent(root, space='  ')
    body = ET.tostring(root, encoding='unicode')
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + body + '\n'
