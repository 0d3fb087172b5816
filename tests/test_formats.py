"""PNML, DOT and Mermaid converters."""

import pytest

from petri_workbench.classes import Arc, PetriNetInput, Place, Transition
from petri_workbench.dot import parse_dot, to_dot
from petri_workbench.exceptions import ParseError
from petri_workbench.mermaid import parse_mermaid, to_mermaid
from petri_workbench.parser import parse_petri_net, serialize_petri_net
from petri_workbench.pnml import parse_pnml, to_pnml


@pytest.fixture
def rich_model():
    return PetriNetInput(
        places=[
            Place('start', 'Order received', 2),
            Place('p_1'),
            Place('p_2', 'Waiting room'),
            Place('end'),
        ],
        transitions=[
            Transition('t_check', 'Check order'),
            Transition('t_skip'),
            Transition('t_ship', 'Ship'),
        ],
        arcs=[
            Arc('start', 't_check', 2),
            Arc('t_check', 'p_1'),
            Arc('p_1', 't_skip'),
            Arc('t_skip', 'p_2', 3),
            Arc('p_2', 't_ship'),
            Arc('t_ship', 'end'),
        ],
    )


@pytest.mark.parametrize('fmt', ['json', 'pnml', 'dot', 'mermaid'])
def test_round_trip(rich_model, fmt):
    assert parse_petri_net(serialize_petri_net(rich_model, fmt), fmt) == rich_model


@pytest.mark.parametrize('fmt', ['json', 'pnml', 'dot', 'mermaid'])
def test_sample_round_trip(sample_model, fmt):
    assert parse_petri_net(serialize_petri_net(sample_model, fmt), fmt) == sample_model


def _single_step_model(place_id, transition_id, label=None):
    return PetriNetInput(
        places=[Place(place_id, label, 2), Place('sink', label)],
        transitions=[Transition(transition_id, label or 'Go')],
        arcs=[Arc(place_id, transition_id), Arc(transition_id, 'sink', 2)],
    )


@pytest.mark.parametrize('place_id, transition_id', [
    ('node', 'edge'),
    ('graph', 'Node'),
    ('strict', 'subgraph'),
    ('-1', '-2.5'),
    ('.5', '7'),
    ('a b', 'say "hi"'),
    ('back\\slash', 'digraph'),
])
def test_dot_round_trip_of_unusual_ids(place_id, transition_id):
    model = _single_step_model(place_id, transition_id)
    assert parse_dot(to_dot(model)) == model


@pytest.mark.parametrize('place_id, transition_id', [
    ('end', 'style'),
    ('graph', 'class'),
    ('flowchart', 'click'),
    ('subgraph', 'direction'),
])
def test_mermaid_round_trip_of_keyword_ids(place_id, transition_id):
    model = _single_step_model(place_id, transition_id)
    assert parse_mermaid(to_mermaid(model)) == model


@pytest.mark.parametrize('fmt', ['dot', 'mermaid'])
@pytest.mark.parametrize('label', [
    'tail\\',
    '<b>',
    'a "quoted" word',
    'two\nlines',
    'literal \\n and \\"',
    'Start (x4)',
    'Start\nx4',
    ' padded ',
    'x [y]',
])
def test_round_trip_of_unusual_labels(fmt, label):
    model = _single_step_model('P0', 'T0', label)
    assert parse_petri_net(serialize_petri_net(model, fmt), fmt) == model


class TestPnml:

    def test_export_layout(self, sample_model):
        text = to_pnml(sample_model)
        assert text.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        assert '<page id="page1">' in text
        assert '<arc id="a0" source="P0" target="T0"' in text
        assert '<initialMarking>' in text
        assert '<inscription>' not in text

    def test_namespaced_document_with_braced_marking(self):
        text = """<?xml version="1.0" encoding="UTF-8"?>
<pnml xmlns="http://www.pnml.org/version-2009/grammar/pnml">
  <net id="n1" type="http://www.pnml.org/version-2009/grammar/ptnet">
    <page id="pg">
      <place id="p1">
        <name><text>Start</text></name>
        <initialMarking><text>{2}</text></initialMarking>
      </place>
      <transition id="t1"><name><text>Go</text></name></transition>
      <arc id="a1" source="p1" target="t1">
        <inscription><text>2</text></inscription>
      </arc>
    </page>
  </net>
</pnml>"""
        model = parse_pnml(text)
        assert model.places == (Place('p1', 'Start', 2),)
        assert model.transitions == (Transition('t1', 'Go'),)
        assert model.arcs == (Arc('p1', 't1', 2),)

    def test_net_without_page(self):
        model = parse_pnml('<pnml><net id="n"><place id="p"/><transition id="t"/></net></pnml>')
        assert model.place_ids == ('p',)
        assert model.transitions[0].is_invisible

    @pytest.mark.parametrize('text, message', [
        ('<pnml></pnml>', 'No Petri net found in PNML file'),
        ('<pnml><net>', 'Invalid XML format'),
        ('<pnml><net><place/></net></pnml>', "without 'id'"),
        ('<pnml><net><place id="p"/><transition id="t"/><arc source="p"/></net></pnml>', "without 'target'"),
        ('<pnml><net><place id="p"><initialMarking><text>many</text></initialMarking></place></net></pnml>',
         'must be an integer'),
        ('<pnml><net><place id="p"/><arc source="p" target="q"/></net></pnml>', 'Arc.to not found: q'),
    ])
    def test_errors(self, text, message):
        with pytest.raises(ParseError, match=message):
            parse_pnml(text)


class TestDot:

    def test_export_shapes_and_options(self, sample_model):
        text = to_dot(sample_model, rankdir='TB', label='Pipeline')
        assert text.startswith('digraph PetriNet {')
        assert 'rankdir=TB' in text
        assert 'Pipeline' in text
        assert 'shape=circle' in text
        assert 'shape=box' in text
        assert 'P1 -> T1' in text
        assert 'Start\\nx1' in text

    def test_labels_are_never_html(self):
        model = PetriNetInput(transitions=[Transition('T0', '<b>')])
        assert 'label="<b>"' in to_dot(model)

    def test_weights_become_edge_labels(self, rich_model):
        text = to_dot(rich_model)
        assert 't_skip -> p_2 [label=3]' in text

    def test_invalid_rankdir(self, sample_model):
        with pytest.raises(ValueError):
            to_dot(sample_model, rankdir='XY')

    def test_hand_written_dot(self):
        text = """
        digraph G {
            rankdir=LR;
            node [fontsize=10];
            // places and transitions
            "p 1" [shape=circle, label="Ready\\nx3"];
            t1 [shape=box, label="Work"];
            p1 -> t1;
            t1 -> "p 1" [label="2"];
        }
        """
        model = parse_dot(text)
        assert model.places == (Place('p 1', 'Ready', 3), Place('p1'))
        assert model.transitions == (Transition('t1', 'Work'),)
        assert model.arcs == (Arc('p1', 't1'), Arc('t1', 'p 1', 2))

    def test_unknown_shape_defaults_to_place(self):
        model = parse_dot('digraph {\n  x [shape=hexagon];\n}')
        assert model.place_ids == ('x',)

    @pytest.mark.parametrize('text, message', [
        ('graph { a -- b }', 'not a DOT digraph'),
        ('digraph {\n  a -> b [label=heavy];\n}', 'edge label must be an integer'),
        ('digraph {\n  a -- b;\n}', 'unsupported DOT statement'),
    ])
    def test_errors(self, text, message):
        with pytest.raises(ParseError, match=message):
            parse_dot(text)


class TestMermaid:

    def test_export(self, sample_model):
        lines = to_mermaid(sample_model, direction='TB').splitlines()
        assert lines[0] == 'flowchart TB'
        assert 'P0(("Start (x1)"))' in lines
        assert 'T0["Enqueue"]' in lines
        assert 'P0 --> T0' in lines

    def test_invisible_and_weighted_export(self, rich_model):
        lines = to_mermaid(rich_model).splitlines()
        assert 't_skip[""]' in lines
        assert 't_skip --|3|--> p_2' in lines
        assert 'p_1(("p_1"))' in lines

    def test_parse_long_arrows(self):
        text = (
            'flowchart TB\nP0(("Start"))\nP1(("Queued"))\nP2(("Processing (x1)"))\nP3(("Done"))\n'
            'T0["Enqueue"]\nT1["Begin"]\nT2["Finish"]\n'
            'P0 ----> T0\nT0 ----> P1\nP1 ----> T1\nT1 ----> P2\nP2 ----> T2\nT2 ----> P3'
        )
        model = parse_mermaid(text)
        assert len(model.places) == 4
        assert len(model.arcs) == 6
        assert model.get_place('P2') == Place('P2', 'Processing', 1)
        assert model.get_transition('T0').label == 'Enqueue'

    def test_parse_ignores_decorations(self):
        text = """graph LR
    %% comment
    classDef busy fill:#f96
    subgraph main
    A((Idle))
    B[Run]
    A -->|2| B
    B --> C
    end
    style A fill:#fff
    class B busy
    """
        model = parse_mermaid(text)
        assert model.arcs == (Arc('A', 'B', 2), Arc('B', 'C'))
        assert model.place_ids == ('A', 'C')
        assert model.get_place('A').label == 'Idle'
        assert model.get_transition('B').label == 'Run'

    def test_unknown_shape_defaults_to_place(self):
        model = parse_mermaid('flowchart LR\nX{"decision"}')
        assert model.place_ids == ('X',)

    def test_ids_must_be_expressible(self):
        model = PetriNetInput(places=[Place('p-1')])
        with pytest.raises(ValueError, match="cannot be expressed in Mermaid"):
            to_mermaid(model)

    def test_invalid_direction(self, sample_model):
        with pytest.raises(ValueError):
            to_mermaid(sample_model, direction='UP')

    @pytest.mark.parametrize('text, message', [
        ('flowchart LR\nA --> B --> C', 'unsupported Mermaid statement'),
        ('flowchart LR\nA --|x|--> B', 'arc weight must be an integer'),
        ('flowchart LR\nT0["tail\\"]', 'malformed Mermaid node'),
        ('flowchart LR\nP0(("open)', 'malformed Mermaid node'),
    ])
    def test_errors(self, text, message):
        with pytest.raises(ParseError, match=message):
            parse_mermaid(text)
