import pytest

from petri_workbench.classes import Arc, PetriNetInput, Place, Transition
from petri_workbench.editing import (
    add_arc,
    add_place,
    add_transition,
    is_valid_connection,
    next_free_id,
    remove_arc,
    remove_node,
    set_label,
    set_tokens,
)
from petri_workbench.exceptions import ParseError


def test_next_free_id_scans_both_collections(sample_model):
    assert next_free_id(sample_model, 'P') == 'P4'
    assert next_free_id(sample_model, 'T') == 'T3'
    model = PetriNetInput(places=[Place('X0')], transitions=[Transition('X1')])
    assert next_free_id(model, 'X') == 'X2'
    assert next_free_id(PetriNetInput(), 'P') == 'P0'


def test_add_nodes_returns_new_model(sample_model):
    model = add_place(sample_model, label='Archive', tokens=2)
    model = add_transition(model, label='Archive it')
    assert model.get_place('P4') == Place('P4', 'Archive', 2)
    assert model.get_transition('T3') == Transition('T3', 'Archive it')
    assert len(sample_model.places) == 4


def test_add_node_with_taken_id_is_rejected(sample_model):
    with pytest.raises(ParseError, match='Id used by both'):
        add_transition(sample_model, transition_id='P0')


def test_add_arc(sample_model):
    model = add_arc(sample_model, 'P3', 'T0', weight=2)
    assert model.arcs[-1] == Arc('P3', 'T0', 2)


@pytest.mark.parametrize('source, target', [('P0', 'P1'), ('T0', 'T1'), ('P0', 'TX'), ('PX', 'T0')])
def test_add_arc_rejects_invalid_connections(sample_model, source, target):
    assert not is_valid_connection(sample_model, source, target)
    with pytest.raises(ValueError, match='Invalid connection'):
        add_arc(sample_model, source, target)


def test_remove_node_drops_incident_arcs(sample_model):
    model = remove_node(sample_model, 'P1')
    assert 'P1' not in model.place_ids
    assert Arc('T0', 'P1') not in model.arcs
    assert Arc('P1', 'T1') not in model.arcs
    assert len(model.arcs) == 4

    model = remove_node(model, 'T2')
    assert model.transition_ids == ('T0', 'T1')
    assert len(model.arcs) == 2


def test_remove_arc(sample_model):
    model = remove_arc(sample_model, 'P0', 'T0')
    assert len(model.arcs) == 5
    assert remove_arc(model, 'P0', 'T0') == model


def test_set_tokens_clamps_at_zero(sample_model):
    assert set_tokens(sample_model, 'P2', 3).get_place('P2').tokens == 3
    assert set_tokens(sample_model, 'P0', -4).get_place('P0').tokens == 0
    with pytest.raises(ValueError, match='Unknown place: T0'):
        set_tokens(sample_model, 'T0', 1)


def test_set_label(sample_model):
    model = set_label(sample_model, 'T0', 'Queue up')
    assert model.get_transition('T0').label == 'Queue up'
    model = set_label(model, 'P0', None)
    assert model.get_place('P0').label is None
    with pytest.raises(ValueError, match='Unknown node'):
        set_label(sample_model, 'Z', 'x')
