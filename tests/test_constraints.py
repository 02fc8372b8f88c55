from types import SimpleNamespace

import pytest

from santa.services.constraints import (
    ExclusionRule,
    build_constraint_graph,
    build_exclusion_map,
    build_previous_pairs,
)
from santa.services.errors import InfeasibleConstraints


def test_exclusion_map_is_symmetric():
    assert build_exclusion_map([(1, 2)]) == {1: {2}, 2: {1}}


def test_exclusion_map_from_rules_and_rows():
    rules = [
        ExclusionRule(1, 2, reason="couple"),
        SimpleNamespace(participant_id=3, excluded_participant_id=1, reason=None),
    ]
    assert build_exclusion_map(rules) == {1: {2, 3}, 2: {1}, 3: {1}}


def test_exclusion_map_ignores_self_exclusion():
    assert build_exclusion_map([(4, 4)]) == {}
    assert build_exclusion_map(None) == {}


def test_previous_pairs_from_tuples_and_rows():
    rows = [(1, 2), SimpleNamespace(giver_id=2, receiver_id=3)]
    assert build_previous_pairs(rows) == {(1, 2), (2, 3)}


def test_graph_keeps_input_order():
    graph = build_constraint_graph([1, 2, 3, 4], {1: {2}, 2: {1}})
    assert graph.nodes == (1, 2, 3, 4)
    assert graph.receivers[1] == (3, 4)
    assert graph.receivers[3] == (1, 2, 4)
    assert graph.allows(3, 1)
    assert not graph.allows(1, 2)
    assert not graph.allows(1, 1)
    assert graph.givers_of(1) == (3, 4)


def test_graph_requires_three_participants():
    with pytest.raises(InfeasibleConstraints):
        build_constraint_graph([1, 2])


def test_graph_rejects_duplicate_ids():
    with pytest.raises(InfeasibleConstraints):
        build_constraint_graph([1, 2, 2, 3])


def test_graph_rejects_participant_without_receivers():
    exclusions = build_exclusion_map([(1, 2), (1, 3)])
    with pytest.raises(InfeasibleConstraints):
        build_constraint_graph([1, 2, 3], exclusions)


def test_graph_rejects_participant_without_givers():
    with pytest.raises(InfeasibleConstraints):
        build_constraint_graph([1, 2, 3], {1: {3}, 2: {3}})


def test_graph_precheck_is_not_a_full_feasibility_test():
    graph = build_constraint_graph(["A", "B", "C"], build_exclusion_map([("A", "B")]))
    assert graph.receivers == {"A": ("C",), "B": ("C",), "C": ("A", "B")}


def test_exclusion_map_from_dict_records():
    records = [
        {"participant_id": 1, "excluded_participant_id": 2, "reason": "couple"},
        {"participantId": 3, "excludedParticipantId": 4},
    ]
    assert build_exclusion_map(records) == {1: {2}, 2: {1}, 3: {4}, 4: {3}}


def test_previous_pairs_from_dict_records():
    records = [{"giver_id": 1, "receiver_id": 2}, {"giverId": 2, "receiverId": 3}]
    assert build_previous_pairs(records) == {(1, 2), (2, 3)}


@pytest.mark.parametrize("record", [{"participant_id": 1}, (1, 2, 3), 7])
def test_exclusion_map_rejects_unreadable_records(record):
    with pytest.raises(TypeError):
        build_exclusion_map([record])


def test_previous_pairs_reject_unreadable_records():
    with pytest.raises(TypeError):
        build_previous_pairs([{"giver_id": 1}])
