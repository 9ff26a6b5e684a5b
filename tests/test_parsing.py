"""Response parser tests."""

import pytest

from features.beads.prompts import parse_epic_response
from features.clustering.prompts import parse_cluster_response
from features.dependencies.prompts import parse_dependency_response
from features.priority.prompts import parse_priority_response
from utils.parsing import ParseError, strip_code_fences


CLUSTER_JSON = '{"clusters": [{"name": "Auth", "description": "auth work", "signal_ids": ["sig-0", "sig-1"]}]}'


def test_strip_code_fences():
    assert strip_code_fences("```json\n{\"a\": 1}\n```") == '{"a": 1}'
    assert strip_code_fences("```\n[1]\n```\n") == "[1]"
    assert strip_code_fences("  {\"a\": 1}  ") == '{"a": 1}'


def test_cluster_wrapper():
    items = parse_cluster_response(CLUSTER_JSON)
    assert len(items) == 1
    assert items[0].name == "Auth"
    assert items[0].signal_ids == ["sig-0", "sig-1"]


def test_cluster_bare_array():
    items = parse_cluster_response('[{"name": "Db", "signal_ids": ["sig-2"]}]')
    assert items[0].name == "Db"
    assert items[0].description == ""


def test_cluster_fenced_with_language_tag():
    items = parse_cluster_response(f"```json\n{CLUSTER_JSON}\n```")
    assert items[0].name == "Auth"


def test_cluster_non_json_fails_with_snippet():
    content = "I could not group these signals. " + "x" * 400
    with pytest.raises(ParseError) as excinfo:
        parse_cluster_response(content)
    assert len(excinfo.value.content) == 200
    assert excinfo.value.content in str(excinfo.value)
    assert "x" * 201 not in str(excinfo.value)


def test_cluster_empty_is_failure():
    with pytest.raises(ParseError):
        parse_cluster_response('{"clusters": []}')
    with pytest.raises(ParseError):
        parse_cluster_response("[]")


def test_cluster_wrong_item_shape_fails():
    with pytest.raises(ParseError):
        parse_cluster_response('{"clusters": [{"name": "x", "signal_ids": "sig-0"}]}')


def test_priority_wrapper_and_array():
    wrapped = parse_priority_response('{"priorities": [{"id": "sig-0", "priority": 1, "reasoning": "vuln"}]}')
    bare = parse_priority_response('[{"id": "sig-0", "priority": 1}]')
    assert wrapped[0].priority == bare[0].priority == 1
    assert wrapped[0].reasoning == "vuln"


def test_priority_empty_is_failure():
    with pytest.raises(ParseError):
        parse_priority_response('{"priorities": []}')


def test_dependency_empty_is_valid():
    assert parse_dependency_response('{"dependencies": []}') == []
    assert parse_dependency_response("[]") == []


def test_dependency_from_field():
    items = parse_dependency_response(
        '```json\n{"dependencies": [{"from": "sig-0", "to": "sig-1", "type": "blocks", "confidence": 0.8}]}\n```'
    )
    assert items[0].from_ == "sig-0"
    assert items[0].to == "sig-1"
    assert items[0].confidence == 0.8


def test_dependency_non_json_fails():
    with pytest.raises(ParseError):
        parse_dependency_response("no dependencies found")


def test_epic_object():
    epic = parse_epic_response('```json\n{"title": "Harden auth", "description": "Two sentences."}\n```')
    assert epic.title == "Harden auth"
    assert epic.description == "Two sentences."


def test_epic_rejects_array_and_missing_title():
    with pytest.raises(ParseError):
        parse_epic_response('[{"title": "Harden auth"}]')
    with pytest.raises(ParseError):
        parse_epic_response('{"title": "", "description": "x"}')
    with pytest.raises(ParseError):
        parse_epic_response('{"description": "x"}')


def test_null_fields_read_as_defaults():
    clusters = parse_cluster_response(
        '{"clusters": [{"name": "Auth", "description": null, "signal_ids": ["sig-0", "sig-1"]}]}'
    )
    assert clusters[0].description == ""
    assert clusters[0].signal_ids == ["sig-0", "sig-1"]

    priorities = parse_priority_response(
        '[{"id": "sig-0", "priority": 1, "reasoning": "x"}, {"id": "sig-1", "priority": 2, "reasoning": null}]'
    )
    assert [p.priority for p in priorities] == [1, 2]
    assert priorities[1].reasoning == ""

    deps = parse_dependency_response(
        '{"dependencies": [{"from": "sig-0", "to": "sig-1", "type": "blocks", "confidence": null},'
        ' {"from": "sig-1", "to": "sig-2", "type": "relates-to", "confidence": 0.7}]}'
    )
    assert [d.confidence for d in deps] == [0.0, 0.7]

    epic = parse_epic_response('{"title": "Harden auth", "description": null}')
    assert epic.description == ""


def test_null_list_field_gets_fresh_default():
    items = parse_cluster_response('[{"name": "a", "signal_ids": null}, {"name": "b", "signal_ids": ["sig-0"]}]')
    assert items[0].signal_ids == []
    items[0].signal_ids.append("sig-9")
    assert parse_cluster_response('[{"name": "c", "signal_ids": null}]')[0].signal_ids == []


def test_null_required_epic_title_still_fails():
    with pytest.raises(ParseError):
        parse_epic_response('{"title": null, "description": "x"}')
