"""
Unit tests for core data models.
"""

import re

import pytest
from hypothesis import given, strategies as st
from event_sheet_core.models import (
    Project, Property, EventNode, ElementNode, EventKind, LogicOperator,
    PropertyType, ValidationError, array_attribute, generate_id, normalize_property_name,
)


class TestHelpers:
    """Test cases for module-level helpers."""

    def test_generate_id_format(self):
        """Test ids are id_ followed by nine hex characters."""
        assert re.fullmatch(r'id_[0-9a-f]{9}', generate_id())

    def test_generate_id_unique(self):
        """Test consecutive ids differ."""
        ids = {generate_id() for _ in range(200)}
        assert len(ids) == 200

    def test_array_attribute(self):
        """Test persisted array names map to attributes."""
        assert array_attribute('conditions') == 'conditions'
        assert array_attribute('elseActions') == 'else_actions'
        with pytest.raises(ValueError):
            array_attribute('children')

    def test_logic_operator_parse(self):
        """Test operator parsing falls back to AND."""
        assert LogicOperator.parse('or') is LogicOperator.OR
        assert LogicOperator.parse('AND') is LogicOperator.AND
        assert LogicOperator.parse(None) is LogicOperator.AND
        assert LogicOperator.parse(LogicOperator.OR) is LogicOperator.OR
        assert LogicOperator.OR.symbol == '||'
        assert LogicOperator.AND.symbol == '&&'


class TestPropertyNames:
    """Test cases for property name normalization."""

    def test_two_words(self):
        """Test words are joined in camelCase."""
        assert normalize_property_name("Move Speed") == "moveSpeed"

    def test_symbols_dropped(self):
        """Test non-identifier characters are dropped."""
        assert normalize_property_name("max-hp!") == "maxhp"

    def test_leading_digit(self):
        """Test a leading digit is prefixed with an underscore."""
        assert normalize_property_name("3d model") == "_3dModel"

    def test_empty(self):
        """Test names without identifier characters normalize to empty."""
        assert normalize_property_name("  !!! ") == ""
        assert normalize_property_name("") == ""


class TestProperty:
    """Test cases for Property class."""

    def test_number_coercion(self):
        """Test numeric defaults parse from text."""
        assert Property("speed", PropertyType.NUMBER, "12.5").coerce_default() == 12.5
        assert Property("speed", PropertyType.NUMBER, "7").coerce_default() == 7
        assert Property("speed", PropertyType.NUMBER, "fast").coerce_default() == 0

    def test_boolean_coercion(self):
        """Test boolean defaults accept text."""
        assert Property("on", PropertyType.BOOLEAN, "TRUE").coerce_default() is True
        assert Property("on", PropertyType.BOOLEAN, "no").coerce_default() is False
        assert Property("on", PropertyType.BOOLEAN, True).coerce_default() is True

    def test_object_and_array_fallback(self):
        """Test unparsable or wrongly shaped JSON falls back to empty values."""
        assert Property("data", PropertyType.OBJECT, "not json").coerce_default() == {}
        assert Property("data", PropertyType.OBJECT, "[1]").coerce_default() == {}
        assert Property("items", PropertyType.ARRAY, "[1, 2]").coerce_default() == [1, 2]
        assert Property("items", PropertyType.ARRAY, "{").coerce_default() == []

    def test_enum_default(self):
        """Test an enum without a default takes its first option."""
        prop = Property("mode", PropertyType.ENUM, None, options=["walk", "run"])
        assert prop.coerce_default() == "walk"

    def test_group(self):
        """Test the group tag comes from the style hints."""
        assert Property("a", style={'group': 'Movement'}).group == "Movement"
        assert Property("a").group == ""

    def test_clone_is_independent(self):
        """Test cloning copies nested containers."""
        prop = Property("tags", PropertyType.ARRAY, ["a"], style={'group': 'G'})
        copy = prop.clone()
        copy.default_value.append("b")
        copy.style['group'] = 'H'
        assert prop.default_value == ["a"]
        assert prop.group == 'G'

    def test_from_dict_normalizes(self):
        """Test loading normalizes names and tolerates unknown types."""
        prop = Property.from_dict({'name': 'Max HP', 'type': 'vector', 'defaultValue': '10'})
        assert prop.name == "maxHP"
        assert prop.type is PropertyType.STRING
        assert prop.exposed is True

    def test_dict_round_trip(self):
        """Test to_dict output loads back unchanged."""
        prop = Property("speed", PropertyType.NUMBER, 5, description="px/s", style={'min': 0})
        assert Property.from_dict(prop.to_dict()) == prop


class TestElementNode:
    """Test cases for ElementNode class."""

    def test_lazy_arrays(self):
        """Test nested arrays start absent."""
        node = ElementNode(type='keyDown')
        assert node.conditions is None
        assert node.actions is None
        assert node.else_actions is None
        assert node.children() == []

    def test_identity_equality(self):
        """Test nodes compare by identity."""
        a = ElementNode(type='log', params={'message': 'hi'}, id='id_same')
        b = ElementNode(type='log', params={'message': 'hi'}, id='id_same')
        assert a != b
        assert a == a

    def test_clone_deep(self):
        """Test clones share no mutable state."""
        child = ElementNode(type='log', params={'message': 'x'})
        node = ElementNode(type='ifCondition', conditions=[], actions=[child], else_actions=[])
        copy = node.clone()
        assert copy.id == node.id
        assert copy.actions[0] is not child
        copy.actions[0].params['message'] = 'y'
        copy.actions.append(ElementNode(type='log'))
        assert child.params['message'] == 'x'
        assert len(node.actions) == 1

    def test_to_dict_omits_absent_arrays(self):
        """Test absent arrays are not persisted."""
        data = ElementNode(type='keyDown', params={'key': 'a'}, id='id_000000001').to_dict()
        assert data == {'id': 'id_000000001', 'type': 'keyDown', 'params': {'key': 'a'}}

    def test_to_dict_with_conditions(self):
        """Test the operator is persisted alongside conditions."""
        node = ElementNode(type='ifCondition', conditions=[], actions=[],
                           logic_operator=LogicOperator.OR)
        data = node.to_dict()
        assert data['logicOperator'] == 'OR'
        assert data['conditions'] == []
        assert 'elseActions' not in data

    def test_from_dict_fresh_id(self):
        """Test missing ids are generated."""
        node = ElementNode.from_dict({'type': 'log'})
        assert node.id.startswith('id_')


class TestEventNode:
    """Test cases for EventNode class."""

    def test_defaults(self):
        """Test a new event is a lifecycle start event."""
        event = EventNode()
        assert event.name == 'start'
        assert event.kind is EventKind.LIFECYCLE
        assert event.conditions == [] and event.actions == []

    def test_melodicode(self):
        """Test the melodicode lifecycle event is detected."""
        assert EventNode(name='melodicode').is_melodicode
        assert not EventNode(name='melodicode', kind=EventKind.CUSTOM).is_melodicode

    def test_unknown_lifecycle_becomes_custom(self):
        """Test loading an unknown lifecycle name yields a custom event."""
        event = EventNode.from_dict({'name': 'jump', 'kind': 'lifecycle'})
        assert event.kind is EventKind.CUSTOM

    def test_to_dict(self):
        """Test events persist with type event."""
        data = EventNode(name='loop', id='id_aaaaaaaaa').to_dict()
        assert data['type'] == 'event'
        assert data['kind'] == 'lifecycle'
        assert data['name'] == 'loop'
        assert data['logicOperator'] == 'AND'


class TestProject:
    """Test cases for Project class."""

    def test_defaults(self):
        """Test project defaults."""
        project = Project()
        assert project.name == "NewModule"
        assert project.namespace == "Custom"
        assert project.description == "Generated from Event Sheet"

    def test_class_name(self):
        """Test class names are identifiers."""
        assert Project(name="Player Controller").class_name == "PlayerController"
        assert Project(name="  ").class_name == "NewModule"
        assert Project(name="3D Thing").class_name == "_3DThing"

    def test_validate_clean(self):
        """Test a well-formed project has no errors."""
        project = Project(properties=[Property("speed")], events=[EventNode(name='loop')])
        assert project.validate() == []

    def test_validate_problems(self):
        """Test duplicate names, duplicate ids and bad events are reported."""
        shared = ElementNode(type='log', id='id_dup')
        project = Project(
            properties=[Property("speed"), Property("speed"), Property("")],
            events=[
                EventNode(name='update', actions=[shared]),
                EventNode(name=' ', kind=EventKind.CUSTOM, actions=[ElementNode(type='log', id='id_dup')]),
            ],
        )
        messages = [str(error) for error in project.validate()]
        assert all(isinstance(error, ValidationError) for error in project.validate())
        assert "Duplicate property name: speed" in messages
        assert "Property with empty name" in messages
        assert "Duplicate node id: id_dup" in messages
        assert "Unknown lifecycle event: update" in messages
        assert "Custom event without a method name" in messages


# Property-based tests
@given(st.lists(st.text(alphabet='abcXYZ019 _-', max_size=8), max_size=5))
def test_normalized_names_are_identifiers(words):
    """Property test: normalized names are empty or valid identifiers."""
    name = normalize_property_name(' '.join(words))
    assert name == '' or re.fullmatch(r'[A-Za-z_$][0-9A-Za-z_$]*', name)
    assert normalize_property_name(name) == name


@given(st.recursive(
    st.builds(ElementNode, type=st.sampled_from(['log', 'keyDown', 'move'])),
    lambda children: st.builds(ElementNode, type=st.just('ifCondition'),
                               conditions=st.lists(children, max_size=3),
                               actions=st.lists(children, max_size=3)),
    max_leaves=10,
))
def test_element_dict_round_trip(node):
    """Property test: to_dict survives from_dict."""
    assert ElementNode.from_dict(node.to_dict()).to_dict() == node.to_dict()
