"""
Tests for the annotation serializer.
"""

import json
import random

import pytest

from inkpage.core.annotation import (
    PageCanvasState,
    PageKey,
    ParseError,
    ShapeType,
    Style,
    VectorObject,
    deserialize,
    deserialize_or_empty,
    serialize,
)


def random_state(rng: random.Random) -> PageCanvasState:
    """Arbitrary reachable state: mixed shapes, styles and path lengths."""
    objects = []
    for i in range(rng.randint(0, 25)):
        shape_type = rng.choice(list(ShapeType))
        if shape_type == ShapeType.PATH:
            geometry = tuple(
                (rng.uniform(0, 1000), rng.uniform(0, 1000))
                for _ in range(rng.randint(1, 40))
            )
        else:
            geometry = tuple(rng.uniform(0, 500) for _ in range(4))
        style = Style(
            color=rng.choice(["red", "yellow", "#12ab9f", "rgba(1, 2, 3, 0.5)"]),
            width=rng.choice([1, 2, 20, 3.75]),
            opacity=rng.choice([1.0, 0.3, 0.0, 0.123456789]),
        )
        objects.append(VectorObject(f"id-{i}", shape_type, geometry, style))
    key = PageKey(rng.randint(1, 99), rng.randint(1, 99), rng.randint(1, 500))
    return PageCanvasState(key=key, objects=objects, scale=rng.choice([0.5, 1.0, 1.2, 3.0]))


class TestRoundTrip:
    def test_scenario_state(self, three_object_state):
        restored = deserialize(serialize(three_object_state))

        assert restored == three_object_state
        assert restored.ids == ["s1", "s2", "r1"]
        assert [o.shape_type for o in restored] == [
            ShapeType.PATH,
            ShapeType.PATH,
            ShapeType.RECT,
        ]

    def test_empty_state(self):
        state = PageCanvasState(key=PageKey(1, 1, 1))
        assert deserialize(serialize(state)) == state

    def test_generated_states(self):
        rng = random.Random(20240101)
        for _ in range(50):
            state = random_state(rng)
            restored = deserialize(serialize(state))
            assert restored == state
            assert restored.ids == state.ids

    def test_canonical(self, three_object_state):
        text = serialize(three_object_state)
        assert serialize(deserialize(text)) == text
        assert " " not in text

    def test_key_supplied_by_caller(self, state_factory):
        state = state_factory()
        restored = deserialize(serialize(state), key=PageKey(1, 2, 3))
        assert restored.key == PageKey(1, 2, 3)
        assert restored.objects == state.objects


class TestMalformedPayloads:
    @pytest.mark.parametrize(
        "text",
        [
            "",
            "not json",
            "[1, 2, 3]",
            '"just a string"',
            '{"objects": {}}',
            '{"objects": [42]}',
            '{"objects": [{"id": "a", "type": "star", "geometry": [], "style": {"color": "red", "width": 1}}]}',
            '{"objects": [{"id": "a", "type": "rect", "geometry": [1, 2], "style": {"color": "red", "width": 1}}]}',
            '{"objects": [{"id": "a", "type": "path", "geometry": [[1]], "style": {"color": "red", "width": 1}}]}',
            '{"objects": [{"id": "a", "type": "path", "geometry": [["x", 1]], "style": {"color": "red", "width": 1}}]}',
            '{"objects": [{"id": "a", "type": "line", "geometry": [1, 2, 3, 4], "style": {"width": 1}}]}',
            '{"objects": [{"id": "a", "type": "line", "geometry": [1, 2, 3, 4], "style": {"color": "red", "width": 1, "opacity": 2}}]}',
            '{"objects": [{"type": "line", "geometry": [1, 2, 3, 4], "style": {"color": "red", "width": 1}}]}',
            '{"objects": [], "scale": 0}',
            '{"objects": [], "version": 99}',
            '{"objects": [], "page": {"materialId": 1}}',
            '{"objects": [], "scale": 1' + '0' * 400 + '}',
            '{"objects": [{"id": "a", "type": "rect", "geometry": [1, 2, 3, 4' + '0' * 400 + '], "style": {"color": "red", "width": 1}}]}',
            '{"objects": [{"id": "a", "type": "line", "geometry": [1, 2, 3, 4], "style": {"color": "red", "width": 1' + '0' * 400 + '}}]}',
        ],
    )
    def test_parse_error(self, text):
        with pytest.raises(ParseError):
            deserialize(text)

    def test_duplicate_ids(self, three_object_state):
        data = json.loads(serialize(three_object_state))
        data["objects"][1]["id"] = data["objects"][0]["id"]
        with pytest.raises(ParseError):
            deserialize(json.dumps(data))

    def test_deeply_nested_payload(self):
        with pytest.raises(ParseError):
            deserialize("[" * 100000 + "]" * 100000)

    def test_or_empty_recovers_from_oversized_numbers(self):
        key = PageKey(7, 42, 3)
        text = '{"objects": [], "scale": 1' + "0" * 400 + "}"
        assert deserialize_or_empty(text, key=key) == PageCanvasState(key=key)

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            deserialize("{")

    def test_or_empty_recovers(self, caplog):
        key = PageKey(7, 42, 3)
        state = deserialize_or_empty("{broken", key=key)
        assert state == PageCanvasState(key=key)
        assert "unreadable" in caplog.text

    def test_or_empty_without_payload(self):
        assert deserialize_or_empty(None, key=PageKey(1, 1, 1)).objects == []


class TestRescale:
    def test_rescaled(self, three_object_state):
        doubled = three_object_state.rescaled(2.0)

        assert doubled.scale == 2.0
        assert doubled.objects[0].geometry[1] == (40.0, 51.0)
        assert doubled.objects[2].geometry == (100.0, 120.0, 240.0, 80.0)
        assert doubled.objects[2].style.width == 6.0
        assert three_object_state.scale == 1.0

    def test_rescaled_rejects_zero(self, three_object_state):
        with pytest.raises(ValueError):
            three_object_state.rescaled(0)
