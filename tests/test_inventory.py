import base64
import gzip
import json
import zlib
from dataclasses import replace

import pytest

from gfchip.chip import Chip, ChipConfig, ChipConfigRegistry, PuzzleOption, Solution
from gfchip.inventory import AltSolutions, Inventory, decode_chip_data


def _encode(payload, compress=gzip.compress):
    raw = json.dumps(payload).encode("utf-8")
    return b"#" + base64.b64encode(compress(raw))


@pytest.fixture
def registry():
    return ChipConfigRegistry(
        [
            ChipConfig(grid_id=12, chip_class=5061, width=2, height=3, blocks=6,
                       direction=4, name="Alpha", map=("11", "11", "11")),
            ChipConfig(grid_id=13, chip_class=5051, width=1, height=5, blocks=5,
                       direction=2, name="Beta", map=("1", "1", "1", "1", "1")),
        ]
    )


def _record(chip_id, grid, squad="0", level="10", color="2", cls="5061", damage="2"):
    return {
        "id": chip_id,
        "chip_level": level,
        "color_id": color,
        "grid_id": grid,
        "chip_id": cls,
        "squad_with_user_id": squad,
        "assist_damage": damage,
        "assist_reload": "1",
        "assist_hit": "1",
        "assist_def_break": "1",
        "shape_info": "1,0",
    }


@pytest.fixture
def data():
    return {
        "squad_with_user_info": {
            "30": {"id": "30", "squad_id": "1"},
        },
        "chip_with_user_info": {
            "a": _record("9", "12", squad="30"),
            "b": _record("4", "13"),
            "c": _record("7", "12", squad="99", level="20"),
        },
    }


def test_decode_round_trip():
    payload = {"chip_with_user_info": {}, "x": 1}
    assert decode_chip_data(_encode(payload)) == payload


def test_decode_accepts_zlib_and_text():
    payload = {"k": "v"}
    encoded = _encode(payload, compress=zlib.compress)
    assert decode_chip_data(encoded.decode("ascii")) == payload


def test_decode_requires_hash_prefix():
    with pytest.raises(ValueError):
        decode_chip_data(_encode({"a": 1})[1:])


def test_decode_empty():
    with pytest.raises(ValueError):
        decode_chip_data(b"")


def test_decode_bad_compression():
    with pytest.raises(ValueError):
        decode_chip_data(b"#" + base64.b64encode(b"not compressed"))


def test_decode_non_object():
    with pytest.raises(ValueError):
        decode_chip_data(_encode([1, 2, 3]))


def test_load_sorts_and_numbers(registry, data):
    inventory = Inventory(registry)
    inventory.load(data)
    assert [c.id for c in inventory.chips] == [4, 7, 9]
    assert [c.no for c in inventory.chips] == [1, 2, 3]


def test_load_maps_squads(registry, data):
    inventory = Inventory(registry)
    inventory.load(data)
    by_id = {c.id: c for c in inventory.chips}
    assert by_id[9].squad == 1
    assert by_id[7].squad == 0
    assert by_id[4].squad == 0
    assert [c.id for c in inventory.squad_chips[1]] == [9]
    assert [c.id for c in inventory.squad_chips[0]] == [7]


def test_grid_chips_are_maxed(registry, data):
    inventory = Inventory(registry)
    inventory.load(data)
    grid = inventory.grid_chips[2][12]
    assert [c.id for c in grid] == [7, 9]
    for chip in grid:
        assert chip.level == 20
        original = inventory.chips[chip.no]
        assert original.id == chip.id
        expected = replace(original, level=20)
        expected.calc_value()
        assert chip.damage_value == expected.damage_value
        assert chip.hit_value == expected.hit_value
    assert [c.id for c in inventory.grid_chips[2][13]] == [4]


def test_load_replaces_previous(registry, data):
    inventory = Inventory(registry)
    inventory.load(data)
    inventory.load({"chip_with_user_info": {}})
    assert inventory.chips == []
    assert inventory.grid_chips == {}
    assert inventory.squad_chips == {}


def test_squad_summary(registry, data):
    inventory = Inventory(registry)
    inventory.load(data)
    equipped = inventory.squad_chips[1]
    summary = inventory.squad_summary(1, Chip())
    assert summary.total.damage_value == sum(c.damage_value for c in equipped)
    assert summary.total.damage_block == sum(c.damage_block for c in equipped)
    maxed = inventory.grid_chips[2][12][1]
    assert summary.maxed.damage_value == maxed.damage_value
    assert summary.maxed.damage_value >= summary.total.damage_value
    assert all(v == 0 for v in summary.deviation.values())


def test_squad_summary_deviation(registry, data):
    inventory = Inventory(registry)
    inventory.load(data)
    limit = Chip(damage_value=1000, defbreak_value=1000, hit_value=1000, reload_value=1000)
    summary = inventory.squad_summary(1, limit)
    assert summary.deviation["damage"] == summary.maxed.damage_value - 1000
    assert summary.deviation["reload"] == summary.maxed.reload_value - 1000


def test_squad_summary_empty(registry, data):
    inventory = Inventory(registry)
    inventory.load(data)
    summary = inventory.squad_summary(5, Chip())
    assert summary.chips == []
    assert summary.total.damage_value == 0


def _solution(*nos):
    return Solution(chips=[PuzzleOption(no=n) for n in nos], squad="BGM")


def test_alt_add_and_used():
    alternatives = AltSolutions()
    alternatives.add(_solution(1, 2))
    alternatives.add(_solution(2))
    assert len(alternatives) == 2
    assert alternatives.chip_used(1)
    assert alternatives.chip_used(2)
    assert not alternatives.chip_used(3)


def test_alt_remove_decrements():
    alternatives = AltSolutions()
    alternatives.add(_solution(1, 2))
    alternatives.add(_solution(2))
    removed = alternatives.remove(0)
    assert [o.no for o in removed.chips] == [1, 2]
    assert not alternatives.chip_used(1)
    assert alternatives.chip_used(2)
    alternatives.remove(0)
    assert not alternatives.chip_used(2)
    assert len(alternatives) == 0


def test_alt_remove_out_of_range():
    alternatives = AltSolutions()
    alternatives.add(_solution(1))
    with pytest.raises(IndexError):
        alternatives.remove(1)
    with pytest.raises(IndexError):
        alternatives.remove(-1)


def test_alt_clear():
    alternatives = AltSolutions()
    alternatives.add(_solution(4))
    alternatives.clear()
    assert len(alternatives) == 0
    assert not alternatives.chip_used(4)
    assert alternatives.to_json() == []


def test_alt_json_round_trip():
    alternatives = AltSolutions()
    alternatives.add(_solution(1, 3))
    alternatives.add(_solution(5))
    text = json.dumps(alternatives.to_json())
    restored = AltSolutions.from_json(json.loads(text))
    assert restored.to_json() == alternatives.to_json()
    assert restored.chip_used(3)
    assert restored[1].squad == "BGM"