import pytest

from gfchip.chip import Chip, ChipConfig, ChipConfigRegistry, Solution
from gfchip.tables import ChipTable, SolutionTable


@pytest.fixture
def registry():
    return ChipConfigRegistry(
        [ChipConfig(grid_id=12, chip_class=5061, width=1, height=1, blocks=1,
                    direction=1, name="single", map=("1",))]
    )


@pytest.fixture
def chip():
    c = Chip(id=7, no=3, chip_class=5061, level=20, color=1, grid_id=12,
             squad=1, damage_block=2, hit_block=1, locked=True)
    c.calc_value()
    return c


def _solution(dmg, dev, exp, rotations, squad="BGM"):
    return Solution(
        chips=[],
        total_value=Chip(damage_value=dmg, id=dev, exp=exp, no=rotations),
        squad=squad,
    )


def test_chip_table_columns_follow_status(registry, chip):
    full = ChipTable([chip], registry, show_status=True)
    short = ChipTable([chip], registry, show_status=False)
    assert full.column_count() == 10
    assert short.column_count() == 8
    assert len(full.headers()) == 10
    assert len(short.rows()[0]) == 8
    assert full.headers()[:2] == ["编号", "形状"]


def test_chip_table_row_values(registry, chip):
    row = ChipTable([chip], registry).rows()[0]
    assert row[0] == str(chip.no)
    assert row[2] == "single"
    assert row[3] == f"+{chip.level}"
    assert row[4] == str(chip.hit_value)
    assert row[6] == str(chip.damage_value)
    assert row[8] == "√"
    assert row[9] == "BGM"


def test_chip_table_blocks_mode(registry, chip):
    row = ChipTable([chip], registry, show_blocks=True).rows()[0]
    assert row[4] == str(chip.hit_block)
    assert row[6] == str(chip.damage_block)


def test_chip_table_icon_and_unlocked(registry):
    blue = Chip(grid_id=12, color=2)
    orange = Chip(grid_id=12, color=1)
    rows = ChipTable([blue, orange], registry).rows()
    assert rows[0][1] == "b12"
    assert rows[1][1] == "o12"
    assert rows[1][8] == ""


def test_solution_table_rows_with_error():
    max_value = Chip(damage_value=100)
    table = SolutionTable([_solution(90, -10, 5, 2)], max_value)
    row = table.rows()[0]
    assert row[0] == 1
    assert row[1] == "90 (-10)"
    assert row[5] == -10
    assert row[6] == 5
    assert row[7] == 2 * 50
    assert row[8] == "BGM"


def test_solution_table_rows_without_error():
    table = SolutionTable([_solution(120, 0, 0, 0)], Chip(damage_value=100), show_error=False)
    assert table.rows()[0][1] == 120


def test_solution_table_headers():
    headers = SolutionTable([]).headers()
    assert len(headers) == 9
    assert headers[5] == "总偏差"


def test_sort_by_deviation_descending_in_place():
    solutions = [_solution(1, -5, 0, 0), _solution(2, 0, 0, 0), _solution(3, -2, 0, 0)]
    table = SolutionTable(solutions)
    table.sort(5, descending=True)
    assert [s.total_value.id for s in solutions] == [0, -2, -5]
    table.sort(1)
    assert [s.total_value.damage_value for s in table.solutions] == [1, 2, 3]


def test_sort_ignores_index_and_unknown_columns():
    solutions = [_solution(3, 0, 0, 0), _solution(1, 0, 0, 0)]
    table = SolutionTable(solutions)
    table.sort(0)
    table.sort(8)
    assert [s.total_value.damage_value for s in solutions] == [3, 1]