"""Search for chip arrangements that fill a heavy-ordnance squad's board."""

from __future__ import annotations

import copy
import heapq
import json
import math
import time
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Optional

from gfchip.chip import (
    Chip,
    ChipConfigRegistry,
    ChipViewInfo,
    PuzzleOption,
    Solution,
)
from gfchip.inventory import AltSolutions, Inventory

ProgressCallback = Callable[[int, int, float], None]

# Every this many new solutions the progress is reported during a search.
_REPORT_EVERY = 1000


def _num(obj: Mapping[str, Any], key: str) -> int:
    value = obj.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value)


def _sub(obj: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = obj.get(key)
    return value if isinstance(value, Mapping) else {}


def _rotate_grid(grid: list[list[int]]) -> list[list[int]]:
    """Rotate a grid clockwise by 90 degrees."""
    return [list(column) for column in zip(*reversed(grid))]


@dataclass
class TargetBlock:
    """Target block counts for a squad and limits for the search."""

    damage_block: int = 0
    defbreak_block: int = 0
    hit_block: int = 0
    reload_block: int = 0
    # Number of blocks allowed above the targets in total.
    error: int = 0
    # Most solutions kept.
    show_number: int = 1000
    # Most solutions computed before the search stops.
    max_number: int = 10**9


@dataclass
class SquadConfig:
    """A named puzzle plan of a squad together with the squad's properties."""

    configs: list[list[PuzzleOption]] = field(default_factory=list)
    blocks: int = 38
    optional: int = 0
    color: int = 0
    # 0 when the board has no rotational symmetry, else the rotation step.
    palindrome: int = 0
    max_value: Chip = field(default_factory=Chip)


def _overflows(target: TargetBlock, total: Chip) -> bool:
    over = (
        max(0, total.defbreak_block - target.defbreak_block)
        + max(0, total.damage_block - target.damage_block)
        + max(0, total.reload_block - target.reload_block)
        + max(0, total.hit_block - target.hit_block)
    )
    return over > target.error


class _Search:
    """State of one run of the solver."""

    def __init__(
        self,
        solver: "ChipSolver",
        plan: SquadConfig,
        target: TargetBlock,
        use_equipped: bool,
        use_locked: bool,
        use_alt: bool,
        on_progress: Optional[ProgressCallback],
    ) -> None:
        self.solver = solver
        self.plan = plan
        self.target = target
        self.limit = replace(target, error=target.error + plan.optional)
        self.use_equipped = use_equipped
        self.use_locked = use_locked
        self.use_alt = use_alt
        self.on_progress = on_progress
        self.start = time.process_time()
        self.percent = 0
        self.number = 0
        self.last_number = 0
        self.heap: list[tuple[int, int, Solution]] = []
        self.sequence = 0
        self.seen: set[tuple[int, ...]] = set()
        self.candidates = solver.inventory.grid_chips.get(plan.color, {})

    def report(self) -> None:
        if self.on_progress is not None:
            self.on_progress(self.percent, self.number, time.process_time() - self.start)

    def satisfies(self, config: list[PuzzleOption]) -> bool:
        required: dict[int, int] = {}
        for option in config:
            required[option.no] = required.get(option.no, 0) + 1
        return all(
            len(self.candidates.get(grid_id, [])) >= count
            for grid_id, count in required.items()
        )

    def run(self) -> list[Solution]:
        configs = self.plan.configs
        for index, config in enumerate(configs, start=1):
            percent = math.floor(index * 100.0 / len(configs) + 0.5)
            if percent > self.percent:
                self.percent = percent
                self.report()
            if not self.satisfies(config):
                continue
            self.seen.clear()
            self.search(0, config, [], [], set(), Chip())
            self.last_number = self.number
            self.report()
            if self.number >= self.target.max_number:
                break
        solutions = [item[2] for item in sorted(self.heap, key=lambda item: item[:2])]
        self.percent = 100
        self.report()
        return solutions

    def search(
        self,
        k: int,
        config: list[PuzzleOption],
        options: list[PuzzleOption],
        picked: list[int],
        used: set[int],
        total: Chip,
    ) -> None:
        if not self.solver._running:
            return
        if k >= len(config):
            self.record(options, picked, total)
            return
        slot = config[k]
        alternatives = self.solver.alternatives
        for chip in self.candidates.get(slot.no, []):
            if chip.no in used:
                continue
            if (chip.locked and not self.use_locked) or (chip.squad and not self.use_equipped):
                continue
            if alternatives.chip_used(chip.no) and not self.use_alt:
                continue
            combined = total + chip
            if _overflows(self.limit, combined):
                continue
            options.append(replace(slot, no=chip.no))
            picked.append(chip.no)
            used.add(chip.no)
            self.search(k + 1, config, options, picked, used, combined)
            options.pop()
            picked.pop()
            used.discard(chip.no)

    def record(self, options: list[PuzzleOption], picked: list[int], total: Chip) -> None:
        key = tuple(picked)
        if key in self.seen:
            return
        self.seen.add(key)

        chips = self.solver.inventory.chips
        registry = self.solver.registry
        placed = [
            (option, chips[option.no], registry.get(chips[option.no].grid_id).direction)
            for option in options
        ]
        rotations = sum(option.rotate != chip.rotate % direction for option, chip, direction in placed)
        exp = sum(chip.exp for _, chip, _ in placed)
        turn = 0
        step = self.plan.palindrome
        if step > 0:
            for extra in range(step, 4, step):
                count = sum(
                    (chip.rotate + extra) % direction != option.rotate
                    for option, chip, direction in placed
                )
                if count < rotations:
                    rotations, turn = count, extra

        best = self.plan.max_value
        deviation = (
            min(0, total.defbreak_value - best.defbreak_value)
            + min(0, total.damage_value - best.damage_value)
            + min(0, total.reload_value - best.reload_value)
            + min(0, total.hit_value - best.hit_value)
        )
        solution = Solution(
            chips=[replace(option) for option in options],
            total_value=replace(total, no=rotations, id=deviation, exp=exp, rotate=turn),
        )
        heapq.heappush(self.heap, (deviation, self.sequence, solution))
        self.sequence += 1
        if len(self.heap) > self.target.show_number:
            heapq.heappop(self.heap)

        self.number += 1
        if self.number - self.last_number > _REPORT_EVERY:
            self.last_number = self.number
            self.report()
            if self.number > self.target.max_number:
                self.solver._running = False


class ChipSolver:
    """Enumerates chip arrangements for the puzzle plans of each squad."""

    def __init__(
        self,
        inventory: Inventory,
        registry: ChipConfigRegistry,
        alternatives: Optional[AltSolutions] = None,
    ) -> None:
        self.inventory = inventory
        self.registry = registry
        self.alternatives = alternatives if alternatives is not None else AltSolutions()
        self._plans: dict[str, SquadConfig] = {}
        self._squad_plans: dict[str, list[str]] = {}
        self._views: dict[str, ChipViewInfo] = {}
        self._max_values: dict[str, Chip] = {}
        self._current_squad: Optional[str] = None
        self._running = False

    def add_squad(
        self,
        name: str,
        layout: Mapping[str, Any],
        plans: Mapping[str, Iterable[Iterable[Mapping[str, Any]]]],
    ) -> None:
        """Register a squad's board layout and its named puzzle plans."""
        rows = layout.get("map", [])
        self._views[name] = ChipViewInfo(
            width=_num(layout, "width"),
            height=_num(layout, "height"),
            map=[[-(ord(cell) - ord("0")) for cell in row] for row in rows],
        )

        max_blocks = _sub(layout, "MaxBlocks")
        max_values = _sub(layout, "MaxValues")
        max_value = Chip(
            damage_block=_num(max_blocks, "damage"),
            defbreak_block=_num(max_blocks, "def_break"),
            hit_block=_num(max_blocks, "hit"),
            reload_block=_num(max_blocks, "reload"),
            damage_value=_num(max_values, "damage"),
            defbreak_value=_num(max_values, "def_break"),
            hit_value=_num(max_values, "hit"),
            reload_value=_num(max_values, "reload"),
        )
        optional = _sub(layout, "optional")
        for plan_name, configs in plans.items():
            self._plans[plan_name] = SquadConfig(
                configs=[[PuzzleOption.from_json(option) for option in config] for config in configs],
                blocks=_num(layout, "blocks"),
                optional=_num(optional, plan_name),
                color=_num(layout, "color"),
                palindrome=_num(layout, "palindrome"),
                max_value=max_value,
            )
        self._squad_plans[name] = list(plans)
        self._max_values[name] = max_value

    @classmethod
    def from_directory(
        cls,
        directory: str | Path,
        inventory: Inventory,
        registry: ChipConfigRegistry,
        alternatives: Optional[AltSolutions] = None,
    ) -> "ChipSolver":
        """Load squads from ``squads.json`` and the files it names in a directory."""
        base = Path(directory)

        def read(name: str) -> Any:
            with open(base / name, encoding="utf-8") as handle:
                return json.load(handle)

        solver = cls(inventory, registry, alternatives)
        for squad, files in read("squads.json").items():
            layout = read(f"{squad}.json")
            plans = {plan_name: read(file_name) for plan_name, file_name in files.items()}
            solver.add_squad(squad, layout, plans)
        return solver

    def squad_list(self) -> list[str]:
        return sorted(self._squad_plans)

    def config_list(self, squad: str) -> list[str]:
        """Plan names of a squad; the squad becomes the current one."""
        if squad not in self._squad_plans:
            raise KeyError(f"unknown squad: {squad}")
        self._current_squad = squad
        return sorted(self._squad_plans[squad])

    def squad_max_value(self, squad: str) -> Chip:
        try:
            return self._max_values[squad]
        except KeyError:
            raise KeyError(f"unknown squad: {squad}") from None

    def solution_to_view(self, solution: Solution, squad: Optional[str] = None) -> ChipViewInfo:
        """Board with each cell holding the 1-based index of the chip placed on it."""
        name = squad or self._current_squad
        if name is None or name not in self._views:
            raise KeyError(f"unknown squad: {name}")
        view = copy.deepcopy(self._views[name])
        for number, option in enumerate(solution.chips, start=1):
            chip = self.inventory.chips[option.no]
            shape = self.registry.get(chip.grid_id).rotate90(option.rotate)
            for y, row in enumerate(shape.map):
                for x, cell in enumerate(row):
                    if cell == "1":
                        view.map[y + option.y][x + option.x] = number
        for _ in range(solution.total_value.rotate):
            view.map = _rotate_grid(view.map)
        return view

    def solve(
        self,
        target: TargetBlock,
        config_name: str,
        use_equipped: bool = False,
        use_locked: bool = False,
        use_alt: bool = False,
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[Solution]:
        """Find arrangements for a plan, ordered from worst to best deviation.

        ``on_progress(percent, number, elapsed)`` is called as the search
        advances.
        """
        try:
            plan = self._plans[config_name]
        except KeyError:
            raise KeyError(f"unknown plan: {config_name}") from None
        self._running = True
        search = _Search(self, plan, target, use_equipped, use_locked, use_alt, on_progress)
        try:
            return search.run()
        finally:
            self._running = False

    def stop(self) -> None:
        """Ask a running search to stop."""
        self._running = False