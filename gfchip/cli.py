"""Command line front end: load chips, solve a squad plan and print the results."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from gfchip.chip import Chip, ChipConfigRegistry, ChipViewInfo
from gfchip.inventory import AltSolutions, Inventory, decode_chip_data
from gfchip.solver import ChipSolver, TargetBlock
from gfchip.tables import ChipTable, SolutionTable

_NO_SOLUTION = (
    "没有算出可行解哦！\n攒更多芯片后再来试试吧~\n也可以修改格数方案以及自由格数尝试哦~"
)


def default_target(
    max_value: Chip, show_number: int = 1000, max_number: int = 10000
) -> TargetBlock:
    """Target that asks for the squad's maximum block counts with no spare blocks."""
    return TargetBlock(
        damage_block=max_value.damage_block,
        defbreak_block=max_value.defbreak_block,
        hit_block=max_value.hit_block,
        reload_block=max_value.reload_block,
        error=0,
        show_number=show_number,
        max_number=max_number,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gfchip", description="Find chip arrangements for heavy-ordnance squads."
    )
    parser.add_argument("--chip-configs", required=True, help="JSON file of chip shapes")
    parser.add_argument("--squad-dir", required=True, help="directory holding squads.json")
    parser.add_argument("--chip-data", help="exported chip data ('#' format or JSON)")
    parser.add_argument("--alternatives", help="JSON file of saved alternative solutions")
    parser.add_argument("--squad", help="squad to solve; lists squads when omitted")
    parser.add_argument("--plan", help="puzzle plan to solve; lists plans when omitted")
    parser.add_argument("--damage", type=int, help="target damage blocks")
    parser.add_argument("--defbreak", type=int, help="target defence-break blocks")
    parser.add_argument("--hit", type=int, help="target hit blocks")
    parser.add_argument("--reload", type=int, help="target reload blocks")
    parser.add_argument("--error", type=int, help="spare blocks allowed above targets")
    parser.add_argument("--show", type=int, default=1000, help="most solutions kept")
    parser.add_argument("--max", type=int, default=10000, help="most solutions computed")
    parser.add_argument("--use-equipped", action="store_true")
    parser.add_argument("--use-locked", action="store_true")
    parser.add_argument("--use-alt", action="store_true")
    parser.add_argument("--board", action="store_true", help="print the best board")
    parser.add_argument("--progress", action="store_true", help="report progress on stderr")
    return parser


def _read_chip_data(path: str) -> dict[str, Any]:
    text = Path(path).read_text(encoding="utf-8").strip()
    if text.startswith("#"):
        return decode_chip_data(text)
    document = json.loads(text)
    if not isinstance(document, dict):
        raise ValueError("chip data must hold a JSON object")
    return document


def _print_table(headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
    print("\t".join(headers))
    for row in rows:
        print("\t".join(str(cell) for cell in row))


def _board_lines(view: ChipViewInfo) -> list[str]:
    def cell(value: int) -> str:
        if value < 0:
            return "#"
        return "." if value == 0 else str(value)

    return [" ".join(cell(value) for value in row) for row in view.map]


def _progress(percent: int, number: int, elapsed: float) -> None:
    print(f"{percent}% 方案数：{number} 耗时：{elapsed:.2f}s", file=sys.stderr)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        registry = ChipConfigRegistry.load(args.chip_configs)
        inventory = Inventory(registry)
        if args.chip_data:
            inventory.load(_read_chip_data(args.chip_data))
        alternatives = AltSolutions()
        if args.alternatives:
            with open(args.alternatives, encoding="utf-8") as handle:
                alternatives = AltSolutions.from_json(json.load(handle))
        solver = ChipSolver.from_directory(args.squad_dir, inventory, registry, alternatives)
    except (OSError, ValueError, KeyError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if not args.squad:
        for squad in solver.squad_list():
            print(squad)
        return 0
    try:
        plans = solver.config_list(args.squad)
    except KeyError:
        print(f"error: unknown squad: {args.squad}", file=sys.stderr)
        return 2
    if not args.plan:
        for plan in plans:
            print(plan)
        return 0
    if args.plan not in plans:
        print(f"error: unknown plan for {args.squad}: {args.plan}", file=sys.stderr)
        return 2

    max_value = solver.squad_max_value(args.squad)
    target = default_target(max_value, args.show, args.max)
    overrides = {
        "damage_block": args.damage,
        "defbreak_block": args.defbreak,
        "hit_block": args.hit,
        "reload_block": args.reload,
        "error": args.error,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(target, name, value)

    try:
        solutions = solver.solve(
            target,
            args.plan,
            use_equipped=args.use_equipped,
            use_locked=args.use_locked,
            use_alt=args.use_alt,
            on_progress=_progress if args.progress else None,
        )
    except (KeyError, IndexError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if not solutions:
        print(_NO_SOLUTION)
        return 0

    for solution in solutions:
        solution.squad = args.squad
    table = SolutionTable(solutions, max_value, show_error=True)
    table.sort(5, descending=True)
    _print_table(table.headers(), table.rows())

    if args.board:
        best = table.solutions[0]
        print()
        for line in _board_lines(solver.solution_to_view(best, args.squad)):
            print(line)
        chips = [inventory.chips[option.no] for option in best.chips]
        chip_table = ChipTable(chips, registry, show_blocks=False, show_status=False)
        print()
        _print_table(chip_table.headers(), chip_table.rows())
    return 0


if __name__ == "__main__":
    sys.exit(main())