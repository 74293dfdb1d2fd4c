# gfchip

Chip tools for heavy-ordnance squads. The package reads a player's chip
inventory, works out each chip's stats, and searches for chip layouts that
fill a squad's grid while meeting a target number of blocks for damage,
armour break, accuracy and reload.

## Install

    pip install .

To run the tests:

    pip install ".[test]"
    pytest

## Command line

    gfchip --help

The command needs two data files of your own:

- `--chip-configs FILE`: a JSON array of chip shapes (`ID`, `class`,
  `width`, `height`, `blocks`, `direction`, `name`, `map`).
- `--squad-dir DIR`: a directory holding `squads.json`, which maps each
  squad name to its plans and plan files, plus one `<squad>.json` layout
  file per squad.

Chip data is given with `--chip-data FILE`, either in the `#`-prefixed
base64 form (gzip or zlib compressed JSON) or as plain JSON. Saved
alternative solutions can be read with `--alternatives FILE`.

Without `--squad` the command lists the squads; without `--plan` it lists
the plans of the squad. With both it solves and prints the solutions as a
tab-separated table, best deviation first. Further options:

- `--damage`, `--defbreak`, `--hit`, `--reload`: target blocks (default:
  the squad's maximum blocks)
- `--error`: spare blocks allowed above the targets (default 0)
- `--show` (default 1000) and `--max` (default 10000): most solutions kept
  and most computed
- `--use-equipped`, `--use-locked`, `--use-alt`: also use equipped, locked,
  or already set-aside chips
- `--board`: also print the best solution's grid and its chips
- `--progress`: print progress lines on stderr

## Library

- **Chips** (`gfchip.chip`): `Chip.from_json` reads one chip record and
  `Chip.calc_value` turns block counts into stat values using the chip's
  class density and level; `Chip.to_json` writes the record back.
  `get_chips` keeps the heavy-ordnance chips of an inventory, sorts them by
  id and numbers them from 1. Shapes come from a `ChipConfigRegistry`
  (`ChipConfigRegistry.load(path)` reads the shape table), and
  `ChipConfig.rotate90` turns a shape clockwise. `Solution` and
  `PuzzleOption` hold a found layout and round-trip through JSON.
- **Inventory** (`gfchip.inventory`): `decode_chip_data` unpacks the
  `#`-prefixed data and raises `ValueError` on bad input. `Inventory.load`
  groups the chips by squad and by colour and shape (keeping a +20 copy
  for solving), and `Inventory.squad_summary` gives current totals, +20
  totals and the shortfall against a squad maximum. `AltSolutions` keeps
  set-aside solutions and tracks which chips they use.
- **Solver** (`gfchip.solver`): `ChipSolver.from_directory` reads the squad
  and plan files, or `ChipSolver.add_squad` registers them directly.
  `ChipSolver.solve` searches every layout of a plan for chip sets that do
  not go over the `TargetBlock` by more than the allowed error, keeping the
  solutions with the smallest stat shortfall; `ChipSolver.stop` ends a
  running search. `ChipSolver.solution_to_view` places a solution on the
  squad's grid.
- **Tables** (`gfchip.tables`): `ChipTable` and `SolutionTable` give the
  headers and rows for chips and solutions; `SolutionTable.sort` orders
  solutions by a stat column.

## Example

```python
from gfchip.chip import ChipConfigRegistry
from gfchip.inventory import Inventory, decode_chip_data

registry = ChipConfigRegistry.load("chips.json")
inventory = Inventory(registry)
with open("chipdata.txt", "rb") as handle:
    inventory.load(decode_chip_data(handle.read()))
```

## What it does not do

- There is no graphical interface; results are printed as text.
- Chip data is not fetched over the network; it must be saved to a file
  first.
- Chip shape tables, squad layouts and plan files are not bundled; they
  must be supplied.
- Alternative solutions are not saved automatically; `AltSolutions.to_json`
  gives the data to write yourself.