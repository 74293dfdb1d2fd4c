[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gfchip"
version = "2.0.3"
description = "Chip stats and layout solver for the heavy-ordnance squads of Girls' Frontline"
requires-python = ">=3.10"
dependencies = []
keywords = ["girls-frontline", "chips", "puzzle", "solver", "heavy-ordnance"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment",
    "Topic :: Games/Entertainment :: Puzzle Games",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
gfchip = "gfchip.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["gfchip"]

[tool.pytest.ini_options]
addopts = "-ra"
