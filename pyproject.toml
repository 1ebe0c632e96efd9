[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "multirole"
version = "1.1.0"
description = "Building blocks for hosting YGOPro duel rooms: wire messages, core message handling, banlists, card data, replays and logging."
requires-python = ">=3.10"
dependencies = [
    "filelock",
]
keywords = ["ygopro", "duel", "card-game", "server", "banlist", "replay"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Board Games",
    "Topic :: Internet",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["multirole"]

[tool.pytest.ini_options]
addopts = "-ra"
