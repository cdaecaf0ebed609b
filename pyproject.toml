[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "termspot"
version = "0.1.0"
description = "Core of a terminal music client: command language, key bindings, configuration, session state and an IPC control socket"
requires-python = ">=3.11"
keywords = ["music", "terminal", "player", "commands", "ipc", "keybindings"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Sound/Audio :: Players",
]
dependencies = [
    "platformdirs",
    "cbor2",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
termspot = "termspot.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["termspot"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
