[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fmvoice"
version = "0.1.0"
description = "DX7-style FM voice data: sysex cartridges, voice editing, parameter mapping, output filter and plugin state"
requires-python = ">=3.10"
dependencies = []
keywords = ["dx7", "fm", "sysex", "synthesizer", "cartridge", "midi", "filter"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Multimedia :: Sound/Audio :: Sound Synthesis",
    "Topic :: Multimedia :: Sound/Audio :: MIDI",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["fmvoice"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
