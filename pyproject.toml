[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "famicore"
version = "0.1.0"
description = "A small NES emulator core: 6502 CPU, iNES loader, basic PPU and a pygame display"
requires-python = ">=3.10"
keywords = ["nes", "famicom", "6502", "emulator", "ines"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
    "Topic :: Games/Entertainment",
]
dependencies = [
    "pygame",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
famicore = "famicore.nes:main"

[tool.hatch.build.targets.wheel]
packages = ["famicore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
