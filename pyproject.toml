[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "exdrill"
version = "5.5.1"
description = "Drive a set of small Rust exercises: compile, run, test, watch and grade them"
requires-python = ">=3.11"
keywords = ["exercises", "rust", "learning", "education", "watch", "grading"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education",
]
dependencies = [
    "watchdog",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
exdrill = "exdrill.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["exdrill"]

[tool.pytest.ini_options]
addopts = "-ra"
