[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gotoolkit"
version = "0.1.0"
description = "Build-tool helpers: a content-addressed artifact cache, salted hashing, anchored diffs, build-tag matching, import scanning, key ordering and executable lookup"
requires-python = ">=3.10"
keywords = ["build cache", "diff", "build tags", "imports", "tooling"]
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
    "Topic :: Software Development :: Build Tools",
    "Typing :: Typed",
]
dependencies = [
    "portalocker",
]

[project.optional-dependencies]
test = [
    "pytest",
    "hypothesis",
]

[tool.hatch.build.targets.wheel]
packages = ["gotoolkit"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
