[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "leapsql"
version = "0.1.0"
description = "SQL model file parsing, frontmatter configuration, model registry and template expression evaluation for SQL transformation projects"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = [
    "sql",
    "data-modeling",
    "frontmatter",
    "templates",
    "data-engineering",
]
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
    "Topic :: Database",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["leapsql"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
