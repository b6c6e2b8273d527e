[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "flowgraph"
version = "0.1.0"
description = "Typed processor nodes wired into a dataflow graph and executed in topological order"
requires-python = ">=3.10"
dependencies = []
keywords = ["dataflow", "graph", "processor", "pipeline", "topological-sort"]
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
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["flowgraph"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
