[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kitsune_dht"
version = "0.1.0"
description = "Space and time partitioning of a DHT location space with combined slice hashes and an in-memory op store"
requires-python = ">=3.10"
dependencies = []
keywords = ["dht", "gossip", "partitioning", "time-slices", "hashing"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest", "pytest-asyncio"]

[tool.hatch.build.targets.wheel]
packages = ["kitsune_dht"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"
