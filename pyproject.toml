[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "netlab"
version = "0.1.0"
description = "Small networking exercises: a group chat server and client, the client half of a raw-socket TCP handshake, and routing table simulation"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "networking",
    "chat",
    "tcp",
    "handshake",
    "raw sockets",
    "routing",
    "distance vector",
    "link state",
    "dijkstra",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Communications :: Chat",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
netlab-chat-server = "netlab.chat_server:main"
netlab-chat-client = "netlab.chat_client:main"
netlab-handshake-client = "netlab.handshake_client:main"
netlab-routing = "netlab.routing:main"

[tool.hatch.build.targets.wheel]
packages = ["netlab"]

[tool.hatch.build.targets.sdist]
include = ["netlab", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
