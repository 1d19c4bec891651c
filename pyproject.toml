[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "snapshotkit"
version = "0.3.0"
description = "Building blocks for container snapshotters: snapshot model, message conversion, an async service layer and shim helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["containers", "snapshots", "snapshotter", "filesystem", "asyncio", "shim"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["snapshotkit"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
