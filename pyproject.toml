[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fusesamples"
version = "0.1.0"
description = "In-memory sample file systems (memfs, hellofs, forgetfs, interruptfs, statfs) and FUSE unmount helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["fuse", "filesystem", "memfs", "inode", "samples"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["fusesamples"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
