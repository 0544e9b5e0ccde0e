[build-system]
requires = ["setuptools>=61"]
build-backend = "setuptools.build_meta"

[project]
name = "syncdemos"
version = "0.1.0"
description = "Classic thread synchronization demos: bounded buffer, dining philosophers, readers and writers"
requires-python = ">=3.10"
dependencies = []
keywords = ["threads", "semaphores", "synchronization", "producer-consumer", "dining-philosophers", "readers-writers"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
syncdemos-buffer = "syncdemos.buffer:main"
syncdemos-philosophers = "syncdemos.philosophers:main"
syncdemos-readers-writers = "syncdemos.readers_writers:main"

[tool.setuptools.packages.find]
include = ["syncdemos*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
