[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gosimports"
version = "0.1.0"
description = "Structured event telemetry: labels, typed keys, spans, metrics, a log exporter and OpenCensus agent wire messages, plus a concurrent directory walker."
requires-python = ">=3.10"
dependencies = []
keywords = ["telemetry", "events", "tracing", "metrics", "logging", "opencensus", "filesystem"]
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
    "Topic :: System :: Logging",
    "Topic :: System :: Monitoring",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["gosimports"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
