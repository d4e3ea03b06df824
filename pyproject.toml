[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "logportal"
version = "1.0.0"
description = "A read-only JSON REST API over buffered log records, plus a small server that hands out a browser client for it."
requires-python = ">=3.10"
dependencies = []
keywords = ["logging", "log viewer", "rest api", "http", "qr code", "monitoring"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: System :: Logging",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
logportal-rest-api = "logportal.rest_api:main"
logportal-dist-server = "logportal.dist_server:main"

[tool.hatch.build.targets.wheel]
packages = ["logportal"]

[tool.hatch.build.targets.sdist]
include = ["logportal", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
