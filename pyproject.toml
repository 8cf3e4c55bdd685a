[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "arqsim"
version = "1.0.0"
description = "Discrete-event network emulator with Go-Back-N and Selective Repeat reliable transport protocols"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "networking",
    "simulation",
    "discrete-event",
    "go-back-n",
    "selective-repeat",
    "arq",
    "transport-protocol",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
arqsim = "arqsim.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["arqsim"]

[tool.hatch.build.targets.sdist]
include = ["arqsim", "tests", "README.md", "pyproject.toml"]

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
strict = true
