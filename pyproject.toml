[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "aerialnav"
version = "0.1.0"
description = "Risk-aware grid planning costs and obstacle-avoidance building blocks for aerial vehicles"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "path planning",
    "obstacle avoidance",
    "drone",
    "uav",
    "occupancy grid",
    "robotics",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["aerialnav"]

[tool.hatch.build.targets.sdist]
include = ["aerialnav", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
