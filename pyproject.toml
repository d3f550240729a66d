[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tagfollower"
version = "0.1.0"
description = "Rigid-transform utilities and a tag-following robot controller built on 4x4 homogeneous matrices"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "robotics",
    "transforms",
    "quaternion",
    "rigid-body",
    "apriltag",
    "navigation",
    "frames",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["tagfollower"]

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
