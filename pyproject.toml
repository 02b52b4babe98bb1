[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lidaroff"
version = "0.1.0"
description = "Obstacle-field steering from 2D LiDAR scans and projection of 3D LiDAR points into a camera image"
requires-python = ">=3.10"
keywords = [
    "lidar",
    "dbscan",
    "locality-sensitive hashing",
    "obstacle avoidance",
    "steering",
    "point cloud",
    "camera calibration",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
]
dependencies = [
    "numpy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["lidaroff"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
