[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "orbslam"
version = "0.1.0"
description = "ORB feature extraction, oct-tree keypoint distribution and binary descriptor matching with NumPy"
requires-python = ">=3.10"
dependencies = ["numpy"]
keywords = ["orb", "fast", "brief", "features", "keypoints", "descriptors", "hamming", "slam", "computer-vision"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Image Recognition",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.hatch.build.targets.wheel]
packages = ["orbslam"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
