[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "trackball"
version = "2.1.2"
description = "Building blocks for camera-based tracking of a rotating sphere: vector maths, camera models, image remapping, config files, logging and frame preprocessing."
requires-python = ">=3.10"
keywords = ["trackball", "tracking", "camera model", "fisheye", "remap", "image processing"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Image Processing",
]
dependencies = [
    "numpy",
    "scipy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["trackball"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
