[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dftkit"
version = "0.1.0"
description = "Building blocks for classical density functional theory: solvers, weight functions, interface profiles and solvation potentials"
requires-python = ">=3.10"
keywords = [
    "density functional theory",
    "thermodynamics",
    "interfaces",
    "solvation",
    "anderson mixing",
    "picard iteration",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Chemistry",
    "Topic :: Scientific/Engineering :: Physics",
]
dependencies = [
    "numpy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["dftkit"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
