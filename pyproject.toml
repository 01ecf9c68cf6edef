[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pstatebalance"
version = "1.0.0"
description = "Markov chain models of energy-aware load balancing between two queues with P-state levels"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "markov chain",
    "queueing",
    "load balancing",
    "energy",
    "p-state",
    "gth",
    "stationary distribution",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
pstate-generate = "pstatebalance.generator:main"
pstate-tgf = "pstatebalance.tgf:main"
pstate-gth = "pstatebalance.gth:main_dense"
pstate-gth-sparse = "pstatebalance.gth:main_sparse"
pstate-marginal = "pstatebalance.marginal:main"
pstate-heatmap = "pstatebalance.heatmap:main"
pstate-reorder = "pstatebalance.reorder:main"

[tool.hatch.build.targets.wheel]
packages = ["pstatebalance"]

[tool.pytest.ini_options]
addopts = "-ra"
