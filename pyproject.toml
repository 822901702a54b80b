[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "policyprop"
version = "0.1.0"
description = "Reconcilers for governance policy propagation, policy set status and compliance metrics over an in-memory object store"
requires-python = ">=3.10"
dependencies = []
keywords = ["policy", "governance", "compliance", "reconciler", "placement", "policy-set"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["policyprop"]

[tool.pytest.ini_options]
addopts = "-ra"
