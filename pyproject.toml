[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nekovm"
version = "0.1.0"
description = "Runtime pieces of a Neko-style virtual machine: field tables, values, a bytecode module reader, a module loader and call statistics"
requires-python = ">=3.10"
dependencies = []
keywords = ["neko", "virtual machine", "bytecode", "interpreter", "runtime"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Interpreters",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["nekovm"]

[tool.pytest.ini_options]
addopts = "-ra"
