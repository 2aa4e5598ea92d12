[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ifacemock"
version = "0.1.0"
description = "Reads Go interface declarations into a model and removes generated mock files."
requires-python = ">=3.10"
dependencies = []
keywords = ["mock", "mocking", "go", "interface", "testing", "parser"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Testing :: Mocking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
ifacemock = "ifacemock.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["ifacemock"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
