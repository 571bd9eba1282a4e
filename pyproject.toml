[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dguiutil"
version = "0.1.0"
description = "Image file handling, animated icon players, DCI icon theme lookup and font sizing helpers"
requires-python = ">=3.10"
keywords = ["image", "icons", "animation", "dci", "fonts", "pillow"]
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
    "Topic :: Multimedia :: Graphics",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["dguiutil"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
