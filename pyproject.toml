[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nadir"
version = "0.1.0"
description = "Single-switch screen scanner that moves and clicks the pointer from a key, mouse button or sound"
requires-python = ">=3.10"
dependencies = []
keywords = ["accessibility", "scanning", "switch access", "assistive technology", "pointer"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: X11 Applications",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Adaptive Technologies",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
nadir = "nadir.app:main"

[tool.hatch.build.targets.wheel]
packages = ["nadir"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
