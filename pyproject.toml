[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fwinspect"
version = "0.4.5"
description = "Inspect firmware images for laptop PD controllers, UEFI capsules and expansion cards"
requires-python = ">=3.10"
dependencies = []
keywords = ["firmware", "uefi", "capsule", "usb-pd", "ccgx", "bios"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Hardware",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["fwinspect"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
