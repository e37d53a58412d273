[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "threadradio"
version = "0.1.0"
description = "IEEE 802.15.4 radio abstractions for Thread: MAC header parsing, software ACKs and filtering, and a proxy radio pipe"
requires-python = ">=3.11"
dependencies = []
keywords = ["thread", "ieee802154", "radio", "mac", "asyncio"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Operating System :: OS Independent",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest", "pytest-asyncio"]

[tool.hatch.build.targets.wheel]
packages = ["threadradio"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
strict = true
