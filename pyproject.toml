[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "plantshadow"
version = "0.1.0"
description = "Soil-moisture plant monitor that syncs an emotional servo with an MQTT device shadow"
requires-python = ">=3.10"
dependencies = [
    "paho-mqtt>=2.0",
]
keywords = ["iot", "mqtt", "device-shadow", "soil-moisture", "servo", "plant"]
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
    "Topic :: Home Automation",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["plantshadow"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
