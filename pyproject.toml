[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rtisan"
version = "0.10.0"
description = "A small real-time task kernel for ordinary computers: thread-backed tasks, circular queues, byte streams, SPI transfer queuing, a GPIO model, file-backed flash and USB CDC descriptors"
requires-python = ">=3.10"
keywords = ["rtos", "embedded", "scheduler", "circular-queue", "usb-cdc", "spi", "gpio"]
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
    "Topic :: Software Development :: Embedded Systems",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
rtisan = "rtisan.app:main"

[tool.hatch.build.targets.wheel]
packages = ["rtisan"]

[tool.pytest.ini_options]
addopts = "-ra"
