[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ticketbooth"
version = "0.1.0"
description = "Networked ticket machine with reservations, timeouts and minimal-coin change dispensing"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "ticket",
    "vending",
    "point-of-sale",
    "change-making",
    "reservation",
    "tcp",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Point-Of-Sale",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
ticketbooth = "ticketbooth.client_app:main"
ticketbooth-server = "ticketbooth.server_app:main"

[tool.hatch.build.targets.wheel]
packages = ["ticketbooth"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
