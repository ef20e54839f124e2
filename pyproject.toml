[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bsdnet"
version = "0.1.0"
description = "Talk protocol building blocks, a talk invitation table and a syslog logger command"
requires-python = ">=3.10"
dependencies = [
    "psutil",
]
keywords = ["talk", "ntalk", "talkd", "syslog", "logger", "chat"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Environment :: Console :: Curses",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat :: Unix Talk",
    "Topic :: System :: Logging",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
logger = "bsdnet.logger:main"

[tool.hatch.build.targets.wheel]
packages = ["bsdnet"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
