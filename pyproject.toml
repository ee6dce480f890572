[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "aelira"
version = "1.0.0"
description = "Audio node with an HTTP and WebSocket API that plays WebM/Opus files into voice channels"
requires-python = ">=3.11"
keywords = ["audio", "voice", "opus", "webm", "websocket", "streaming", "music"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: No Input/Output (Daemon)",
    "Framework :: AsyncIO",
    "Framework :: aiohttp",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Sound/Audio",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]
dependencies = [
    "aiohttp>=3.9",
    "cryptography>=41",
    "psutil>=5.9",
    "websockets>=12",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
    "pytest-asyncio>=0.23",
]

[project.scripts]
aelira = "aelira.main:main"

[tool.hatch.build.targets.wheel]
packages = ["aelira"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
