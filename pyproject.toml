[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "meshbridge"
version = "0.1.0"
description = "Build three.js scene payloads and stream them to a browser viewer through a ZeroMQ-to-websocket bridge."
requires-python = ">=3.10"
keywords = ["visualization", "3d", "three.js", "zeromq", "websocket", "robotics", "scene-graph"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Visualization",
]
dependencies = [
    "pyzmq",
    "msgpack",
    "aiohttp",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
meshbridge-refresh-assets = "meshbridge.refresh_assets:main"

[tool.hatch.build.targets.wheel]
packages = ["meshbridge"]

[tool.pytest.ini_options]
addopts = "-ra"
