[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pcmnet"
version = "0.1.0"
description = "PCM sample format conversion, dithering and fragmented network audio packets"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "audio",
    "pcm",
    "dither",
    "sample-format",
    "interleave",
    "network-audio",
    "udp",
    "fragmentation",
    "midi",
]
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
    "Topic :: Multimedia :: Sound/Audio :: Conversion",
    "Topic :: Multimedia :: Sound/Audio :: MIDI",
    "Topic :: System :: Networking",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["pcmnet"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
