[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "superwav"
version = "0.1.0"
description = "Wave field synthesis client: renders WAV sounds across a speaker array into a multichannel WAV file on a server's cue"
requires-python = ">=3.10"
dependencies = []
keywords = ["audio", "wave field synthesis", "wfs", "spatial audio", "convolution", "fft", "wav", "libconfig"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Sound/Audio",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
superwav-client = "superwav.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["superwav"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
