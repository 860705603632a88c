[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xdplab"
version = "0.1.0"
description = "Packet-processing models of XDP programs: count-min sketch, NAT and the hash functions they use"
requires-python = ">=3.10"
dependencies = []
keywords = ["xdp", "nat", "count-min sketch", "fasthash", "xxhash", "lookup3", "networking"]
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
    "Topic :: System :: Networking",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["xdplab"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
