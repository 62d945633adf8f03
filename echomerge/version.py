# Format expected by setup.py: string of form "X.Y.Z"
_version_major = 0
_version_minor = 3
_version_micro = 1  # use '' for first of series, number for 1 and above
_version_extra = ""

# Construct full version string from these.
_ver = [_version_major, _version_minor]
if _version_micro:
    _ver.append(_version_micro)
if _version_extra:
    _ver.append(_version_extra)

__version__ = ".".join(map(str, _ver))

CLASSIFIERS = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Science/Research",
    "License :: OSI Approved :: Apache Software License",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Topic :: Scientific/Engineering",
]

# Description should be a one-liner:
description = "Merge per-channel Echoview echo-integration exports into one gridded survey dataset."

NAME = "echomerge"
DESCRIPTION = description
URL = ""
LICENSE = "Apache License, Version 2.0"
PLATFORMS = "OS Independent"
MAJOR = _version_major
MINOR = _version_minor
MICRO = _version_micro
VERSION = __version__
PYTHON_REQUIRES = ">=3.9"
