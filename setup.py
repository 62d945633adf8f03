import os

from setuptools import find_packages, setup

# Get version and release info, which is all stored in echomerge/version.py
ver_file = os.path.join("echomerge", "version.py")
with open(ver_file) as f:
    exec(f.read())

# Dynamically read dependencies from requirements file
with open("requirements.txt") as f:
    requirements = f.readlines()

with open("requirements-dev.txt") as f:
    requirements_dev = f.readlines()

opts = dict(
    name=NAME,
    version=VERSION,
    description=DESCRIPTION,
    url=URL,
    license=LICENSE,
    classifiers=CLASSIFIERS,
    platforms=PLATFORMS,
    python_requires=PYTHON_REQUIRES,
    packages=find_packages(include=["echomerge", "echomerge.*"]),
    install_requires=requirements,
    extras_require={"test": requirements_dev},
)

if __name__ == "__main__":
    setup(**opts)
