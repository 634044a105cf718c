import os
import glob
import shutil
import setuptools

from btcgate import __version__

with open("README.md", "r") as fh:
    long_description = fh.read()


# Remove undesired files
wildcards = ["**/__pycache__", "**/.DS_Store"]
for entry in wildcards:
    for file_dir in glob.glob(entry, recursive=True):
        if os.path.isdir(file_dir):
            shutil.rmtree(file_dir)
        elif os.path.isfile(file_dir):
            os.remove(file_dir)

PACKAGES = ["common", "btcgate"]
CONSOLE_SCRIPTS = ["btcgated=btcgate.gatewayd:run"]

with open("requirements.txt") as f:
    requirements = [r for r in f.read().split("\n") if len(r)]

with open("requirements-dev.txt") as f:
    requirements_dev = [r for r in f.read().split("\n") if len(r)]

CLASSIFIERS = [
    "Programming Language :: Python",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "License :: OSI Approved :: MIT License",
    "Operating System :: OS Independent",
    "Topic :: Internet",
    "Topic :: Utilities",
]


setuptools.setup(
    name="python-btcgate",
    version=__version__,
    description="btcgate - REST gateway for the bitcoind json-rpc interface",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(include=PACKAGES),
    classifiers=CLASSIFIERS,
    python_requires=">=3.7",
    install_requires=requirements,
    extras_require={"dev": requirements_dev},
    entry_points={"console_scripts": CONSOLE_SCRIPTS},
)
