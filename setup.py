# setup.py
from setuptools import setup, find_packages


def parse_reqs(fname="requirements.txt"):
    with open(fname) as f:
        # strip comments and empty lines
        return [l.strip() for l in f if l.strip() and not l.startswith("#")]


setup(
    name="phenoprep",
    version="0.1.0",
    package_dir={"phenoprep": "phenoprep"},
    packages=find_packages(include=["phenoprep", "phenoprep.*"]),
    install_requires=parse_reqs(),
    extras_require={"test": ["pytest"]},
    package_data={"phenoprep": ["config/*.yaml"]},
    include_package_data=True,
    python_requires=">=3.10",
)
