"""
# Setup Script

Derived from the setuptools sample project at
https://github.com/pypa/sampleproject/blob/main/setup.py

"""

# Always prefer setuptools over distutils
from setuptools import setup, find_packages
import pathlib

here = pathlib.Path(__file__).parent.resolve()

# Get the long description from the README file
long_description = (here / "readme.md").read_text(encoding="utf-8")

setup(
    name="tsmerge",
    version="0.1.0",
    description="TypeScript Multi-Root Compilation with Import Rewriting",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests"]),
    python_requires=">=3.8, <4",
    install_requires=["pydantic>=2.0,<3",],  # v2 dataclass APIs, e.g. `rebuild_dataclass`
    extras_require={
        "dev": [
            "pytest>=7.1",
            "coverage",
            "pytest-cov",
            "pre-commit",
            "black",
            "twine",
        ]
    },
    entry_points={"console_scripts": ["tsmerge=tsmerge.cli:main"]},
)
