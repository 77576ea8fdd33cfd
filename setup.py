"""
Package setup configuration for PQEval.
"""

from setuptools import setup, find_namespace_packages

# Read README file
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="PQEval",
    version="0.1.0",
    author="PQEval Development Team",
    author_email="",
    description="Pair quantity evaluators with incremental updates and atom radii overlaps of crystal structures",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/username/PQEval",
    # subpackages have no __init__.py
    packages=find_namespace_packages(include=["PQEval", "PQEval.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering :: Chemistry",
        "Topic :: Scientific/Engineering :: Physics",
    ],
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.20.0",
        "ase>=3.22.0",
        "pydantic>=2.0.0",
        "typer>=0.6.0",
        "pyyaml>=5.4.0",
        "pandas>=1.3.0",
    ],
    extras_require={
        "dev": [
            "pytest>=6.0.0",
            "pytest-cov>=2.10.0",
            "black>=21.0.0",
            "flake8>=3.8.0",
            "mypy>=0.800",
        ],
    },
    entry_points={
        "console_scripts": [
            "pqeval=PQEval.cli:app",
        ],
    },
)
