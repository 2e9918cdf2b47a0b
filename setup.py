#!/usr/bin/env python3
"""
Setup script for tablesync

Installs the tablesync package, its utility package and the ``tablesync``
console script.

Usage:
    pip install -e .
    pip install -e ".[dev]"  # For development mode
"""

from pathlib import Path

from setuptools import find_packages, setup

readme_file = Path(__file__).parent / "README.md"
long_description = ""
if readme_file.exists():
    long_description = readme_file.read_text()

setup(
    name="tablesync",
    version="1.0.0",
    description="Synchronize table contents between PostgreSQL databases",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="tablesync maintainers",
    packages=find_packages(where="src", include=["tablesync", "tablesync.*", "utils", "utils.*"]),
    package_dir={"": "src"},
    install_requires=[
        "psycopg2-binary>=2.9.9",
        "prometheus-client>=0.19.0",
        "opentelemetry-api>=1.21.0",
        "opentelemetry-sdk>=1.21.0",
        "opentelemetry-exporter-otlp-proto-grpc>=1.21.0",
        "rich>=13.7.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.3",
            "pytest-cov>=4.1.0",
            "hypothesis>=6.92.0",
        ],
        "dev": [
            "pytest>=7.4.3",
            "pytest-cov>=4.1.0",
            "hypothesis>=6.92.0",
            "mutmut>=2.4.4",
            "black>=23.12.0",
            "flake8>=6.1.0",
            "mypy>=1.7.1",
        ]
    },
    entry_points={
        "console_scripts": [
            "tablesync=tablesync.cli:main",
        ],
    },
    python_requires=">=3.11",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Database",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
    ],
)
