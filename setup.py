#!/usr/bin/env python3
"""
Setup script for Viewkit.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text() if readme_file.exists() else ""

setup(
    name="viewkit",
    version="0.1.0",
    description="Jinja2 view controllers with exposures, parts, scopes and layouts",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Viewkit Contributors",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "jinja2>=3.1.0",
        "markupsafe>=2.1.0",
        "inflection>=0.5.1",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Text Processing :: Markup :: HTML",
        "Topic :: Software Development :: Libraries :: Application Frameworks",
    ],
    keywords="views templates jinja2 rendering layouts",
)
