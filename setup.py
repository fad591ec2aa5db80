#!/usr/bin/env python3
"""
Setup configuration for the Raindrop Exporter
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="raindrop-exporter",
    version="1.0.0",
    author="Troy Davis",
    author_email="",
    description="Export Raindrop.io collections and bookmarks to JSON, Netscape HTML, CSV and XML",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/davistroy/bookmark-validator",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "Topic :: Internet :: WWW/HTTP",
        "Topic :: Utilities",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "raindrop-exporter=raindrop_exporter.main:main",
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
