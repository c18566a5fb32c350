#!/usr/bin/env python3

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="chrono-rename",
    version="1.0.0",
    author="Vibe Tools",
    author_email="tools@vibe.dev",
    description="Rename photos and videos into one sequence ordered by capture time",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/vibe-tools/chrono-rename",
    packages=find_packages(),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Graphics",
        "Topic :: Multimedia :: Video",
        "Topic :: System :: Filesystems",
        "Topic :: Utilities",
    ],
    python_requires=">=3.8",
    install_requires=[
        "Pillow>=9.4.0",
        "exifread>=3.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "chrono-rename=chrono_rename.cli:main",
        ],
    },
    keywords="media, rename, exif, photo, video, timestamp, sort, metadata",
    project_urls={
        "Bug Reports": "https://github.com/vibe-tools/chrono-rename/issues",
        "Source": "https://github.com/vibe-tools/chrono-rename",
    },
)
