#!/usr/bin/env python
import os
import re

from setuptools import find_packages, setup


def get_version():
    path = os.path.join(os.path.dirname(__file__), "src", "psd_preview", "version.py")
    with open(path, "r", encoding="utf-8") as f:
        return re.search(r'__version__ = "([^"]+)"', f.read()).group(1)


setup(
    name="psd-preview",
    version=get_version(),
    description="Preview compositing for transformed layer payloads",
    python_requires=">=3.9",
    package_dir={"": "src"},
    packages=find_packages("src"),
    install_requires=[
        "attrs>=23.1",
        "numpy",
        "Pillow>=9.2",
    ],
    extras_require={
        "dev": ["pytest"],
    },
    entry_points={
        "console_scripts": ["psd-preview=psd_preview.__main__:main"],
    },
)
