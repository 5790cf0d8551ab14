#
# Copyright 2024 aarbind Project. All rights reserved.
# Use of this source code is governed by a MIT-style
# license that can be found at
#
# https://opensource.org/license/MIT
#
# The above copyright notice and this permission
# notice shall be included in all copies or
# substantial portions of the Software.

from setuptools import setup, find_packages

ALL_PROGRAM_ENTRIES = ["aarbind = aarbind.cli:main"]

with open("README.md", "r") as f:
    long_description = f.read()

setup(
    name="aarbind",
    version="0.3.0",
    description="Android library (AAR) packaging and NDK toolchain resolution.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="aarbind authors",
    packages=find_packages(include=["aarbind", "aarbind.*"]),
    include_package_data=True,
    python_requires=">=3.7",
    install_requires=[
        'tomli>=2.0.0; python_version < "3.11"',
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: Implementation :: CPython",
        "Operating System :: POSIX :: Linux",
        "Operating System :: MacOS :: MacOS X",
        "Operating System :: Microsoft :: Windows",
    ],
    zip_safe=False,
    entry_points={"console_scripts": ALL_PROGRAM_ENTRIES},
)
