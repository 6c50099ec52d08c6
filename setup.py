#!/usr/bin/python3
# Setup file for gitcas
# Copyright (C) 2026 The gitcas contributors
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later

import os

from setuptools import setup

with open(os.path.join(os.path.dirname(__file__), "gitcas", "__init__.py")) as f:
    for line in f:
        if line.startswith("__version__ = "):
            version = ".".join(
                str(part) for part in eval(line.split("=", 1)[1].strip())
            )
            break
    else:
        raise RuntimeError("unable to find __version__ in gitcas/__init__.py")

tests_require = ["pytest"]


setup(
    name="gitcas",
    version=version,
    description="Git-style content-addressable object store",
    license="Apache-2.0 OR GPL-2.0-or-later",
    python_requires=">=3.10",
    packages=["gitcas"],
    package_data={"": ["py.typed"]},
    extras_require={"test": tests_require},
    test_suite="tests.self_test_suite",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3 :: Only",
        "Operating System :: POSIX",
        "Operating System :: Microsoft :: Windows",
        "Topic :: Software Development :: Version Control",
    ],
)
