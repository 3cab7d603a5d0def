# Copyright (c) IMOGI
# MIT License. See LICENSE file for details.

from setuptools import setup, find_packages

with open("requirements.txt") as f:
    install_requires = f.read().strip().split("\n")

# get version from __version__ variable in laundry_pos/__init__.py
from laundry_pos import __version__ as version

setup(
    name="laundry_pos",
    version=version,
    description="Receipt formatting and Bluetooth thermal printing for laundry POS",
    author="IMOGI",
    author_email="info@imogi.tech",
    packages=find_packages(include=["laundry_pos", "laundry_pos.*"]),
    zip_safe=False,
    include_package_data=True,
    install_requires=install_requires,
    extras_require={
        "bluetooth": ["pybluez"],
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "laundry-print-bridge=laundry_pos.print_bridge:main",
        ],
    },
    license="MIT",
    classifiers=[
        "Development Status :: 4 - Beta",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.10",
    ],
)
