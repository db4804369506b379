# setup.py
from setuptools import setup, find_packages

setup(
    name="region-prep",
    version="0.1.0",
    description="Compute balanced region split keys for range-partitioned tables",
    python_requires=">=3.9",
    package_dir={"": "src"},
    packages=find_packages("src"),
    install_requires=[
        "rocksdict",
        "setproctitle",
        "tqdm",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
