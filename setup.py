"""
Setup script so `quickview` can be installed / recognized as a package.
"""

from setuptools import setup, find_packages

setup(
    name="quickview",
    version="0.9.0",
    description="Nestable views with layered template search paths for QuickAPI applications",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "python-dotenv>=1.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
)
