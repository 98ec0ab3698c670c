from setuptools import setup, find_packages

setup(
    name="chunkcrawl",
    version="0.1.0",
    packages=find_packages(exclude=["tests"]),
    install_requires=[
        "numpy>=1.20.0",
        "noise>=1.2.2",  # For Perlin noise in procedural generation
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
)
