from setuptools import setup, find_packages


def readme():
    with open("README.md") as f:
        return f.read()


setup(
    name="qulat",
    version="0.1.0",
    description="Quantum spin and boson operators on lattices.",
    long_description=readme(),
    long_description_content_type="text/markdown",
    license="Apache",
    packages=find_packages(exclude=["deps", "tests*"]),
    install_requires=[
        "cytoolz>=0.8.0",
        "numba>=0.39",
        "numpy>=1.17",
        "scipy>=1.0.0",
    ],
    extras_require={
        "graph": [
            "networkx>=2.3",
        ],
        "tests": [
            "coverage",
            "networkx>=2.3",
            "pytest",
            "pytest-cov",
        ],
    },
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
    keywords="quantum physics spin lattice hamiltonian monte carlo",
)
