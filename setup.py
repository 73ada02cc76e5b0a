"""
Setup script for gamma_poisson_network package.
"""

from setuptools import setup, find_packages

setup(
    name="gamma_poisson_network",
    version="0.1.0",
    description="Gamma-Poisson network reliability estimation and nodal regression power analysis",
    author="GW McElfresh",
    author_email="mcelfreshgw@gmail.com",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["fit_network_correlation"],
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.25.0",
        "scipy>=1.10.0",
        "networkx>=3.0",
        "dask>=2023.1.0",
    ],
    extras_require={
        "plot": [
            "matplotlib>=3.5.0",
        ],
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "matplotlib>=3.5.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "fit-network-correlation=fit_network_correlation:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
    ],
)
