from setuptools import setup, find_packages
import os

setup(
    name="MCCtools",
    version="0.1.0",
    author="MCCtools developers",
    description="A toolkit (JIT compiled) for extracting cloud elements from gridded geophysical fields",
    long_description=open("README.md").read() if os.path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Scientific/Engineering :: Atmospheric Science",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    install_requires=[
        # Core scientific computing dependencies
        "numpy>=1.20.0",
        # JIT compilation
        "numba>=0.56.0",
        # Batch processing of independent records
        "joblib>=1.0.0",
    ],
    extras_require={
        # Test suite (scipy.ndimage is the reference labeler)
        "test": [
            "pytest>=7.0",
            "scipy>=1.7.0",
        ],
        # Documentation tools
        "docs": [
            "sphinx>=4.0",
            "sphinx-rtd-theme>=1.0",
            "numpydoc>=1.1",
        ],
        # Complete installation with all optional features
        "all": [
            "pytest>=7.0",
            "scipy>=1.7.0",
            "black>=21.0",
            "sphinx>=4.0",
            "sphinx-rtd-theme>=1.0",
            "numpydoc>=1.1",
        ],
    },
    zip_safe=False,
)
