"""
Setup script for the PDF Unlocker package.
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="pdf-unlocker",
    version="0.1.0",
    author="PDF Unlocker Team",
    author_email="example@example.com",
    description="Remove password protection from PDF files locally",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/example/pdf-unlocker",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Topic :: Security",
        "Topic :: Utilities",
    ],
    python_requires=">=3.8",
    install_requires=[
        "pikepdf>=5.0.0",
        "PyMuPDF>=1.22.0",
        "tqdm>=4.50.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "pdf-unlock=pdf_unlocker.cli:main",
        ],
    },
)
