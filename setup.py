"""
RugPlay Market Analyzer - Setup Configuration
Coin risk analysis and personal transaction ledger for the RugPlay market
"""

from setuptools import setup, find_packages
import os

# Read the README file
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Read requirements
def read_requirements(file):
    """Read requirements from file"""
    if os.path.exists(file):
        with open(file, 'r') as f:
            return [line.strip() for line in f if line.strip() and not line.startswith('#')]
    return []

setup(
    name="rugplay-analyzer",
    version="2.0.0",
    author="RugPlay Analyzer Team",
    description="Trend, rug-risk, activity and profitability analysis with a personal P&L ledger",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Financial and Insurance Industry",
        "Topic :: Office/Business :: Financial :: Investment",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
        "Framework :: AsyncIO",
    ],
    packages=find_packages(exclude=["tests*", "docs*"]),
    py_modules=["main"],
    python_requires=">=3.11",
    install_requires=read_requirements("requirements.txt"),
    extras_require={
        "dev": read_requirements("test-requirements.txt"),
    },
    entry_points={
        "console_scripts": [
            "rugplay-analyzer=main:main",
        ],
    },
    include_package_data=True,
    zip_safe=False,
    keywords=[
        "cryptocurrency", "rugplay", "rug-pull", "portfolio", "pnl",
        "market-analysis", "trading"
    ],
)
