#!/usr/bin/env python3
"""
Setup script for mcstat
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_path = Path(__file__).parent / "README.md"
if readme_path.exists():
    with open(readme_path, "r", encoding="utf-8") as f:
        long_description = f.read()
else:
    long_description = "Minecraft server status client for the command line"

# Read requirements
requirements_path = Path(__file__).parent / "requirements.txt"
if requirements_path.exists():
    with open(requirements_path, "r", encoding="utf-8") as f:
        requirements = [
            line.strip()
            for line in f
            if line.strip() and not line.startswith("#")
        ]
else:
    requirements = [
        "pyyaml>=6.0.1",
        "rich>=13.4.2",
        "dnspython>=2.4.0",
    ]

# Optional dependencies
extras_require = {
    "test": [
        "pytest>=7.4.0",
        "pytest-asyncio>=0.21.1",
    ],
    "dev": [
        "pytest>=7.4.0",
        "pytest-asyncio>=0.21.1",
        "black>=23.7.0",
        "flake8>=6.0.0",
        "mypy>=1.5.0",
    ],
}

setup(
    name="mcstat",
    version="0.3.0",
    author="mcstat contributors",
    description="Minecraft server status client for the command line",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(),
    py_modules=["main"],
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: End Users/Desktop",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Internet",
        "Topic :: System :: Networking",
        "Topic :: Games/Entertainment",
    ],
    python_requires=">=3.8",
    install_requires=requirements,
    extras_require=extras_require,
    entry_points={
        "console_scripts": [
            "mcstat=main:main",
        ],
    },
    include_package_data=True,
    package_data={
        "": ["config.yaml", "*.yml", "*.yaml"],
    },
    zip_safe=False,
    keywords=[
        "minecraft",
        "server",
        "status",
        "ping",
        "srv",
        "forge",
        "async",
        "protocol",
    ],
)
