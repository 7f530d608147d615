# setup.py
from setuptools import setup, find_packages

setup(
    name="neoscout",
    version="0.1.0",
    description="Size audit and mirroring of Neocities sites",
    packages=find_packages(exclude=("tests", "tests.*")),
    package_data={"neoscout": ["templates/*.j2"]},
    install_requires=[
        "aiohttp>=3.9",
        "click>=8.1",
        "Jinja2>=3.1",
        "lxml>=5.0",
        "pydantic>=2.5",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "neoscout=neoscout.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
