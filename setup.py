# setup.py
from setuptools import setup, find_packages

setup(
    name="indexnower",
    version="0.1.0",
    description="Track page changes and submit new or changed URLs to IndexNow",
    packages=find_packages(exclude=("tests", "tests.*")),
    package_data={"indexnower": ["templates/*.j2"]},
    include_package_data=True,
    install_requires=[
        "aiohttp>=3.9",
        "click>=8.1",
        "jinja2>=3.1",
        "lxml>=4.9",
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
            "indexnower=indexnower.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
