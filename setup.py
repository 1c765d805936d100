"""Setup script for bashgpt CLI tool."""

from setuptools import find_packages, setup

setup(
    name="bashgpt",
    version="0.1.0",
    description="bashgpt - Natural language to shell command autocompletion",
    author="bashgpt Team",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        "bashgpt": ["data/*.txt", "data/*.sh"],
    },
    install_requires=[
        "click>=8.1.7",
        "rich>=13.7.0",
        "httpx>=0.26.0",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "structlog>=24.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "bashgpt=bashgpt.main:main",
        ],
    },
    python_requires=">=3.10",
)
