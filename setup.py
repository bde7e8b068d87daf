"""setuptools setup for Ghostplay.

Install for development:
    pip install -e ".[test]"
    pytest
"""

from setuptools import setup, find_packages

setup(
    name="ghostplay",
    version="0.1.0",
    description="Account-free XP, levels and badges for pseudonymous players",
    packages=find_packages(include=["ghostplay", "ghostplay.*"]),
    python_requires=">=3.10",
    install_requires=[
        "SQLAlchemy>=2.0",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
)
