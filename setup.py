"""
Setup script for offline-results.

Offline result delivery for the quiz/classroom client. It serves three roles:

1. Durable Queue - Graded results that could not be submitted are kept locally
2. Delivery Engine - Queued results are redelivered with bounded retries
3. Status Surface - Sync status and notices for the app shell

The 'offline-results' command is the primary entry point.
"""

from setuptools import find_packages, setup

setup(
    name="offline-results",
    version="1.0.0",
    description="Durable offline delivery of graded quiz results",
    long_description=open("README.md", encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    packages=find_packages(include=["offline_results", "offline_results.*"]),
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # HTTP
        "httpx>=0.25.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "offline-results=offline_results.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
    ],
    keywords="quiz offline queue retry idempotency",
)
