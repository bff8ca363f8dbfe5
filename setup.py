# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""Setup configuration for token-rp package."""

from pathlib import Path

from setuptools import find_packages, setup

# Read the README file
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding="utf-8")

setup(
    name="token-rp",
    version="0.1.0",
    author="token-rp contributors",
    description="Reverse proxy that exchanges OIDC tokens for backend access tokens",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["token_rp", "token_rp.*", "token_rp_logging", "token_rp_logging.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=[
        "fastapi>=0.109.0",  # For the catch-all proxy route and responses
        "httpx>=0.27.0",  # For OIDC discovery, broker exchange, GitHub and backend calls
        "PyJWT>=2.8.0",  # For JWKS parsing and token verification
        "cryptography>=44.0.1",  # For RSA/EC signature verification in PyJWT
        "pydantic>=2.4.0",  # For broker token response parsing
        "starlette>=0.49.1",  # For the threadpool bridge and streaming responses
        "uvicorn>=0.27.0",  # For serving HTTP and TLS
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "pylint>=3.0.0",
            "mypy>=1.0.0",
        ],
        "test": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "token-rp=token_rp.main:main",
        ],
    },
)
