"""
Setup configuration for manageteam-vault library
"""

from setuptools import setup, find_packages

setup(
    name="manageteam-vault",
    version="1.0.0",
    description="Async Vault client with Kubernetes auth and transparent token renewal",
    author="ManageTeam Platform Team",
    python_requires=">=3.11",
    packages=find_packages(include=["manageteam_vault", "manageteam_vault.*"]),
    install_requires=[
        "httpx>=0.24.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "structlog>=23.1.0",
        "prometheus-client>=0.17.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-mock>=3.11.0",
            "pytest-cov>=4.1.0",
            "black>=23.7.0",
            "mypy>=1.4.0",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3.11",
        "Topic :: Security",
    ],
)
