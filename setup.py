"""Setup file for development installation."""

from setuptools import setup, find_packages

setup(
    name="avan-studio",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "fastapi",
        "pydantic>=2",
        "structlog",
        "google-generativeai",
        "google-api-core",
        "httpx",
        "python-dotenv",
        "prometheus-client",
        "opentelemetry-instrumentation-fastapi",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
)
