from setuptools import setup, find_packages

setup(
    name="export-isolation",
    version="0.1.0",
    packages=find_packages(include=["export_isolation", "export_isolation.*"]),
    python_requires=">=3.9",
    install_requires=[
        "asyncpg>=0.29.0",
        "aio-pika>=9.3.1",
        "pydantic>=2.5.0",
        "httpx>=0.25.0",
        "python-dotenv>=1.0.0",
        "deepdiff>=8.0.0",
        "pytest>=8.0.0",
        "pytest-asyncio>=0.24.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0.0",
            "pytest-asyncio>=0.24.0",
        ],
    },
)
