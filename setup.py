from setuptools import find_packages, setup

setup(
    name="boundlic",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "fastapi",
        "uvicorn",
        "pydantic",
        "sqlalchemy>=2.0",
        "requests",
        "click",
    ],
    extras_require={
        "postgres": ["psycopg2-binary"],
        "test": ["pytest", "httpx"],
    },
    entry_points={
        "console_scripts": [
            "boundlic=boundlic.cli:cli",
        ],
    },
)
