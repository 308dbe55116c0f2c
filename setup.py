from setuptools import setup, find_packages

setup(
    name="routemate",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "fastapi",
        "uvicorn",
        "python-dotenv",
        "pydantic>=2",
        "pydantic-settings",
        "googlemaps",
        "httpx",
        "aiohttp",
        "python-multipart",
    ],
    extras_require={
        "test": [
            "pytest>=7",
            "httpx",
        ],
    },
    python_requires=">=3.10",
)
