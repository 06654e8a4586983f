from setuptools import find_packages, setup

setup(
    name="dialplan-flows",
    version="0.1",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.10",
    install_requires=[
        "fastapi<0.137",
        "uvicorn",
        "pydantic>=2",
        "aiohttp",
        "loguru",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
)
