"""Setup script for MentorHub."""

from setuptools import setup, find_packages

setup(
    name="mentorhub",
    version="0.1.0",
    description="Adaptive skill assessments and personalised learning content over FastAPI",
    python_requires=">=3.11",
    packages=find_packages(include=["mentorhub", "mentorhub.*"]),
    install_requires=[
        "fastapi>=0.110",
        "uvicorn[standard]>=0.29",
        "pydantic>=2.6",
        "pydantic-settings>=2.2",
        "python-dotenv>=1.0",
        "httpx>=0.27",
        "openai>=1.30,<3",
        "anyio>=4.3",
        "orjson>=3.10",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "respx>=0.21",
        ],
    },
)
