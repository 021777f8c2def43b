from setuptools import setup, find_packages

setup(
    name="deadline-notification",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "boto3",
        "botocore>=1.34",
        "pydantic>=2",
        "pydantic-settings>=2",
        "python-dotenv",
        "prometheus-client",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
)
