"""
location: setup.py


"""
from setuptools import setup, find_packages

setup(
    name="openfema-client",
    version="0.1.0",
    packages=find_packages(include=["openfema_client", "openfema_client.*"]),
    python_requires=">=3.10",
    install_requires=[
        "httpx>=0.28.1",
        "pandas>=2.2.3",
        "pydantic>=2.11.3",
        "python-dotenv>=1.1.0",
        "rich>=10.14.0,<14",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "mypy>=1.0.0",
            "black>=23.0.0",
            "isort>=5.0.0",
            "invoke>=2.2.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "openfema = openfema_client.__main__:main",
        ],
    },
)
