from setuptools import setup, find_packages

setup(
    name="plexrpc-proxy",
    version="1.0.0",
    packages=find_packages(include=["metaproxy", "metaproxy.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110",
        "starlette",
        "uvicorn[standard]",
        "httpx>=0.27",
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
    ],
    extras_require={
        "test": [
            "pytest>=8",
            "pytest-asyncio>=0.23",
            "respx>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "plexrpc-proxy=metaproxy.app.main:run",
        ],
    },
)
