from setuptools import setup, find_packages

setup(
    name="openapi-mcp-bridge",
    version="0.1.0",
    packages=find_packages("src"),
    package_dir={"": "src"},
    install_requires=[
        "pyyaml>=6.0",
        "pydantic>=2.5",
        "pydantic-settings>=2.0",
        "typer>=0.9",
        "httpx>=0.25",
        "jsonschema>=4.17",
        "fastmcp>=2.10,<3",
        "mcp>=1.10",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "openapi-mcp-bridge=openapi_mcp_bridge.cli:main",
        ],
    },
    description="Expose the operations of an OpenAPI 3 document as schema-validated MCP tools",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
)
