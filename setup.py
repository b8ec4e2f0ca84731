from setuptools import setup, find_packages

setup(
    name="workflowgraph",
    version="0.1.0",
    packages=find_packages("src", exclude=["tests", "tests.*"]),
    package_dir={"": "src"},
    install_requires=[
        "pydantic>=2",
        "pydantic-settings>=2.7",
        "pytest",
        "pytest-asyncio",
    ],
    python_requires=">=3.9",
    description="validation and analysis engine for workflow graphs",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
)
