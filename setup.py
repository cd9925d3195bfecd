from setuptools import setup, find_packages

setup(
    name="bindery",
    version="0.1.0",
    description="Typed, retried, failure-aware structured output from chat LLMs.",
    author="BAMN",
    packages=find_packages(include=["bindery", "bindery.*"]),
    install_requires=[
        "pydantic>=2",
        "langchain-core",
        "langchain-ollama",
        "rich"
    ],
    extras_require={
        "openai": ["langchain-openai"],
        "test": ["pytest"],
    },
    python_requires=">=3.10",
)
