from setuptools import setup, find_packages

setup(
    name="bile-translator",
    version="0.1.0",
    description="Bilingual article translation with slang explanations using free-tier LLM providers",
    author="Bile Translator Team",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        "bile_translator": ["prompts/*.yaml"],
    },
    install_requires=[
        "openai>=1.12.0",
        "pyyaml>=6.0",
        "python-dotenv>=1.0.0",
        "jinja2>=3.1.2",
        "pydantic>=2.0.0",
        "tiktoken>=0.5.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "httpx>=0.23.0",
        ],
    },
    python_requires=">=3.9",
    entry_points={
        "console_scripts": [
            "bile-translate=bile_translator.cli:main",
        ],
    },
)
