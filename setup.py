from setuptools import setup, find_packages

setup(
    name="issue-upvotes",
    version="1.0.0",
    description="Rank a GitHub repository's open issues by thumbs-up reactions",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "aiohttp>=3.9.0",
        "rich>=13.0.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "issue-upvotes=issue_upvotes.main:main",
        ],
    },
)
