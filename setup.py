"""
Setup script for deutsch-meister.

Deutsch Meister is a German reading and vocabulary trainer driven by a
generative model. It serves three roles:

1. Reading practice - Level-appropriate stories with sentence translations
2. Comprehension checks - Multiple-choice quizzes and cloze exercises
3. Vocabulary keeping - Favorite word lists and an archive of saved texts

The 'deutsch-meister' command is the terminal front end.
"""

from setuptools import find_packages, setup

setup(
    name="deutsch-meister",
    version="1.0.0",
    description="Terminal German reading trainer backed by Gemini",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="Deutsch Meister",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Generation endpoint
        "google-generativeai>=0.7.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "deutsch-meister=deutsch_meister.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Natural Language :: German",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="german language-learning cefr cloze quiz gemini",
)
