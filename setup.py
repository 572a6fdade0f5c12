"""Setup configuration for the Kokosa Forward Telegram relay bot."""

from setuptools import setup, find_packages

setup(
    name="kokosa-forward",
    version="0.1.0",
    description="A Telegram bot that relays guest messages to an admin with AI moderation",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    package_data={"kokosa.i18n": ["locales/*.yml"]},
    python_requires=">=3.11",
    install_requires=[
        "aiohttp>=3.9",
        "aiosqlite>=0.19",
        "openai>=1.0",
        "prompt_toolkit>=3.0",
        "python-dotenv>=1.0",
        "PyYAML>=6.0",
        "requests>=2.31",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "kokosa=kokosa.main:main",
        ],
    },
)
