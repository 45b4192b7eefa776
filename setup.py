from setuptools import find_packages, setup

setup(
    name="canopus",
    version="0.1.0",
    license="MIT",

    author="Dotanuki Labs",
    python_requires=">=3.11",
    description="Validates and repairs CODEOWNERS files, checking owners "
                "against the GitHub organization they belong to.",

    url="https://github.com/dotanuki-labs/canopus",

    packages=find_packages(include=("canopus", "canopus.*")),

    install_requires=[
        "Click>=8.0,<9.0",
        "toml>=0.10.0,<0.11.0",
        "pydantic>=2.6,<3.0",
        "httpx>=0.27,<1.0",
        "stamina>=24.3",
        "sentry-sdk>=2.0,<3.0",
    ],

    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "pytest-httpserver>=1.0",
            "pytest-mock>=3.12",
        ],
    },

    test_suite="canopus.test",

    classifiers=[
        'Development Status :: 3 - Alpha',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ],
    entry_points={
        'console_scripts': [
            'canopus = canopus.cli:canopus',
        ],
    },
)
