from setuptools import find_packages, setup

setup(
    name="dirwatcher",
    version="0.1.0",
    description="Push-based notification of created, modified and deleted files in a directory",
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    python_requires=">=3.8",
    install_requires=[
        "watchdog",
        "click",
        "toml",
        "pyyaml",
        "rich",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "dirwatcher=dirwatcher.cli:main"
        ]
    },
)
