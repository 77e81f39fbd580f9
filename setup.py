from setuptools import find_packages, setup

setup(
    name="logwatch",
    version="0.1.0",
    description="Recursive real-time directory activity logger built on inotify",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "click",
        "toml",
        "pyyaml",
        "inotify_simple",
        "rich",
        "psutil"
    ],
    extras_require={
        "test": ["pytest"]
    },
    entry_points={
        "console_scripts": [
            "logwatch=logwatch.cli:main"
        ]
    },
)
