from setuptools import setup, find_packages

setup(
    name="ultrastar-lyrics",
    version="0.1.0",
    description="Parse UltraStar karaoke txt files and follow their lyrics in your terminal, synced to your MPRIS-compatible music player",
    long_description=open("README.md", encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    python_requires=">=3.10",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"ultrastar_lyrics": ["py.typed"]},
    install_requires=[
        "dbus-python",
        "typer",
    ],
    extras_require={
        "dev": [
            "pytest",
            "black",
            "ruff",
            "mypy",
        ]
    },
    entry_points={
        "console_scripts": [
            "ultrastar-lyrics=ultrastar_lyrics.cli:main",
        ]
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Sound/Audio",
        "Topic :: Utilities",
    ],
    keywords="ultrastar karaoke lyrics terminal mpris synchronized",
)
