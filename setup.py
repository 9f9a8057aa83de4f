import setuptools

with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    author="movestats contributors",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    description="Movement input statistics for CS2 demo files",
    entry_points={"console_scripts": ["movestats=movestats.cli:app"]},
    extras_require={"test": ["pytest"]},
    install_requires=["demoparser2", "pandas", "polars", "pyarrow", "rich", "typer", "tzlocal"],
    long_description=long_description,
    long_description_content_type="text/markdown",
    name="movestats",
    packages=setuptools.find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    version="0.1.0",
)
