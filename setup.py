from setuptools import setup, find_packages

setup(
    name="difftargets",
    version="0.1.0",
    packages=find_packages(include=["difftargets", "difftargets.*"]),
    python_requires=">=3.10",
    install_requires=[
        "requests",
        "pyyaml",
        "tree-sitter>=0.22",
        "tree-sitter-javascript",
        "tree-sitter-typescript",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "difftargets=difftargets.cli:run",
        ],
    },
    description="Find the JavaScript/TypeScript functions a pull request changed.",
)
