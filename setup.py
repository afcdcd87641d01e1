from setuptools import setup, find_packages

setup(
    name="mkdocs-capi3ref",
    version="1.0.0",
    description="mdoc(7) manual pages from CAPI3REF C header comments, with an MkDocs plugin",
    keywords="mkdocs sqlite mdoc manpage c documentation python",
    packages=find_packages(exclude=["tests"]),
    install_requires=[
        "mkdocs>=1.4",
    ],
    extras_require={
        "test": ["pytest"],
    },
    classifiers = [
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Documentation",
        "Topic :: Software Development :: Documentation",
        "Framework :: MkDocs",
    ],
    entry_points={
        "mkdocs.plugins": [
            "capi3ref = mkdocs_capi3ref.plugin:ManpagePlugin",
        ],
        "console_scripts": [
            "capi3ref = mkdocs_capi3ref.cli:main",
        ],
    },
)
