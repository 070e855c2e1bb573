from setuptools import setup, find_packages
from codecs import open
from os import path

here = path.abspath(path.dirname(__file__))
name = "nativelib"
exec(open("nativelib/version.py").read())


# Get the long description from the README file
with open(path.join(here, "README.rst"), encoding="utf-8") as f:
    long_description = f.read()

try:
    with open(path.join(here, "requirements.txt"), encoding="utf-8") as f:
        pinned_reqs = f.readlines()
except FileNotFoundError:
    pinned_reqs = []


setup(
    name=name,
    version=__version__,
    python_requires=">=3.8",
    description="Builds native libraries and their dependencies from source",
    long_description=long_description,
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Build Tools",
        "Operating System :: MacOS :: MacOS X",
        "Operating System :: Microsoft :: Windows",
        "Operating System :: POSIX",
        "Programming Language :: C",
        "Programming Language :: Python :: 3",
    ],
    keywords=[
        "autotools",
        "build",
        "cairo",
        "cmake",
        "make",
        "pkg-config",
    ],
    packages=find_packages(exclude=["contrib", "docs", "tests", "tests.*"]),
    install_requires=pinned_reqs or [
        "click>=8.1",
        "colorama",
        "psutil",
        "pygit2",
        "requests",
        "tqdm",
    ],
    dependency_links=[],
    extras_require={
        "test": ["coverage", "pytest"],
    },
    entry_points={
        "console_scripts": [
            "nativelib=nativelib.__main__:main",
        ],
    },
)
