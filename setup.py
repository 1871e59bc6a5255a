"""
Setup Configuration for prisma
==============================

Installation options and entry point configuration for the prismatic
rule geometry assessment tool.

- Core numerical dependencies (numpy, scipy)
- Configuration (pyyaml) and plotting (matplotlib)
- Development tooling (pip install prisma[dev])
- CLI entry point registration
"""

import sys
from pathlib import Path
from setuptools import setup, find_packages

# Get the directory containing setup.py
HERE = Path(__file__).parent.resolve()


def read_readme():
    """Read README file for long description."""
    readme_path = HERE / "README.md"
    if readme_path.exists():
        return readme_path.read_text(encoding="utf-8")
    return "Prismatic rule geometry assessment from pin measurements"


def read_version():
    """Read version from prisma/_version.py."""
    version_path = HERE / "prisma" / "_version.py"
    if version_path.exists():
        with open(version_path, "r") as f:
            for line in f:
                if line.startswith("__version__"):
                    return line.split("=")[1].strip().strip("\"'")
    return "1.0.0"


INSTALL_REQUIRES = [
    "numpy>=1.21.0",
    "scipy>=1.7.0",
    "pyyaml>=5.4.0",
    "matplotlib>=3.3.0",
]

EXTRAS_REQUIRE = {
    "dev": [
        "pytest>=6.2.0",
        "pytest-cov>=2.12.0",
        "pytest-mock>=3.6.0",
        "hypothesis>=6.0.0",
    ],
}

EXTRAS_REQUIRE["all"] = sorted(set(sum(EXTRAS_REQUIRE.values(), [])))

ENTRY_POINTS = {
    "console_scripts": [
        "prisma=prisma.cli.main:main",
    ]
}

PACKAGE_DATA = {
    "prisma": [
        "config/templates/*.yaml",
    ]
}

CLASSIFIERS = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Manufacturing",
    "Topic :: Scientific/Engineering :: Mathematics",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Operating System :: OS Independent",
]

KEYWORDS = [
    "metrology", "prismatic rule", "least squares", "levenberg-marquardt",
    "geometry", "scientific computing",
]


def check_python_version():
    """Check if Python version is supported."""
    if sys.version_info < (3, 10):
        print("Python 3.10 or higher is required")
        print(f"   Current version: {sys.version}")
        sys.exit(1)


if __name__ == "__main__":
    check_python_version()

    setup(
        name="prisma",
        version=read_version(),
        description="Prismatic rule geometry assessment from pin measurements",
        long_description=read_readme(),
        long_description_content_type="text/markdown",
        author="Prisma Development Team",
        packages=find_packages(exclude=["tests*"]),
        package_data=PACKAGE_DATA,
        include_package_data=True,
        install_requires=INSTALL_REQUIRES,
        extras_require=EXTRAS_REQUIRE,
        python_requires=">=3.10",
        entry_points=ENTRY_POINTS,
        classifiers=CLASSIFIERS,
        keywords=KEYWORDS,
        zip_safe=False,
        platforms=["any"],
    )
