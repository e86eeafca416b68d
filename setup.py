import codecs
import os.path

from setuptools import find_packages
from setuptools import setup

with open("README.md", encoding="UTF-8") as fh:
    long_description = fh.read()


def read(rel_path):
    here = os.path.abspath(os.path.dirname(__file__))
    with codecs.open(os.path.join(here, rel_path), "r") as fp:
        return fp.read()


def get_version(rel_path):
    for line in read(rel_path).splitlines():
        if line.startswith("__version__"):
            delim = '"' if '"' in line else "'"
            return line.split(delim)[1]
    raise RuntimeError("Unable to find version string.")


setup(
    name="biometa-validator",
    version=get_version("src/biometa/__init__.py"),
    description="Validate and normalize GA4GH subject and sample metadata records",
    long_description_content_type="text/markdown",
    long_description=long_description,
    license="Apache 2.0",
    package_dir={"": "src"},
    packages=find_packages("src"),
    install_requires=["click", "pandas", "pydantic>=2", "pyyaml", "requests", "fastparquet"],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["biometa = biometa.parse_metadata:main"]},
    platforms=["any"],
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
    ],
    keywords="ga4gh metadata biosample individual validation ontology",
    include_package_data=True,
    python_requires=">=3.10",
)
