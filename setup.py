from setuptools import setup, find_packages

setup(
    name="matka",
    version="2.0.0",
    packages=find_packages(exclude=["matka.tests"]),
    package_data={"matka": ["config/*.yaml"]},
    install_requires=[
        "numpy",
        "pandas",
        "matplotlib",
        "seaborn",
        "scipy",
        "pyyaml",
        "marshmallow>=3.13.0",
        "beautifulsoup4"
    ],
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.8",
)
