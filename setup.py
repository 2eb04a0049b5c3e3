from setuptools import setup, find_packages

setup(
    name="tauscale",
    version="0.1.0",
    description="Interval-scaling node-height operators and site-rate models for Bayesian phylogenetics",
    package_dir={"": "tauscale"},
    packages=find_packages("tauscale"),
    install_requires=[
        "numpy>=1.24",
        "scipy>=1.10",
        "networkx>=3.0",
        "treeswift>=1.1",
    ],
    extras_require={
        "validation": ["msprime>=1.2"],
        "dev": ["pytest>=7.4", "msprime>=1.2"],
    },
    entry_points={
        "console_scripts": [
            "tauscale=tauscale.cli:main",
        ],
    },
)
