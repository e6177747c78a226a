from setuptools import setup, find_packages

setup(
    name="urlsweep",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.8",
    install_requires=[
        "requests",
        "backoff>=2.0",
        "PyYAML",
        "colorama>=0.4.6",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": [
            "urlsweep = urlsweep.cli:main",
        ],
    },
    author="exfil0",
    description="Historical URL harvester for lists of domains (VirusTotal, AlienVault OTX, Wayback Machine, HudsonRock)",
    license="MIT",
    keywords="url enumeration recon security wayback otx virustotal",
    url="https://github.com/exfil0/urlsweep",
)
