# setup.py
from setuptools import setup, find_packages

setup(
    name="site_compare",
    version="0.1.0",
    description="Visual page-by-page comparison of two websites",
    packages=find_packages(exclude=("tests", "tests.*")),
    package_data={"site_compare": ["report/templates/*.j2"]},
    include_package_data=True,
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "click>=8.1",
        "Jinja2>=3.1",
        "numpy>=1.26",
        "Pillow>=10.1",
        "playwright>=1.40",
        "pydantic>=2.5",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "site-compare=site_compare.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
