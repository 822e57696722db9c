import re

import setuptools

with open("pyyard/__init__.py", "r") as fh:
    version_tuple = re.search(r"^version_tuple = \((\d+), (\d+), (\d+)\)", fh.read(), re.M).groups()
__version__ = '.'.join(version_tuple)

with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name="pyyard",
    version=__version__,
    author="pyYard Authors",
    description="Python module to collect lawn mower, sprinkler and weather data into a SQL database",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(),
    install_requires=[
        'requests',
        'python-dotenv',
        'python-dateutil',
        'pydantic>=2.0',
        'pydantic-settings>=2.0',
        'SQLAlchemy>=2.0',
        'PyMySQL',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'pyyard=pyyard.__main__:main',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
