from setuptools import setup, find_packages
from codecs import open
from os import path


here = path.abspath(path.dirname(__file__))


with open(path.join(here, 'README.rst'), encoding='utf-8') as f:
    long_description = f.read()

with open(path.join(here, 'fitdash', '__init__.py')) as pkg:
    __version__ = eval(pkg.readline().split('=')[1])


setup(
    name='fitdash',
    version=__version__,
    description='FIT activity file decoding for training dashboards',
    long_description=long_description,
    license='MIT',
    keywords='exercise cycling running garmin fit data',

    # See https://pypi.python.org/pypi?%3Aaction=list_classifiers
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Science/Research',
        'Topic :: Scientific/Engineering :: Medical Science Apps.',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
    ],

    packages=find_packages(),
    python_requires='>=3.8',
    install_requires=[
        'pandas>=1.0',
        'pytz>=2011.11',
    ],
    extras_require={
        'test': ['numpy>=1.11.1', 'pytest'],
    },
    entry_points={
        'console_scripts': [
            'fitdash=fitdash._util.cli:parse',
        ],
    },
)
