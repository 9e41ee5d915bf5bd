"""
Setup script for pspk - named public keys, group key agreement and
encrypted messages over a public key directory.

This tool provides:
- X25519 key pairs published under human-chosen names
- Pairwise shared secrets and AES-256-GCM encrypted messages
- Ephemeral (forward secret) messages to a published key
- Multi-party group key agreement through published intermediate keys
"""

from setuptools import setup, find_packages
import os

this_directory = os.path.abspath(os.path.dirname(__file__))
long_description = ''
readme = os.path.join(this_directory, 'README.md')
if os.path.exists(readme):
    with open(readme, encoding='utf-8') as f:
        long_description = f.read()

setup(
    name='pspk',
    version='0.3.0',
    description='Publish named X25519 keys, agree on pairwise and group secrets, and encrypt messages with them',
    long_description=long_description,
    long_description_content_type='text/markdown',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Topic :: Security :: Cryptography',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Operating System :: OS Independent',
        'Environment :: Console',
    ],
    python_requires='>=3.11',
    install_requires=[
        'cryptography>=42.0.4',
        'aiohttp>=3.9.0',
        'rich>=13.7.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.4.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'pspk=pspk.main:main',
        ],
    },
)
