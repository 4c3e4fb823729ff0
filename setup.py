"""Setup script for Backlink Renamer."""

from setuptools import setup, find_packages
import os

# Read the README file
def read_readme():
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_path):
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return "Backlink Renamer - repoint wiki links after a document is renamed"

setup(
    name='backlink-renamer',
    version='0.1.0',
    description='Rewrite backlinks to a renamed document through the seed wiki API',
    long_description=read_readme(),
    long_description_content_type='text/markdown',
    author='Backlink Renamer Team',
    author_email='dev@example.com',

    packages=find_packages(include=['backlink_renamer', 'backlink_renamer.*']),
    python_requires='>=3.8',
    install_requires=[
        'requests>=2.31.0',
        'pydantic>=2.0.0',
        'click>=8.1.0',
        'python-dotenv>=1.0.0',
    ],

    extras_require={
        'yaml': ['pyyaml>=6.0'],
        'toml': ['tomli>=2.0.0'],
        'dev': [
            'pytest>=7.4.0',
            'pytest-cov>=4.1.0',
            'black>=23.0.0',
            'flake8>=6.0.0',
            'mypy>=1.5.0',
            'pyyaml>=6.0',
        ],
    },

    entry_points={
        'console_scripts': [
            'backlink-renamer=backlink_renamer.cli:cli',
        ],
    },

    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'Topic :: Internet :: WWW/HTTP :: Dynamic Content :: Wiki',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ],

    keywords='wiki backlink rename bot theseed automation',

    include_package_data=True,
    zip_safe=False,
)
