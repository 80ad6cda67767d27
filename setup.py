from setuptools import setup, find_packages

setup(
    name='flashbuild',
    version='0.1.0',
    description='Release build helper for the Flutter flashlight app',
    package_dir={'': 'src'},
    packages=find_packages('src'),
    python_requires='>=3.8',
    install_requires=[
        'PyYAML',
        'platformdirs',
        'rich',
        'pick',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-mock',
        ],
    },
    entry_points={
        'console_scripts': [
            'flashbuild=flashbuild.cli:main',
        ],
    },
)
