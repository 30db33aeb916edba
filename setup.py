from setuptools import setup
from setuptools import find_packages

config = {
    'name' : 'floatbase',
    'version' : '0.1.0',
    'description' : 'Floating-base robot models and recursive inverse dynamics',
    'install_requires' : [
        'numpy',
        'scipy',
        'casadi',
        'prettytable',
        'urdf_parser_py',
        'PyYAML'
    ],
    'extras_require' : {
        'test' : [
            'pytest'
        ]
    },
    'python_requires' : '>=3.8',
    'packages' : find_packages(exclude=['tests', 'tests.*']),
}

setup(**config)
