from setuptools import setup, find_namespace_packages


setup(
    name='tokencurve_core',
    version='0.1',
    packages=find_namespace_packages(where="src"),
    package_dir={"": "src"},
    python_requires='>=3.9',
    install_requires=[
        'pydantic>=2',
        'flask',
        'flask-openapi3>=3',
        'solders',
    ],
    extras_require={
        'test': ['pytest', 'hypothesis'],
    },
    entry_points={
        'console_scripts': [
            'tokencurve_core = tokencurve_core.webapi.webapi:main',
        ],
    },
)
