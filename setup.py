from setuptools import setup, find_packages

setup(
    name='velero-e2e',
    version='0.1.0',
    packages=find_packages(exclude=['velero_e2e.tests', 'velero_e2e.tests.*']),
    include_package_data=True,
    install_requires=[
        'typer[all]',
        'kubernetes',
        'python-dotenv',
        'pyyaml',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'velero-e2e=velero_e2e.cli:app'
        ]
    },
    author='Your Name',
    description='Harness that installs Velero and drives backup/restore end-to-end checks through its CLI',
    classifiers=[
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.8',
)
