from setuptools import find_packages, setup


setup(
    name='marketplace-deploy',
    version='1.0.0',
    description='Network configuration and deployment modules for the marketplace contracts',
    packages=find_packages(exclude=['tests', 'tests.*']),
    python_requires='>=3.10, <4',
    install_requires=[
        'web3==7.6.0',
        'eth-account==0.13.4',
        'requests==2.32.3',
        'loguru==0.7.2',
        'filelock==3.16.1',
        'python-dotenv==1.0.1',
    ],
    extras_require={
        'test': ['pytest==8.3.3'],
    },
    entry_points={
        'console_scripts': ['marketplace-deploy=deploy_runner.cli:main'],
    },
)
