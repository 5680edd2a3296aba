from setuptools import setup, find_packages

package_name = 'locomotion_nlp'

setup(
    name=package_name,
    version='0.1.0',
    packages=find_packages('src'),
    package_dir={'': 'src'},
    install_requires=['setuptools', 'numpy', 'scipy'],
    extras_require={
        'test': ['pytest'],
    },
    python_requires='>=3.10',
    zip_safe=True,
    maintainer='root',
    description='Constraint and cost building blocks for legged-robot '
                'trajectory optimization',
    license='MIT',
    entry_points={
        'console_scripts': [],
    },
)
