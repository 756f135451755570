from setuptools import setup, find_packages

setup(
    name='luabundler',
    version='0.1.0',
    description='Bundle Lua modules and their requires into a single file',
    py_modules=['luabundle'],
    packages=find_packages(exclude=['tests', 'tests.*']),
    package_data={
        'luabundler': ['runtime/*.lua'],
    },
    python_requires='>=3.8',
    install_requires=[
        'lark',
        'pydantic>=2.0',
    ],
    extras_require={
        'test': [
            'pytest',
            'lupa',
        ],
    },
    entry_points={
        'console_scripts': [
            'luabundle = luabundle:main',
        ],
    },
)
