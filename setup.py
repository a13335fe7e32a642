from setuptools import find_packages, setup


packages = find_packages(where='src')

with open('requirements.txt', encoding='utf-8') as requirements_file:
    requirements = [line.strip() for line in requirements_file if line.strip() and not line.startswith('#')]


setup(
    name='charasheet-notion-sync',
    version='0.1.0',
    packages=packages,
    package_dir={'': 'src'},
    package_data={'charasheet_sync': ['static/*']},
    include_package_data=True,
    python_requires='>=3.8',
    install_requires=requirements,
    extras_require={'test': ['pytest', 'responses']},
    entry_points={'console_scripts': ['charasheet-sync=charasheet_sync.cli:main']},
    description='Synchronise character sheets from the character repository into a Notion database',
)
