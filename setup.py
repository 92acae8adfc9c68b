# coding: utf-8
# (c) Copyright IBM Corp. 2025

import re
from os import path

from setuptools import find_packages, setup

pwd = path.abspath(path.dirname(__file__))

# Read the version without importing the package and its dependencies
with open(path.join(pwd, 'src', 'kubegraph', 'version.py'), encoding='utf-8') as f:
    VERSION = re.search(r'^VERSION = "([^"]+)"', f.read(), re.M).group(1)

# Import README.md into long_description
with open(path.join(pwd, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()


setup(name='kubegraph',
      version=VERSION,
      license='MIT',
      description='Network connection discovery for the pods of a Kubernetes cluster',
      package_dir={'': 'src'},
      packages=find_packages('src'),
      long_description=long_description,
      long_description_content_type='text/markdown',
      zip_safe=False,
      python_requires='>=3.8',
      install_requires=['kubernetes>=24.2.0',
                        'PyYAML>=6.0.1',
                        'requests>=2.6.0',],
      extras_require={
          'test': ['mock>=4.0.3',
                   'pytest>=7.0',
                   'pytest-mock>=3.10.0',],
      },
      entry_points={
                    'console_scripts': ['kubegraph = kubegraph.__main__:main'],
                    },
      keywords=['kubernetes', 'networking', 'monitoring', 'procfs',
                'connections'],
      classifiers=[
          'Development Status :: 4 - Beta',
          'Intended Audience :: Developers',
          'Intended Audience :: System Administrators',
          'License :: OSI Approved :: MIT License',
          'Operating System :: POSIX :: Linux',
          'Programming Language :: Python',
          'Programming Language :: Python :: 3',
          'Topic :: System :: Monitoring',
          'Topic :: System :: Networking :: Monitoring'])
