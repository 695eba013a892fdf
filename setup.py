
import io
import setuptools

with io.open('requirements.txt') as fp:
  requirements = [x.strip() for x in fp.readlines() if x.strip() and not x.startswith('#')]

with io.open('README.md', encoding='utf8') as fp:
  readme = fp.read()

setuptools.setup(
  name = 'weld-build',
  version = '0.1.0',
  description = 'An incremental multi-project build orchestrator.',
  long_description = readme,
  long_description_content_type = 'text/markdown',
  license = 'MIT',
  python_requires = '>=3.8',
  packages = setuptools.find_packages('src'),
  package_dir = {'': 'src'},
  include_package_data = True,
  install_requires = requirements,
  extras_require = {
    'test': ['pytest>=6.0'],
  },
  entry_points = {
    'console_scripts': ['weld=weld.main:main']
  }
)
