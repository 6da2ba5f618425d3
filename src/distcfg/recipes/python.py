"""

Python Package Recipes

A recipe records where a Python package's source lives & what it needs to build; it is evaluated into
the concrete source URL & build environment. The build itself is left to the package's own backend.

"""
from __future__ import annotations
import re
from loguru import logger

### Local Imports
from distcfg import schemas
from distcfg.recipes import utils
###

SUPPORTED_FORMATS = ['pyproject', 'setuptools', 'wheel', 'other']
PNAME_RE = re.compile(r'^[A-Za-z0-9]([A-Za-z0-9._-]*[A-Za-z0-9])?$')
PY_VERSION_RE = re.compile(r'^\d+\.\d+$')
DEFAULT_PYTHON = '3.11'

def src_rev(recipe: schemas.PythonPackageRecipe) -> str:
  return recipe['src'].get('rev', f"refs/tags/{recipe['version']}")

def src_url(recipe: schemas.PythonPackageRecipe) -> str:
  """The GitHub archive URL of the recipe's source"""
  src = recipe['src']
  return f"https://github.com/{src['owner']}/{src['repo']}/archive/{src_rev(recipe)}.tar.gz"

def build_env(recipe: schemas.PythonPackageRecipe) -> dict[str, str]:
  """setuptools-scm cannot find a version in a source archive; pretend the recipe's version"""
  if 'setuptools-scm' in recipe['native_build_inputs']: return { 'SETUPTOOLS_SCM_PRETEND_VERSION': recipe['version'] }
  return {}

def import_name(pname: str) -> str:
  return re.sub(r'[-.]', '_', pname).lower()

def is_supported(recipe: schemas.PythonPackageRecipe, python_version: str) -> bool:
  """Whether the recipe is enabled for the given `MAJOR.MINOR` interpreter version"""
  if 'min_python' not in recipe: return True
  _min = tuple(int(v) for v in recipe['min_python'].split('.'))
  _ver = tuple(int(v) for v in python_version.split('.')[:2])
  return _ver >= _min

def evaluate(
  recipe: schemas.PythonPackageRecipe,
  python_version: str = DEFAULT_PYTHON,
) -> schemas.PythonPackageStatus:
  """Evaluate a Python Package Recipe into its source & build environment"""
  pname = recipe['pname']
  logger.debug(f"Evaluating Python Package Recipe: {pname}=={recipe['version']}")
  if not PNAME_RE.match(pname): raise ValueError(f'Invalid Package Name: {pname}')
  if recipe['format'] not in SUPPORTED_FORMATS: raise ValueError(f"[{pname}] Unsupported Package Format: {recipe['format']}")
  if 'min_python' in recipe and not PY_VERSION_RE.match(recipe['min_python']): raise ValueError(f"[{pname}] Invalid minimum Python Version: {recipe['min_python']}")
  utils.check_hash(recipe['src']['hash'])
  return {
    'pname': pname,
    'version': recipe['version'],
    'format': recipe['format'],
    'src_url': src_url(recipe),
    'src_hash': recipe['src']['hash'],
    'env': build_env(recipe),
    'build_inputs': list(recipe['native_build_inputs']),
    'propagated_build_inputs': list(recipe['propagated_build_inputs']),
    'imports_check': list(recipe['imports_check']) or [ import_name(pname) ],
    'do_check': recipe['do_check'],
    'disabled': not is_supported(recipe, python_version),
  }
