"""

Linux Kernel Recipe

A Kernel Recipe only records which mainline tarball to build; everything else is derived from the version.

See: https://www.kernel.org/

"""
from __future__ import annotations
import re
from loguru import logger

### Local Imports
from distcfg import schemas
from distcfg.recipes import utils
###

MIRRORS = {
  'kernel': 'https://cdn.kernel.org/pub/',
}
KERNEL_VERSION_RE = re.compile(r'^v?(\d+(?:\.\d+){0,2})(?:-(.+))?$')

def parse_version(version: str) -> tuple[tuple[int, ...], str | None]:
  """Split a Kernel Version into its numeric components & its suffix (ie. `rc1`)"""
  if not isinstance(version, str): raise TypeError(f"Kernel Version must be a string; got `{type(version).__name__}`")
  match = KERNEL_VERSION_RE.match(version.strip())
  if not match: raise ValueError(f'Invalid Kernel Version: {version}')
  numeric, suffix = match.groups()
  return tuple(int(v) for v in numeric.split('.')), suffix

def mod_dir_version(version: str) -> str:
  """The module directory version is always MAJOR.MINOR.PATCH; `6.1` becomes `6.1.0`"""
  numeric, suffix = parse_version(version)
  padded = '.'.join(str(v) for v in (numeric + (0, 0))[:3])
  return f'{padded}-{suffix}' if suffix else padded

def branch(version: str) -> str:
  numeric, _ = parse_version(version)
  if len(numeric) < 2: raise ValueError(f'Kernel Version has no minor component: {version}')
  return f'{numeric[0]}.{numeric[1]}'

def default_url(version: str) -> str:
  numeric, _ = parse_version(version)
  return f'mirror://kernel/linux/kernel/v{numeric[0]}.x/linux-{version.lstrip("v")}.tar.xz'

def resolve_url(url: str) -> str:
  """Resolve `mirror://<name>/` URLs against the known mirrors"""
  if not url.startswith('mirror://'): return url
  name, _, path = url[len('mirror://'):].partition('/')
  if name not in MIRRORS: raise ValueError(f'Unknown Mirror `{name}`: {url}')
  return MIRRORS[name] + path

def evaluate(recipe: schemas.KernelRecipe) -> schemas.KernelStatus:
  """Evaluate a Kernel Recipe into its derived values.

  `args_override` is merged over the recipe; an overridden `mod_dir_version` or `branch` replaces the derived value.
  """
  override = recipe.get('args_override', {})
  if not isinstance(override, dict): raise TypeError(f"Kernel Recipe `args_override` must be a mapping; got `{type(override).__name__}`")
  _recipe = recipe | override
  version = _recipe['version']
  logger.debug(f'Evaluating Kernel Recipe: {version}')
  src = _recipe.get('src', {})
  if not isinstance(src, dict): raise TypeError(f"Kernel Recipe `src` must be a mapping; got `{type(src).__name__}`")
  if 'sha256' not in src: raise ValueError(f'Kernel Recipe `{version}` has no source hash')
  utils.check_hash(src['sha256'], algo='sha256')
  return {
    'pname': 'linux',
    'version': version,
    'mod_dir_version': _recipe.get('mod_dir_version') or mod_dir_version(version),
    'branch': _recipe.get('branch') or branch(version),
    'src': {
      'url': resolve_url(src.get('url', default_url(version))),
      'sha256': src['sha256'],
    },
  }
