"""

Run systemd-repart on the booted system

The compiled Definitions are exposed at `/etc/repart.d` & the upstream unit runs with its default invocation.

"""
from __future__ import annotations
import pathlib
from loguru import logger

### Local Imports
from distcfg import schemas
from distcfg.repart import definitions, utils as ini
###

UNIT_NAME = 'systemd-repart'
ETC_PATH = 'repart.d'
WANTED_BY = 'sysinit.target'

def unit_path(systemd_package: str) -> str:
  return (pathlib.PurePosixPath(systemd_package) / 'lib/systemd/system' / f'{UNIT_NAME}.service').as_posix()

def plan(
  status: schemas.DefinitionsStatus,
  systemd_package: str,
) -> schemas.RuntimeActivation:
  """Register the compiled Definitions with the booted system"""
  return {
    'etc': { ETC_PATH: status['path'] },
    'upstream_units': [ f'{UNIT_NAME}.service' ],
    'unit_path': unit_path(systemd_package),
    'wanted_by': WANTED_BY,
  }

def deploy(
  activation: schemas.RuntimeActivation,
  root: pathlib.Path,
) -> schemas.DeployStatus:
  """Materialize the runtime activation inside a root directory.

  The store lives on the build host, so the Definition Files are hard copied into `etc/`. Every
  destination is checked before the first write; if a write fails, whatever was created is removed again.
  """
  if not (root.exists() and root.is_dir()): raise RuntimeError(f"Root `{root.as_posix()}` does not exist or is not a Directory")

  etc = { root / 'etc' / name: pathlib.Path(src) for name, src in activation['etc'].items() }
  wants = { root / 'etc/systemd/system' / f"{activation['wanted_by']}.wants" / unit: activation['unit_path'] for unit in activation['upstream_units'] }
  ini.check_free([ *etc, *wants ])

  files: list[str] = []
  links: dict[str, str] = {}
  created: list[pathlib.Path] = []
  try:
    for dst_dir, src_dir in etc.items():
      ini.make_parents(dst_dir, created)
      written = definitions.install(src_dir, dst_dir)
      created.append(dst_dir)
      files.extend(p.relative_to(root).as_posix() for p in written)

    for link, target in wants.items():
      logger.debug(f"Linking {link.as_posix()} -> {target}")
      ini.make_parents(link, created)
      link.symlink_to(target)
      created.append(link)
      links[link.relative_to(root).as_posix()] = target
  except (OSError, RuntimeError):
    ini.rollback(created)
    raise

  return {
    'root': root.as_posix(),
    'files': files,
    'links': links,
  }
