"""

Run systemd-repart in the initrd

The upstream unit is reused & overridden so that it

  - reads the Definition Files from the initrd itself instead of `/sysroot` or `/sysusr`
  - keeps its temporary files in `/tmp`; `/var/tmp` is no more persistent than `/tmp` in the initrd
  - starts after `/sysroot` is mounted, otherwise it cannot determine the disk to operate on
  - is pulled in by `initrd-root-fs.target`

"""
from __future__ import annotations
import pathlib
from loguru import logger

### Local Imports
from distcfg import schemas
from distcfg.repart import definitions, utils as ini
###

UNIT_NAME = 'systemd-repart'
DEFINITIONS_PATH = '/etc/repart.d'
TMPDIR = '/tmp'
AFTER = ['sysroot.mount']
WANTED_BY = 'initrd-root-fs.target'

def tool_path(systemd_package: str) -> str:
  return (pathlib.PurePosixPath(systemd_package) / 'bin' / 'systemd-repart').as_posix()

def unit_path(systemd_package: str) -> str:
  return (pathlib.PurePosixPath(systemd_package) / 'lib/systemd/system' / f'{UNIT_NAME}.service').as_posix()

def plan(
  status: schemas.DefinitionsStatus,
  systemd_package: str,
) -> schemas.InitrdActivation:
  """Register the compiled Definitions with the initrd"""
  return {
    'contents': { DEFINITIONS_PATH: status['path'] },
    'store_paths': [ tool_path(systemd_package) ],
    'upstream_units': [ f'{UNIT_NAME}.service' ],
    'unit_path': unit_path(systemd_package),
    'wanted_by': WANTED_BY,
    'services': {
      UNIT_NAME: {
        'environment': { 'TMPDIR': TMPDIR },
        'exec_start': [
          '', # Unset the upstream ExecStart
          f'{tool_path(systemd_package)} --definitions={DEFINITIONS_PATH} --dry-run=no',
        ],
        'after': list(AFTER),
      },
    },
  }

def render_override(override: schemas.ServiceOverride) -> str:
  """Render a Service Override as a systemd drop-in"""
  return ini.render({
    'Unit': { 'After': override['after'] },
    'Service': {
      'Environment': [ f'{k}={v}' for k, v in sorted(override['environment'].items()) ],
      'ExecStart': override['exec_start'],
    },
  }, sort_keys=False)

def deploy(
  activation: schemas.InitrdActivation,
  initrd_root: pathlib.Path,
) -> schemas.DeployStatus:
  """Materialize the initrd activation inside an initrd root directory.

  The Definition Files are hard copied, the Service Override is written as a drop-in & the upstream
  unit is enabled for `initrd-root-fs.target`. Every destination is checked before the first write;
  if a write fails, whatever was created is removed again.
  """
  if not (initrd_root.exists() and initrd_root.is_dir()): raise RuntimeError(f"Initrd Root `{initrd_root.as_posix()}` does not exist or is not a Directory")

  unit_dir = initrd_root / 'etc/systemd/system'
  contents = { initrd_root / dst.lstrip('/'): pathlib.Path(src) for dst, src in activation['contents'].items() }
  dropins = { unit_dir / f'{unit}.service.d' / 'override.conf': override for unit, override in activation['services'].items() }
  wants = { unit_dir / f"{activation['wanted_by']}.wants" / unit: activation['unit_path'] for unit in activation['upstream_units'] }
  ini.check_free([ *contents, *dropins, *wants ])

  files: list[str] = []
  links: dict[str, str] = {}
  created: list[pathlib.Path] = []
  try:
    for dst_dir, src_dir in contents.items():
      ini.make_parents(dst_dir, created)
      written = definitions.install(src_dir, dst_dir)
      created.append(dst_dir)
      files.extend(p.relative_to(initrd_root).as_posix() for p in written)

    for dropin, override in dropins.items():
      logger.debug(f"Writing Service Override: {dropin.as_posix()}")
      ini.make_parents(dropin, created)
      dropin.write_text(render_override(override), encoding='utf-8')
      created.append(dropin)
      files.append(dropin.relative_to(initrd_root).as_posix())

    for link, target in wants.items():
      logger.debug(f"Linking {link.as_posix()} -> {target}")
      ini.make_parents(link, created)
      link.symlink_to(target)
      created.append(link)
      links[link.relative_to(initrd_root).as_posix()] = target
  except (OSError, RuntimeError):
    ini.rollback(created)
    raise

  return {
    'root': initrd_root.as_posix(),
    'files': files,
    'links': links,
  }
