"""

systemd-repart Definition Files

Partition Definitions are rendered into a content addressed directory of `<name>.conf` files. The
directory is a pure function of the definitions so it can be shared by every consumer & reused
across builds.

See: https://www.freedesktop.org/software/systemd/man/repart.d.html

"""
from __future__ import annotations
import pathlib, tempfile, shutil, os
from loguru import logger

### Local Imports
from distcfg import schemas, utils
from distcfg.repart import utils as ini
###

SECTION = 'Partition'
EXCLUDE_PREFIX = '_'
FILE_SUFFIX = '.conf'
OUTPUT_NAME = 'systemd-repart-definitions'
FILE_MODE = 0o444

def is_excluded(name: str) -> bool:
  return name.startswith(EXCLUDE_PREFIX)

def _validate_name(name: str) -> None:
  if not isinstance(name, str): raise TypeError(f"Definition name must be a string: {name!r}")
  if not name: raise ValueError("Definition name must not be empty")
  if name in ('.', '..'): raise ValueError(f"Definition name is not a valid file name: {name!r}")
  if '/' in name or '\0' in name: raise ValueError(f"Definition name must be a single path component: {name!r}")
  if name != name.strip(): raise ValueError(f"Definition name must not have surrounding whitespace: {name!r}")

def _validate_field(name: str, key: str, value: object) -> None:
  if not isinstance(key, str): raise TypeError(f"[{name}] Field name must be a string: {key!r}")
  if not key.strip(): raise ValueError(f"[{name}] Field name must not be empty")
  if any(c in key for c in '=\n\r[]') or key != key.strip(): raise ValueError(f"[{name}] Invalid field name: {key!r}")
  if not isinstance(value, (str, int, bool)): raise TypeError(f"[{name}] Field `{key}` must be a string, integer or boolean; got `{type(value).__name__}`")
  if isinstance(value, str) and ('\n' in value or '\r' in value): raise ValueError(f"[{name}] Field `{key}` must not span multiple lines")

def validate(partitions: dict[str, schemas.PartitionDefinition]) -> None:
  """Check every Partition Definition before anything is rendered.

  Excluded definitions are checked too; the exclusion only affects rendering.

  Raises:
    TypeError: A name, field or value has the wrong type
    ValueError: A name, field or value is malformed
  """
  if not isinstance(partitions, dict): raise TypeError(f"Partitions must be a mapping; got `{type(partitions).__name__}`")
  for name, fields in partitions.items():
    _validate_name(name)
    if not isinstance(fields, dict): raise TypeError(f"[{name}] Partition must be a mapping of fields; got `{type(fields).__name__}`")
    for key, value in fields.items(): _validate_field(name, key, value)

def select(partitions: dict[str, schemas.PartitionDefinition]) -> dict[str, schemas.PartitionDefinition]:
  """The Partition Definitions that are rendered, ordered by name"""
  return { name: partitions[name] for name in sorted(partitions) if not is_excluded(name) }

def render_definition(fields: schemas.PartitionDefinition) -> str:
  return ini.render({ SECTION: fields })

def render_set(partitions: dict[str, schemas.PartitionDefinition]) -> list[tuple[str, str]]:
  """Render the (file name, content) pairs in the order systemd-repart processes them"""
  return [
    (f'{name}{FILE_SUFFIX}', render_definition(fields))
    for name, fields in select(partitions).items()
  ]

def output_name(fingerprint: str) -> str:
  _algo, _hash = fingerprint.split(':', 1)
  return f'{_hash[:32]}-{OUTPUT_NAME}'

def compile_dir(
  partitions: dict[str, schemas.PartitionDefinition],
  store: pathlib.Path,
) -> schemas.DefinitionsStatus:
  """Compile the Partition Definitions into a content addressed directory inside the store.

  The directory is assembled in a temporary sibling & renamed into place so it never exists
  half written. If the directory already exists it is reused as is.

  Args:
    partitions (dict): Definition Name -> Partition Section
    store (pathlib.Path): The directory to write the output into; must already exist

  Returns:
    schemas.DefinitionsStatus: The path, hash & file names of the compiled directory
  """
  validate(partitions)
  if not (store.exists() and store.is_dir()): raise RuntimeError(f"Store `{store.as_posix()}` does not exist or is not a Directory")

  rendered = render_set(partitions)
  fingerprint = utils.fingerprint(rendered)
  out_dir = store / output_name(fingerprint)
  status: schemas.DefinitionsStatus = {
    'path': out_dir.as_posix(),
    'hash': fingerprint,
    'files': [filename for filename, _ in rendered],
  }

  if out_dir.exists():
    logger.debug(f"Definitions already compiled: {out_dir.as_posix()}")
    return status

  logger.debug(f"Compiling {len(rendered)} Definition File(s) into {out_dir.as_posix()}")
  try: tmp_dir = pathlib.Path(tempfile.mkdtemp(prefix=f'.{OUTPUT_NAME}-', dir=store))
  except OSError as e: raise RuntimeError(f"Failed to create a temporary directory in the store `{store.as_posix()}`: {e}") from e
  try:
    for filename, content in rendered:
      (dst := tmp_dir / filename).write_text(content, encoding='utf-8')
      dst.chmod(FILE_MODE)
      logger.trace(f"Wrote {filename}...\n{content}")
    tmp_dir.chmod(0o755)
    try: os.rename(tmp_dir, out_dir)
    except OSError:
      if not out_dir.exists(): raise
      logger.debug(f"Definitions were compiled concurrently: {out_dir.as_posix()}")
      shutil.rmtree(tmp_dir)
  except OSError as e:
    shutil.rmtree(tmp_dir, ignore_errors=True)
    raise RuntimeError(f"Failed to write the Definition Files into `{store.as_posix()}`: {e}") from e

  return status

def install(src_dir: pathlib.Path, dst_dir: pathlib.Path) -> list[pathlib.Path]:
  """Hard copy a compiled directory to `dst_dir`, which must not exist yet.

  Symlinks into the store would dangle once the target root is booted, so the files are copied.
  On failure `dst_dir` is removed again.
  """
  if not (src_dir.exists() and src_dir.is_dir()): raise RuntimeError(f"Definitions `{src_dir.as_posix()}` do not exist or are not a Directory")
  if dst_dir.exists() or dst_dir.is_symlink(): raise RuntimeError(f"Path already exists: {dst_dir.as_posix()}")
  logger.debug(f"Copying {src_dir.as_posix()} to {dst_dir.as_posix()}")
  written: list[pathlib.Path] = []
  dst_dir.mkdir(mode=0o755, parents=True, exist_ok=False)
  try:
    for src_file in sorted(src_dir.iterdir()):
      shutil.copyfile(src_file, dst := dst_dir / src_file.name)
      dst.chmod(0o644)
      written.append(dst)
  except OSError:
    shutil.rmtree(dst_dir, ignore_errors=True)
    raise
  return written
