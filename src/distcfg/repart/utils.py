"""

Rendering of systemd style INI documents & deploying them into a root directory

See: https://www.freedesktop.org/software/systemd/man/systemd.syntax.html

"""
from __future__ import annotations
import pathlib, shutil
from loguru import logger

def render_value(value: str | int | bool) -> str:
  """Serialize a single value the way systemd's config parser reads it back"""
  if isinstance(value, bool): return 'true' if value else 'false' # bool is a subclass of int; check it first
  elif isinstance(value, int): return str(value)
  elif isinstance(value, str): return value
  else: raise TypeError(f"Unsupported value type `{type(value).__name__}`: {value!r}")

def render_section(
  name: str,
  fields: dict[str, str | int | bool | list[str | int | bool]],
  sort_keys: bool = True,
) -> str:
  """Render a single `[name]` section.

  List values are written as duplicate keys in list order; an empty string entry is preserved so a
  drop-in can reset a key before assigning it.
  """
  lines = [f'[{name}]']
  for key in (sorted(fields) if sort_keys else fields):
    value = fields[key]
    if isinstance(value, list): lines.extend(f'{key}={render_value(v)}' for v in value)
    else: lines.append(f'{key}={render_value(value)}')
  return '\n'.join(lines) + '\n'

def render(
  sections: dict[str, dict[str, str | int | bool | list[str | int | bool]]],
  sort_keys: bool = True,
) -> str:
  """Render an INI Document; sections are written in the given order separated by a blank line"""
  return '\n'.join(render_section(name, fields, sort_keys=sort_keys) for name, fields in sections.items())

def check_free(paths: list[pathlib.Path]) -> None:
  """Every destination must be free before the first write"""
  for path in paths:
    if path.exists() or path.is_symlink(): raise RuntimeError(f"Path already exists: {path.as_posix()}")

def make_parents(path: pathlib.Path, created: list[pathlib.Path]) -> None:
  """Create the missing parents of `path`, recording each one in `created` (outermost first)"""
  missing = [p for p in reversed(path.parents) if not p.exists()]
  path.parent.mkdir(mode=0o755, parents=True, exist_ok=True)
  created.extend(missing)

def rollback(created: list[pathlib.Path]) -> None:
  """Remove what a failed deploy created, newest first"""
  for path in reversed(created):
    logger.warning(f"Rolling back: {path.as_posix()}")
    if path.is_symlink() or path.is_file(): path.unlink(missing_ok=True)
    elif path.is_dir(): shutil.rmtree(path, ignore_errors=True)
