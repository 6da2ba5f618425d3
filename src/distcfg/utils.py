import hashlib, pathlib, uuid, sys

TRUTHY = ('1', 'true', 'yes', 'on')
FALSY = ('0', 'false', 'no', 'off', '')

def json_default(obj) -> object:
  if isinstance(obj, pathlib.Path): return obj.as_posix()
  elif isinstance(obj, uuid.UUID): return str(obj)
  else: return obj

def parse_bool(val: str | bool) -> bool:
  """Parse a boolean passed as a `key=value` argument"""
  if isinstance(val, bool): return val
  _val = val.lower().strip()
  if _val in TRUTHY: return True
  elif _val in FALSY: return False
  else: raise ValueError(f"Invalid boolean: {val}")

def fingerprint(entries: list[tuple[str, str]], algo: str = 'sha256') -> str:
  """Hash an ordered list of (name, content) pairs; returns ALGO:FINGERPRINT"""
  h = hashlib.new(algo)
  for name, content in entries:
    for part in (name.encode(), content.encode()):
      h.update(len(part).to_bytes(8, 'big'))
      h.update(part)
  return f'{algo}:{h.hexdigest()}'

def write_to_stdout(data: bytes):
  buf_len = len(data)
  bytes_written = 0
  while bytes_written < buf_len: bytes_written += sys.stdout.buffer.write(data[bytes_written:])
