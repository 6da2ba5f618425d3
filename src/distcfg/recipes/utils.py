import re, base64, binascii

NIX_BASE32_ALPHABET = '0123456789abcdfghijklmnpqrsvwxyz'
HASH_SIZES = { 'sha1': 20, 'sha256': 32, 'sha512': 64 }
SRI_RE = re.compile(r'^(sha1|sha256|sha512)-([A-Za-z0-9+/]+={0,2})$')

def _nix_base32_len(size: int) -> int:
  return (size * 8 - 1) // 5 + 1

def check_hash(value: str, algo: str | None = None) -> str:
  """Check the shape of a source hash; returns the hash algorithm.

  Accepts SRI hashes (`sha256-<base64>`), nix-base32 & hex digests. Nothing is fetched.
  """
  if (match := SRI_RE.match(value)):
    _algo, digest = match.groups()
    try: raw = base64.b64decode(digest, validate=True)
    except binascii.Error as e: raise ValueError(f'Invalid SRI Hash: {value}') from e
    if len(raw) != HASH_SIZES[_algo]: raise ValueError(f'Invalid {_algo} digest length: {value}')
  elif algo is not None and len(value) == _nix_base32_len(HASH_SIZES[algo]) and all(c in NIX_BASE32_ALPHABET for c in value): _algo = algo
  elif algo is not None and len(value) == HASH_SIZES[algo] * 2 and all(c in '0123456789abcdef' for c in value): _algo = algo
  else: raise ValueError(f'Unrecognized Hash Format: {value}')
  if algo is not None and _algo != algo: raise ValueError(f'Expected a {algo} hash; got {_algo}: {value}')
  return _algo
