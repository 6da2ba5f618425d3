import inspect

### Local Imports
from distcfg import schemas
from distcfg.configs import default, example
###

supported_tmpl_t = ['default', 'example']

def args_to_kv(argv: list[str]) -> dict:
  kv = {}
  for arg in argv:
    if arg.startswith('-'): continue
    if '=' in arg:
      k, v = arg.split('=', 1)
      kv[k] = v
  return kv

def _select_kwargs(fn, kv: dict) -> dict:
  """Select the arguments a template accepts"""
  params = inspect.signature(fn).parameters
  return { k: v for k, v in kv.items() if k in params }

def assemble(tmpl: str, **kv) -> schemas.BuildConfig:
  """Assemble a Build Configuration from a Template; the default template is always applied first"""
  tmpl = tmpl.lower()
  if tmpl not in supported_tmpl_t: raise ValueError(f'Unsupported Template Type: {tmpl}')
  unknown = set(kv) - set(inspect.signature(default.assemble).parameters) - set(inspect.signature(example.assemble).parameters)
  if unknown: raise ValueError(f'Unknown Template Arguments: {", ".join(sorted(unknown))}')
  cfg = default.assemble(**_select_kwargs(default.assemble, kv))
  if tmpl == 'example': cfg |= example.assemble(**_select_kwargs(example.assemble, kv))
  return cfg
