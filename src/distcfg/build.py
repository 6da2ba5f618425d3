from __future__ import annotations
from loguru import logger
import pathlib, sys, os, orjson

### Local src imports
from distcfg import schemas, utils
from distcfg.configs import utils as tmpl_utils
from distcfg.repart import definitions, initrd, runtime
from distcfg.recipes import kernel, python
###

def check_config(cfg: schemas.BuildConfig) -> None:
  """Fail fast on a malformed Build Configuration; nothing has been written yet"""
  logger.debug('Checking the Build Configuration')
  for key in ('workdir', 'systemd_package', 'repart', 'initrd_repart'):
    if key not in cfg: raise BuildError(f'Missing Build Configuration key: {key}')
  for key in ('repart', 'initrd_repart'):
    if not isinstance(cfg[key], dict): raise BuildError(f'`{key}` must be a mapping')
    if not isinstance(cfg[key].get('enable'), bool): raise BuildError(f'`{key}.enable` must be a boolean')
  try: definitions.validate(cfg['repart'].get('partitions', {}))
  except (TypeError, ValueError) as e: raise BuildError(f'Invalid Partition Definitions: {e}') from e
  logger.success('Build Configuration is valid')

def store_path(cfg: schemas.BuildConfig) -> pathlib.Path:
  if os.environ.get('DISTCFG_STORE'): return pathlib.Path(os.environ['DISTCFG_STORE'])
  elif 'store_path' in cfg: return pathlib.Path(cfg['store_path'])
  else: return pathlib.Path(cfg['workdir']) / 'store'

def compile_definitions(cfg: schemas.BuildConfig) -> schemas.BuildResult:
  """Compile the Partition Definitions once; both activation paths share the output"""
  if not (cfg['repart']['enable'] or cfg['initrd_repart']['enable']):
    logger.info('systemd-repart is not enabled; skipping the Partition Definitions')
    return { 'definitions': None }

  store = store_path(cfg)
  logger.info(f'Compiling the Partition Definitions into {store.as_posix()}')
  try:
    store.mkdir(mode=0o755, parents=True, exist_ok=True)
    status = definitions.compile_dir(cfg['repart'].get('partitions', {}), store)
  except (TypeError, ValueError) as e: raise BuildError(f'Invalid Partition Definitions: {e}') from e
  except (RuntimeError, OSError) as e: raise BuildError(f'Failed to compile the Partition Definitions: {e}') from e
  logger.success(f"Partition Definitions compiled: {status['path']} ({len(status['files'])} file(s))")
  return { 'definitions': status }

def plan_activation(
  cfg: schemas.BuildConfig,
  status: schemas.DefinitionsStatus | None,
) -> schemas.BuildResult:
  """Register the compiled Definitions with each enabled activation path"""
  result: schemas.BuildResult = { 'initrd': None, 'runtime': None }
  if status is None: return result
  if cfg['initrd_repart']['enable']:
    result['initrd'] = initrd.plan(status, cfg['systemd_package'])
    logger.success('systemd-repart registered with the initrd')
  if cfg['repart']['enable']:
    result['runtime'] = runtime.plan(status, cfg['systemd_package'])
    logger.success('systemd-repart registered with the booted system')
  return result

def deploy_activation(
  cfg: schemas.BuildConfig,
  plan: schemas.BuildResult,
) -> schemas.BuildResult:
  """Deploy each planned activation into its root directory, if one is configured"""
  deployed: dict[str, schemas.DeployStatus] = {}
  try:
    if plan['initrd'] is not None and 'initrd_root' in cfg:
      initrd_root = pathlib.Path(cfg['initrd_root'])
      logger.info(f'Deploying the initrd activation into {initrd_root.as_posix()}')
      deployed['initrd'] = initrd.deploy(plan['initrd'], initrd_root)
      logger.success(f'Initrd activation deployed: {initrd_root.as_posix()}')
    if plan['runtime'] is not None and 'root' in cfg:
      root = pathlib.Path(cfg['root'])
      logger.info(f'Deploying the runtime activation into {root.as_posix()}')
      deployed['runtime'] = runtime.deploy(plan['runtime'], root)
      logger.success(f'Runtime activation deployed: {root.as_posix()}')
  except (RuntimeError, OSError) as e: raise BuildError(f'Failed to deploy: {e}') from e
  return { 'deployed': deployed }

def evaluate_recipes(cfg: schemas.BuildConfig) -> schemas.BuildResult:
  logger.info('Evaluating Recipes')
  recipes = {}
  try:
    if 'kernel' in cfg: recipes['kernel'] = kernel.evaluate(cfg['kernel'])
    if 'python_packages' in cfg: recipes['python_packages'] = [ python.evaluate(pkg) for pkg in cfg['python_packages'] ]
  except (KeyError, TypeError, AttributeError, ValueError) as e: raise BuildError(f'Invalid Recipe: {e!r}') from e
  logger.success(f'Recipes Evaluated: {", ".join(recipes) or "none"}')
  return { 'recipes': recipes }

def load_config(argv: list[str]) -> schemas.BuildConfig:
  """Read the Build Configuration from stdin; otherwise assemble it from a template"""
  build_cfg_json = sys.stdin.read().strip()
  if build_cfg_json:
    try: return orjson.loads(build_cfg_json)
    except orjson.JSONDecodeError as e: raise CLIError(f'Invalid Build Configuration: {e}') from e
  tmpl = next((a for a in argv if not a.startswith('-') and '=' not in a), 'default')
  try: return tmpl_utils.assemble(tmpl, **tmpl_utils.args_to_kv(argv))
  except ValueError as e: raise CLIError(f'Failed to Initialize Template `{tmpl}`: {e}') from e

def main(argv: list[str] | None = None) -> int:
  argv = sys.argv[1:] if argv is None else argv

  build_cfg = load_config(argv)
  assert build_cfg is not None
  logger.info(f"Using Build Configuration...\n{orjson.dumps(build_cfg, option=orjson.OPT_INDENT_2).decode()}")
  check_config(build_cfg)

  build_result: schemas.BuildResult = {
    'definitions': None,
    'initrd': None,
    'runtime': None,
    'deployed': {},
    'recipes': {},
  }
  build_result |= evaluate_recipes(build_cfg)
  build_result |= compile_definitions(build_cfg)
  build_result |= plan_activation(build_cfg, build_result['definitions'])
  if '--no-deploy' not in argv: build_result |= deploy_activation(build_cfg, build_result)

  utils.write_to_stdout(orjson.dumps(build_result, default=utils.json_default, option=orjson.OPT_APPEND_NEWLINE))
  return 0

class BuildError(RuntimeError): ...
class CLIError(RuntimeError): ...
def setup_logging():
  logger.remove()
  logger.add(sink=sys.stderr, level=os.environ.get('LOG_LEVEL', 'INFO'), enqueue=True, colorize=True)
def finalize():
  logger.complete()
  sys.stderr.flush()
  sys.stdout.flush()
def _build_error(e: Exception):
  logger.error(f'Build Failed: {e}')
  return 1
def _cli_error(e: Exception):
  logger.error(e)
  return 2
def _unhandled_error(e: Exception):
  logger.opt(exception=e).critical('Unhandled exception')
  return 3
def _interrupt_error():
  logger.warning("Interrupt Detected, Exiting...")
  return 4

def cli() -> int:
  _rc = 255
  setup_logging()
  try: _rc = main()
  except (KeyboardInterrupt, SystemExit): _rc = _interrupt_error()
  except CLIError as e: _rc = _cli_error(e)
  except BuildError as e: _rc = _build_error(e)
  except Exception as e: _rc = _unhandled_error(e)
  finally: finalize()
  return _rc

if __name__ == '__main__':
  sys.exit(cli())
