import os, sys, orjson
from loguru import logger

### Local Imports
from distcfg import utils
from distcfg.configs import utils as tmpl_utils
###

def main() -> int:
  argv = sys.argv[1:]
  if len(argv) < 1: raise CLIError("Missing Template Type")
  tmpl = argv[0].lower()
  if len(argv) > 1: kv = tmpl_utils.args_to_kv(argv[1:])
  else: kv = {}
  try: cfg = tmpl_utils.assemble(tmpl, **kv)
  except ValueError as e:
    raise CLIError(f'Failed to Initialize Template `{tmpl}`: {e}') from e

  utils.write_to_stdout(orjson.dumps(cfg, default=utils.json_default, option=orjson.OPT_INDENT_2 | orjson.OPT_APPEND_NEWLINE))
  return 0

class CLIError(RuntimeError): ...

if __name__ == '__main__':
  _rc = 1
  logger.remove()
  logger.add(sys.stderr, level=os.environ.get('LOG_LEVEL', 'INFO'), enqueue=True, colorize=True)
  try: _rc = main()
  except CLIError as e: logger.critical(str(e))
  except Exception as e: logger.opt(exception=e).critical("Unhandled Exception")
  finally:
    logger.complete()
    sys.stderr.flush()
    sys.stdout.flush()
    exit(_rc)
