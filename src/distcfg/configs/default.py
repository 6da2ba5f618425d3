import pathlib
from distcfg import schemas, utils

def assemble(
  workdir: str = '/mnt/build',
  systemd_package: str = '/usr',
  enable: str | bool = False,
  initrd_enable: str | bool = False,
) -> schemas.BuildConfig:
  """Assemble a default Build Configuration"""
  _workdir = pathlib.Path(workdir)
  repart_cfg: schemas.RepartCfg = {
    'enable': utils.parse_bool(enable),
    'partitions': {},
  }
  initrd_repart_cfg: schemas.InitrdRepartCfg = {
    'enable': utils.parse_bool(initrd_enable),
  }
  kernel_cfg: schemas.KernelRecipe = {
    'version': '6.1.29',
    'src': {
      'url': 'mirror://kernel/linux/kernel/v6.x/linux-6.1.29.tar.xz',
      'sha256': '1yzwp0496j63c6lhvsni1ynr8b2cpn552pli3nd3fdk0pp4nqwqy',
    },
  }
  python_pkgs: list[schemas.PythonPackageRecipe] = [
    {
      'pname': 'dvc-studio-client',
      'version': '0.9.0',
      'format': 'pyproject',
      'min_python': '3.8',
      'src': {
        'owner': 'iterative',
        'repo': 'dvc-studio-client',
        'hash': 'sha256-yiNhvemeN3Dbs8/UvdTsy0K/FORoAy27tvT4ElwFxRk=',
      },
      'native_build_inputs': [ 'setuptools-scm' ],
      'propagated_build_inputs': [ 'dulwich', 'gitpython', 'requests', 'voluptuous' ],
      'imports_check': [ 'dvc_studio_client' ],
      # Tests try to access network
      'do_check': False,
      'meta': {
        'description': 'Library to post data from DVC/DVCLive to Iterative Studio',
        'homepage': 'https://github.com/iterative/dvc-studio-client',
        'changelog': 'https://github.com/iterative/dvc-studio-client/releases/tag/0.9.0',
        'license': 'asl20',
      },
    },
  ]
  return {
    'workdir': _workdir.as_posix(),
    'store_path': (_workdir / 'store').as_posix(),
    'systemd_package': systemd_package,
    'repart': repart_cfg,
    'initrd_repart': initrd_repart_cfg,
    'kernel': kernel_cfg,
    'python_packages': python_pkgs,
  }
