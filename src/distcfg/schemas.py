from typing import TypedDict, Literal, NotRequired

field_value_t = str | int | bool
supported_py_format_t = Literal['pyproject', 'setuptools', 'wheel', 'other']

PartitionDefinition = dict[str, field_value_t]
"""A single systemd-repart Partition Section; field name -> value"""

class RepartCfg(TypedDict):
  enable: bool
  """Run systemd-repart on the booted system"""
  partitions: dict[str, PartitionDefinition]
  """Definition File Name (sans `.conf`) -> Partition Section. Names starting with `_` are not rendered"""

class InitrdRepartCfg(TypedDict):
  enable: bool
  """Run systemd-repart inside the initrd, after the sysroot is mounted"""

class KernelSrc(TypedDict):
  url: str
  """Source Tarball URL; `mirror://kernel/` is resolved against the kernel.org CDN"""
  sha256: str
  """The expected Hash of the Tarball (nix-base32 or SRI)"""

class KernelRecipe(TypedDict):
  version: str
  """The Mainline Kernel Version"""
  src: NotRequired[KernelSrc]
  """(Optional) The Kernel Source; the URL defaults to the mainline tarball"""
  mod_dir_version: NotRequired[str]
  """(Optional) Replaces the module directory version derived from `version`"""
  branch: NotRequired[str]
  """(Optional) Replaces the `MAJOR.MINOR` branch derived from `version`"""
  args_override: NotRequired[dict]
  """(Optional) Overrides merged over the recipe; they take precedence over derived values"""

class GitHubSrc(TypedDict):
  owner: str
  repo: str
  rev: NotRequired[str]
  """(Optional) The Git Reference; defaults to `refs/tags/{version}`"""
  hash: str
  """SRI Hash of the Source Archive"""

class PythonPackageRecipe(TypedDict):
  pname: str
  version: str
  format: supported_py_format_t
  """The Build Format of the Package"""
  min_python: NotRequired[str]
  """(Optional) The Package is disabled for interpreters older than this"""
  src: GitHubSrc
  native_build_inputs: list[str]
  propagated_build_inputs: list[str]
  imports_check: list[str]
  do_check: bool
  """Whether the Package's Test Suite is run"""
  meta: dict[str, str | list[str]]

class BuildConfig(TypedDict):
  workdir: str
  """The Working Directory to persist runtime data"""
  store_path: NotRequired[str]
  """(Optional) Where content addressed outputs are written; defaults to `{workdir}/store`"""
  systemd_package: str
  """The install prefix of systemd (the directory holding `bin/` & `lib/`)"""
  repart: RepartCfg
  initrd_repart: InitrdRepartCfg
  root: NotRequired[str]
  """(Optional) A Root Directory to deploy the runtime activation into"""
  initrd_root: NotRequired[str]
  """(Optional) An Initrd Root Directory to deploy the initrd activation into"""
  kernel: NotRequired[KernelRecipe]
  python_packages: NotRequired[list[PythonPackageRecipe]]

class DefinitionsStatus(TypedDict):
  path: str
  """The content addressed directory holding the Definition Files"""
  hash: str
  """The Hash of the rendered Definitions in ALGO:FINGERPRINT format"""
  files: list[str]
  """The Definition File Names in processing order"""

class ServiceOverride(TypedDict):
  environment: dict[str, str]
  exec_start: list[str]
  """ExecStart entries; an empty entry resets the upstream value"""
  after: list[str]

class InitrdActivation(TypedDict):
  contents: dict[str, str]
  """Initrd Path -> Source Directory (copied, not linked)"""
  store_paths: list[str]
  """Paths added to the initrd's inventory"""
  upstream_units: list[str]
  unit_path: str
  """Where the upstream unit is installed"""
  wanted_by: str
  """The Target whose `.wants` enables the upstream unit"""
  services: dict[str, ServiceOverride]
  """Unit Name (sans `.service`) -> Overrides applied to the upstream unit"""

class RuntimeActivation(TypedDict):
  etc: dict[str, str]
  """Path relative to `/etc` -> Source Directory (copied, not linked)"""
  upstream_units: list[str]
  unit_path: str
  """Where the upstream unit is installed"""
  wanted_by: str
  """The Target whose `.wants` enables the upstream unit"""

class DeployStatus(TypedDict):
  root: str
  """The Root Directory deployed into"""
  files: list[str]
  """Paths written, relative to the root"""
  links: dict[str, str]
  """Symlinks created, relative to the root -> target"""

class KernelStatus(TypedDict):
  pname: str
  version: str
  mod_dir_version: str
  branch: str
  src: KernelSrc

class PythonPackageStatus(TypedDict):
  pname: str
  version: str
  format: str
  src_url: str
  src_hash: str
  env: dict[str, str]
  build_inputs: list[str]
  propagated_build_inputs: list[str]
  imports_check: list[str]
  do_check: bool
  disabled: bool
  """The Package is not available for the target interpreter"""

class BuildResult(TypedDict):
  definitions: DefinitionsStatus | None
  """None when neither activation path is enabled"""
  initrd: InitrdActivation | None
  runtime: RuntimeActivation | None
  deployed: dict[str, DeployStatus]
  """Activation Context -> Deployment"""
  recipes: dict[str, KernelStatus | list[PythonPackageStatus]]
