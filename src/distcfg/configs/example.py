### Local Imports
from distcfg import schemas, utils
###

def assemble(
  enable: str | bool = True,
  initrd_enable: str | bool = True,
  home_size_min: str = '512M',
  home_size_max: str = '2G',
) -> schemas.BuildConfig:
  """Grow the root partition & add a home partition"""
  return {
    # We omit all other top level keys
    'repart': {
      'enable': utils.parse_bool(enable),
      'partitions': {
        '10-root': {
          'Type': 'root',
        },
        '20-home': {
          'Type': 'home',
          'SizeMinBytes': home_size_min,
          'SizeMaxBytes': home_size_max,
        },
      },
    },
    'initrd_repart': {
      'enable': utils.parse_bool(initrd_enable),
    },
  }
