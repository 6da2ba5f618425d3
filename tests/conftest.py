import pathlib

import pytest

from distcfg.configs import default


@pytest.fixture()
def partitions():
    return {
        "10-root": {"Type": "root"},
        "20-home": {"Type": "home", "SizeMinBytes": "512M"},
    }


@pytest.fixture()
def store(tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "store"
    path.mkdir()
    return path


@pytest.fixture()
def build_cfg(tmp_path: pathlib.Path, partitions):
    cfg = default.assemble(workdir=str(tmp_path))
    cfg["repart"]["partitions"] = partitions
    return cfg
