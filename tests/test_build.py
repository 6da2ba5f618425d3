import io
import pathlib
import sys

import orjson
import pytest

from distcfg import build
from distcfg.configs import utils as tmpl_utils


def run(monkeypatch, capsys, cfg, *argv):
    monkeypatch.setattr(sys, "stdin", io.StringIO(orjson.dumps(cfg).decode() if cfg is not None else ""))
    assert build.main(list(argv)) == 0
    return orjson.loads(capsys.readouterr().out)


def test_nothing_enabled_compiles_nothing(monkeypatch, capsys, build_cfg, tmp_path):
    result = run(monkeypatch, capsys, build_cfg)

    assert result["definitions"] is None
    assert result["initrd"] is None
    assert result["runtime"] is None
    assert not (tmp_path / "store").exists()
    assert result["recipes"]["kernel"]["branch"] == "6.1"


def test_only_initrd(monkeypatch, capsys, build_cfg):
    build_cfg["initrd_repart"]["enable"] = True
    result = run(monkeypatch, capsys, build_cfg)

    assert result["definitions"]["files"] == ["10-root.conf", "20-home.conf"]
    assert result["initrd"]["contents"] == {"/etc/repart.d": result["definitions"]["path"]}
    assert result["runtime"] is None


def test_only_runtime(monkeypatch, capsys, build_cfg):
    build_cfg["repart"]["enable"] = True
    result = run(monkeypatch, capsys, build_cfg)

    assert result["initrd"] is None
    assert result["runtime"]["etc"] == {"repart.d": result["definitions"]["path"]}


def test_both_share_one_compiled_directory(monkeypatch, capsys, build_cfg, tmp_path):
    build_cfg["repart"]["enable"] = True
    build_cfg["initrd_repart"]["enable"] = True
    result = run(monkeypatch, capsys, build_cfg)

    path = result["definitions"]["path"]
    assert result["initrd"]["contents"]["/etc/repart.d"] == path
    assert result["runtime"]["etc"]["repart.d"] == path
    assert len(list((tmp_path / "store").iterdir())) == 1


def test_deploy_into_roots(monkeypatch, capsys, build_cfg, tmp_path):
    build_cfg["repart"]["enable"] = True
    build_cfg["initrd_repart"]["enable"] = True
    (tmp_path / "root").mkdir()
    (tmp_path / "initrd").mkdir()
    build_cfg["root"] = str(tmp_path / "root")
    build_cfg["initrd_root"] = str(tmp_path / "initrd")
    result = run(monkeypatch, capsys, build_cfg)

    assert set(result["deployed"]) == {"initrd", "runtime"}
    assert (tmp_path / "initrd/etc/repart.d/20-home.conf").is_file()
    assert (tmp_path / "root/etc/repart.d/10-root.conf").is_file()
    assert not (tmp_path / "root/etc/repart.d").is_symlink()


def test_no_deploy_flag(monkeypatch, capsys, build_cfg, tmp_path):
    build_cfg["repart"]["enable"] = True
    (tmp_path / "root").mkdir()
    build_cfg["root"] = str(tmp_path / "root")
    result = run(monkeypatch, capsys, build_cfg, "--no-deploy")

    assert result["deployed"] == {}
    assert not (tmp_path / "root/etc").exists()


def test_store_from_environment(monkeypatch, capsys, build_cfg, tmp_path):
    monkeypatch.setenv("DISTCFG_STORE", str(tmp_path / "elsewhere"))
    build_cfg["repart"]["enable"] = True
    result = run(monkeypatch, capsys, build_cfg)

    assert pathlib.Path(result["definitions"]["path"]).parent == tmp_path / "elsewhere"


def test_example_template_without_stdin(monkeypatch, capsys, tmp_path):
    monkeypatch.setenv("DISTCFG_STORE", str(tmp_path / "store"))
    result = run(monkeypatch, capsys, None, "example", "home_size_max=4G", "--no-deploy")

    home = pathlib.Path(result["definitions"]["path"]) / "20-home.conf"
    assert home.read_text() == "[Partition]\nSizeMaxBytes=4G\nSizeMinBytes=512M\nType=home\n"
    assert result["initrd"] is not None and result["runtime"] is not None


def test_invalid_partitions_are_a_build_error(monkeypatch, build_cfg, tmp_path):
    build_cfg["repart"]["enable"] = True
    build_cfg["repart"]["partitions"]["30-swap"] = {"Type": "swap", "SizeMinBytes": 1.5}
    monkeypatch.setattr(sys, "stdin", io.StringIO(orjson.dumps(build_cfg).decode()))

    with pytest.raises(build.BuildError):
        build.main([])
    assert not (tmp_path / "store").exists()


def test_enable_must_be_boolean(monkeypatch, build_cfg):
    build_cfg["repart"]["enable"] = "yes"
    monkeypatch.setattr(sys, "stdin", io.StringIO(orjson.dumps(build_cfg).decode()))

    with pytest.raises(build.BuildError):
        build.main([])


def test_invalid_json_is_a_cli_error(monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO("{not json"))
    with pytest.raises(build.CLIError):
        build.main([])


def test_unknown_template_is_a_cli_error(monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO(""))
    with pytest.raises(build.CLIError):
        build.main(["alpine"])


def test_cli_exit_codes(monkeypatch):
    monkeypatch.setattr(build, "setup_logging", lambda: None)
    monkeypatch.setattr(sys, "argv", ["distcfg-build", "alpine"])
    monkeypatch.setattr(sys, "stdin", io.StringIO(""))
    assert build.cli() == 2


def test_template_arguments():
    cfg = tmpl_utils.assemble("example", enable="no", workdir="/tmp/build")
    assert cfg["repart"]["enable"] is False
    assert cfg["initrd_repart"]["enable"] is True
    assert cfg["store_path"] == "/tmp/build/store"

    with pytest.raises(ValueError):
        tmpl_utils.assemble("default", bogus="1")


@pytest.mark.parametrize(
    "key, value",
    [
        ("version", 6.1),
        ("src", "mirror://kernel/linux.tar.xz"),
        ("args_override", ["6.2"]),
    ],
)
def test_malformed_kernel_recipe_is_a_build_error(monkeypatch, build_cfg, key, value):
    build_cfg["kernel"][key] = value
    monkeypatch.setattr(sys, "stdin", io.StringIO(orjson.dumps(build_cfg).decode()))

    with pytest.raises(build.BuildError):
        build.main([])


def test_malformed_python_recipe_exits_with_build_error(monkeypatch, build_cfg):
    build_cfg["python_packages"][0]["pname"] = 42
    monkeypatch.setattr(build, "setup_logging", lambda: None)
    monkeypatch.setattr(sys, "argv", ["distcfg-build"])
    monkeypatch.setattr(sys, "stdin", io.StringIO(orjson.dumps(build_cfg).decode()))

    assert build.cli() == 1
