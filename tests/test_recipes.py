import pytest

from distcfg.configs import default
from distcfg.recipes import kernel, python, utils


@pytest.fixture()
def kernel_recipe():
    return default.assemble()["kernel"]


@pytest.fixture()
def python_recipe():
    return default.assemble()["python_packages"][0]


@pytest.mark.parametrize(
    "version, mod_dir, branch",
    [
        ("6.1.29", "6.1.29", "6.1"),
        ("6.1", "6.1.0", "6.1"),
        ("v6.6.30", "6.6.30", "6.6"),
        ("6.5-rc1", "6.5.0-rc1", "6.5"),
    ],
)
def test_kernel_versions(version, mod_dir, branch):
    assert kernel.mod_dir_version(version) == mod_dir
    assert kernel.branch(version) == branch


def test_invalid_kernel_version():
    with pytest.raises(ValueError):
        kernel.parse_version("linux")


def test_kernel_evaluate(kernel_recipe):
    status = kernel.evaluate(kernel_recipe)
    assert status == {
        "pname": "linux",
        "version": "6.1.29",
        "mod_dir_version": "6.1.29",
        "branch": "6.1",
        "src": {
            "url": "https://cdn.kernel.org/pub/linux/kernel/v6.x/linux-6.1.29.tar.xz",
            "sha256": "1yzwp0496j63c6lhvsni1ynr8b2cpn552pli3nd3fdk0pp4nqwqy",
        },
    }


def test_kernel_default_url_and_override(kernel_recipe):
    del kernel_recipe["src"]["url"]
    kernel_recipe["args_override"] = {"version": "6.1"}
    status = kernel.evaluate(kernel_recipe)
    assert status["version"] == "6.1"
    assert status["mod_dir_version"] == "6.1.0"
    assert status["src"]["url"] == "https://cdn.kernel.org/pub/linux/kernel/v6.x/linux-6.1.tar.xz"


def test_kernel_unknown_mirror(kernel_recipe):
    kernel_recipe["src"]["url"] = "mirror://gnu/linux.tar.xz"
    with pytest.raises(ValueError):
        kernel.evaluate(kernel_recipe)


def test_python_evaluate(python_recipe):
    status = python.evaluate(python_recipe)
    assert status["src_url"] == "https://github.com/iterative/dvc-studio-client/archive/refs/tags/0.9.0.tar.gz"
    assert status["env"] == {"SETUPTOOLS_SCM_PRETEND_VERSION": "0.9.0"}
    assert status["propagated_build_inputs"] == ["dulwich", "gitpython", "requests", "voluptuous"]
    assert status["imports_check"] == ["dvc_studio_client"]
    assert status["do_check"] is False
    assert status["disabled"] is False


def test_python_min_version(python_recipe):
    assert python.evaluate(python_recipe, python_version="3.7")["disabled"] is True
    assert python.is_supported(python_recipe, "3.12.1")


def test_python_default_import_name(python_recipe):
    python_recipe["imports_check"] = []
    python_recipe["native_build_inputs"] = []
    status = python.evaluate(python_recipe)
    assert status["imports_check"] == ["dvc_studio_client"]
    assert status["env"] == {}


def test_python_bad_hash(python_recipe):
    python_recipe["src"]["hash"] = "sha256-notbase64!"
    with pytest.raises(ValueError):
        python.evaluate(python_recipe)


@pytest.mark.parametrize(
    "value, algo",
    [
        ("sha256-yiNhvemeN3Dbs8/UvdTsy0K/FORoAy27tvT4ElwFxRk=", None),
        ("1yzwp0496j63c6lhvsni1ynr8b2cpn552pli3nd3fdk0pp4nqwqy", "sha256"),
        ("e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855", "sha256"),
    ],
)
def test_check_hash(value, algo):
    assert utils.check_hash(value, algo=algo) == "sha256"


def test_check_hash_wrong_length():
    with pytest.raises(ValueError):
        utils.check_hash("1yzwp0496j63c6lhvsni1ynr8b2cpn", algo="sha256")


def test_kernel_override_replaces_derived_values(kernel_recipe):
    kernel_recipe["args_override"] = {"mod_dir_version": "6.1.29-custom", "branch": "lts"}
    status = kernel.evaluate(kernel_recipe)
    assert status["mod_dir_version"] == "6.1.29-custom"
    assert status["branch"] == "lts"
    assert status["version"] == "6.1.29"


def test_kernel_version_must_be_a_string():
    with pytest.raises(TypeError):
        kernel.parse_version(6.1)
