import textwrap

import pytest
from click.testing import CliRunner

from fixturekit.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def quiet_config(tmp_path):
    path = tmp_path / "fixturekit.yaml"
    path.write_text("logging:\n  console: false\n")
    return str(path)


@pytest.fixture
def registry_module(tmp_path, monkeypatch):
    (tmp_path / "sample_fixtures.py").write_text(textwrap.dedent("""
        from fixturekit import fixtures

        async def top(use):
            await use("top")

        async def left(use, *, top):
            await use("left")

        async def right(use, *, top):
            await use("right")

        async def bottom(use, *, left, right):
            await use("bottom")

        async def loop_a(use, *, loop_b):
            await use("a")

        async def loop_b(use, *, loop_a):
            await use("b")

        async def orphan(use, *, ghost):
            await use("orphan")

        registry = fixtures({
            "top": top, "left": left, "right": right, "bottom": bottom,
            "loop_a": loop_a, "loop_b": loop_b, "orphan": orphan,
        })
        not_a_registry = object()
    """))
    monkeypatch.chdir(tmp_path)
    monkeypatch.syspath_prepend(str(tmp_path))
    return "sample_fixtures"


def test_names_first_function(runner, tmp_path, quiet_config):
    source = tmp_path / "test_sample.py"
    source.write_text("async def test_one(client, *, db, user=None, **rest):\n    pass\n")

    result = runner.invoke(cli, ["--config", quiet_config, "names", str(source)])

    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == ["db", "user", "**rest"]


def test_names_selected_method(runner, tmp_path, quiet_config):
    source = tmp_path / "test_sample.py"
    source.write_text(textwrap.dedent("""
        def helper(*, unused):
            pass

        class TestSuite:
            async def test_two(self, *, session,
                               cache):
                pass
    """))

    result = runner.invoke(cli, ["-c", quiet_config, "names", str(source), "--function", "test_two"])

    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == ["session", "cache"]


def test_names_unknown_function(runner, tmp_path, quiet_config):
    source = tmp_path / "test_sample.py"
    source.write_text("def helper():\n    pass\n")

    result = runner.invoke(cli, ["-c", quiet_config, "names", str(source), "-f", "missing"])

    assert result.exit_code == 1
    assert "function 'missing' not found" in result.output


def test_order(runner, registry_module, quiet_config):
    result = runner.invoke(cli, ["-c", quiet_config, "order", f"{registry_module}:registry", "bottom"])

    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == ["top", "left", "right", "bottom"]


def test_order_marks_unregistered_names(runner, registry_module, quiet_config):
    result = runner.invoke(cli, ["-c", quiet_config, "order", f"{registry_module}:registry", "orphan"])

    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == ["ghost  (unregistered)", "orphan"]


def test_order_reports_cycles(runner, registry_module, quiet_config):
    result = runner.invoke(cli, ["-c", quiet_config, "order", f"{registry_module}:registry", "loop_a"])

    assert result.exit_code == 1
    assert 'Circular dependency detected involving fixture "loop_a"' in result.output


@pytest.mark.parametrize("target", ["no_colon", "sample_fixtures:not_a_registry", "missing_module:registry"])
def test_order_bad_target(runner, registry_module, quiet_config, target):
    result = runner.invoke(cli, ["-c", quiet_config, "order", target, "top"])

    assert result.exit_code == 2


def test_invalid_config(runner, tmp_path):
    bad = tmp_path / "bad.yaml"
    bad.write_text("strict_dependencies: maybe\n")

    result = runner.invoke(cli, ["-c", str(bad), "names", str(bad)])

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_verbose_cli_messages_reach_the_package_log_file(runner, registry_module, tmp_path):
    log_file = tmp_path / "fixturekit.log"
    config = tmp_path / "verbose.yaml"
    config.write_text(f"logging:\n  console: false\n  file: {log_file}\n")

    result = runner.invoke(cli, ["-c", str(config), "-V", "order", f"{registry_module}:registry", "loop_a"])

    assert result.exit_code == 1
    assert "fixturekit.cli - DEBUG - Ordering failed for ['loop_a']" in log_file.read_text()
