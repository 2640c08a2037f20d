"""Tests for the command line interface."""

from click.testing import CliRunner
from conftest import count_rows, fetch_all

from git_log_sqlite.cli.main import main


def _populate(workspace, make_repo):
    root = workspace / "src"
    for name in ("alpha", "beta", "scratch"):
        builder = make_repo(f"src/{name}")
        builder.commit(f"Start {name}", {"a.txt": f"{name}\n"})
    (root / "not-a-repo").mkdir()
    return root


def test_recursive_run_stores_and_reports(workspace, make_repo):
    """Test an end-to-end run with config, ignore list and a skipped directory."""
    root = _populate(workspace, make_repo)
    database = workspace / "out.db"
    config = workspace / "config.toml"
    config.write_text(
        'ignored_repositories = ["scratch"]\n'
        "[author_map]\n"
        '"alice@example.com" = "Alice Liddell"\n'
    )

    result = CliRunner().invoke(
        main,
        [str(root), "-r", "-d", str(database), "-f", str(config), "-n", "2", "--no-progress"],
    )

    assert result.exit_code == 0, result.output
    assert "2 repositories in the table" in result.output
    assert "1 ignored repositories" in result.output
    assert "directories were not stored" in result.output
    assert count_rows(database, "repositories") == 2
    assert fetch_all(database, "SELECT DISTINCT author_name FROM logs") == [("Alice Liddell",)]


def test_clear_flag_resets_database(workspace, make_repo):
    root = _populate(workspace, make_repo)
    database = workspace / "out.db"
    args = [str(root / "alpha"), "-d", str(database), "-f", str(workspace / "none.toml"), "--no-progress"]

    CliRunner().invoke(main, args)
    CliRunner().invoke(main, args)
    assert count_rows(database, "logs") == 1

    result = CliRunner().invoke(main, args + ["--clear"])

    assert result.exit_code == 0, result.output
    assert count_rows(database, "repositories") == 1
    assert count_rows(database, "logs") == 1


def test_bad_config_exits_with_error(workspace):
    config = workspace / "config.toml"
    config.write_text("this is = = not toml")

    result = CliRunner().invoke(main, [str(workspace), "-f", str(config), "--no-progress"])

    assert result.exit_code == 1
    output = " ".join(result.output.split())
    assert "Invalid config file" in output
    assert "Aborted" in output


def test_unopenable_database_aborts(workspace, make_repo):
    root = _populate(workspace, make_repo)
    database = workspace / "missing" / "out.db"

    result = CliRunner().invoke(
        main, [str(root / "alpha"), "-d", str(database), "-f", str(workspace / "none.toml")]
    )

    assert result.exit_code == 1
    assert "cannot open database" in " ".join(result.output.split())
