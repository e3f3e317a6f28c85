"""Unit tests for the argument parser module in gitperms CLI."""

import argparse
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from gitperms.cli.argparser import create_exclusion_action, create_parser, resolve_directory, validate_args
from gitperms.exceptions import UsageError
from gitperms.exclusion_rules.git_rules import GitIgnoreExclusionRules


@pytest.fixture
def mock_exclusion_rules():
    """Create a mock ExclusionRules object."""
    mock_rules = MagicMock(spec=GitIgnoreExclusionRules)
    mock_rules.load_rules = MagicMock()
    mock_rules.add_rule = MagicMock()
    return mock_rules


@pytest.fixture
def parser():
    return create_parser(GitIgnoreExclusionRules())


def test_create_exclusion_action():
    ExclusionAction = create_exclusion_action(MagicMock())
    assert issubclass(ExclusionAction, argparse.Action)

    action = ExclusionAction(option_strings=["-i", "--ignore"], dest="ignore", help="test help")
    assert action.option_strings == ["-i", "--ignore"]
    assert action.dest == "ignore"


def test_exclusion_action_exclude_file(mock_exclusion_rules):
    ExclusionAction = create_exclusion_action(mock_exclusion_rules)
    action = ExclusionAction(option_strings=["-e", "--exclude"], dest="exclude")
    namespace = argparse.Namespace()
    rules_file = Path("/path/to/.permsignore")

    action(None, namespace, rules_file, "-e")

    mock_exclusion_rules.load_rules.assert_called_once_with(rules_file)
    assert namespace.exclude == [rules_file]


def test_exclusion_action_ignore_pattern(mock_exclusion_rules):
    ExclusionAction = create_exclusion_action(mock_exclusion_rules)
    action = ExclusionAction(option_strings=["-i", "--ignore"], dest="ignore")
    namespace = argparse.Namespace()

    action(None, namespace, "build/", "-i")
    action(None, namespace, "*.tmp", "--ignore")

    assert mock_exclusion_rules.add_rule.call_args_list[0].args == ("build/",)
    assert mock_exclusion_rules.add_rule.call_args_list[1].args == ("*.tmp",)
    assert namespace.ignore == ["build/", "*.tmp"]


def test_parser_defaults(parser):
    args = parser.parse_args(["save"])
    assert args.mode == "save"
    assert args.directory is None
    assert args.dry_run is False
    assert args.manifest_name == ".gitperms"
    assert args.follow_symlinks is False
    assert args.permission_action == "fail"
    assert args.summary is None


@pytest.mark.parametrize("mode", ["save", "restore", "compare"])
def test_parser_modes(parser, mode):
    assert parser.parse_args([mode]).mode == mode


def test_parser_dry_run_and_directory(parser):
    args = parser.parse_args(["restore", "--dry-run", "/srv/www"])
    assert args.dry_run is True
    assert args.directory == Path("/srv/www")


def test_parser_options(parser):
    args = parser.parse_args(
        ["compare", "-m", ".perms", "-L", "-P", "warn", "-s", "stderr", "-i", "build/", "/srv"]
    )
    assert args.manifest_name == ".perms"
    assert args.follow_symlinks is True
    assert args.permission_action == "warn"
    assert args.summary == "stderr"
    assert args.ignore == ["build/"]


def test_parser_feeds_patterns_into_rules():
    rules = GitIgnoreExclusionRules()
    create_parser(rules).parse_args(["save", "-i", "cache/", "-i", "!cache/keep/"])

    assert rules.exclude("cache/")
    assert not rules.exclude("cache/keep/")


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["explode"],
        ["save", "/a", "/b"],
        ["save", "--bogus"],
        ["save", "-P", "sometimes"],
    ],
)
def test_parser_usage_errors_exit_with_status_one(parser, argv, capsys):
    with pytest.raises(SystemExit) as exc_info:
        parser.parse_args(argv)
    assert exc_info.value.code == 1
    assert "usage:" in capsys.readouterr().err


@pytest.mark.parametrize(
    "argv",
    [
        ["-h"],
        ["save", "--help"],
        ["save", "/srv", "-h"],
        ["bogus", "-h"],
        ["save", "/a", "/b", "--help"],
        ["-P", "sometimes", "-h"],
    ],
)
def test_parser_help_exits_cleanly(parser, argv, capsys):
    with pytest.raises(SystemExit) as exc_info:
        parser.parse_args(argv)
    assert exc_info.value.code == 0
    out = capsys.readouterr().out
    assert "usage:" in out
    assert "Restore the permissions" in out


def test_parser_version(parser, capsys):
    with pytest.raises(SystemExit) as exc_info:
        parser.parse_args(["--version"])
    assert exc_info.value.code == 0
    assert capsys.readouterr().out.startswith("gitperms ")


def test_validate_args_accepts_plain_names():
    validate_args(argparse.Namespace(manifest_name=".perms"))


@pytest.mark.parametrize("name", ["", ".", "..", "sub/.perms"])
def test_validate_args_rejects_bad_manifest_names(name):
    with pytest.raises(UsageError):
        validate_args(argparse.Namespace(manifest_name=name))


def test_resolve_directory_defaults_to_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert resolve_directory(None) == tmp_path


def test_resolve_directory_uses_existing_directory(tmp_path):
    assert resolve_directory(tmp_path) == tmp_path


def test_resolve_directory_falls_back_for_invalid_paths(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    a_file = tmp_path / "file.txt"
    a_file.write_text("x")

    assert resolve_directory(tmp_path / "missing") == tmp_path
    assert resolve_directory(a_file) == tmp_path
    assert capsys.readouterr().err.count("Warning:") == 2


def test_parser_help_flag_after_double_dash_is_a_directory(parser):
    args = parser.parse_args(["save", "--", "-h"])
    assert args.directory == Path("-h")
