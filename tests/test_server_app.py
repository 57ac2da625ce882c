import pytest

from ticketbooth.seed_data import DATA_DIR
from ticketbooth.server_app import (
    default_data_file,
    main,
    parse_server_args,
    resolve_data_file_path,
)


def test_default_data_file_lives_in_data_dir():
    path = default_data_file()
    assert path.name == "server_seed.json"
    assert path.parent == DATA_DIR


def test_resolve_empty_gives_default():
    assert resolve_data_file_path("") == default_data_file()


def test_resolve_absolute_path_is_kept(tmp_path):
    target = tmp_path / "seed.json"
    assert resolve_data_file_path(str(target)) == target


def test_resolve_relative_path_is_inside_data_dir():
    assert resolve_data_file_path("sub/../other.json") == DATA_DIR / "other.json"


def test_parse_server_args_defaults():
    options = parse_server_args([])
    assert options.port == 5555
    assert options.data_file == default_data_file()
    assert options.show_help is False


def test_parse_server_args_values():
    options = parse_server_args(["--port", "0", "--data", "custom.json"])
    assert options.port == 0
    assert options.data_file == DATA_DIR / "custom.json"


def test_parse_server_args_help_stops_parsing():
    assert parse_server_args(["--help", "--bogus"]).show_help is True


@pytest.mark.parametrize(
    "argv, message",
    [
        (["--port"], "Missing value after --port"),
        (["--data"], "Missing value after --data"),
        (["--port", "70000"], "Invalid port value"),
        (["--verbose"], "Unknown argument: --verbose"),
    ],
)
def test_parse_server_args_errors(argv, message):
    with pytest.raises(ValueError, match=message):
        parse_server_args(argv)


def test_main_help(capsys):
    assert main(["-h"]) == 0
    out = capsys.readouterr().out
    assert "Usage:" in out
    assert f"Default data file: {default_data_file()}" in out


def test_main_missing_data_file(tmp_path, capsys):
    missing = tmp_path / "missing.json"
    assert main(["--port", "0", "--data", str(missing)]) == 1
    err = capsys.readouterr().err
    assert "Server error: Could not open server seed data file" in err


def test_main_invalid_argument(capsys):
    assert main(["--port", "x"]) == 1
    assert "Server error: Invalid port value" in capsys.readouterr().err