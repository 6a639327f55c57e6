from __future__ import annotations

import json

import pytest

from servicekit.cli import main


@pytest.fixture
def store(tmp_path) -> str:
    return str(tmp_path / "store.yaml")


def test_set_then_get(store, capsys) -> None:
    main(["set", "--store", store, "app/name", "demo"])
    main(["get", "--store", store, "app/name"])

    assert capsys.readouterr().out == "demo\n"


def test_get_missing_key_exits(store, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["get", "--store", store, "missing"])

    assert excinfo.value.code == 1
    assert "not found" in capsys.readouterr().err


def test_get_missing_key_with_default(store, capsys) -> None:
    main(["get", "--store", store, "missing", "--default", "fallback"])
    assert capsys.readouterr().out == "fallback\n"


def test_typed_get(store, capsys) -> None:
    main(["set", "--store", store, "flag", "TRUE"])
    main(["set", "--store", store, "size", "0"])
    main(["get", "--store", store, "flag", "--type", "bool"])
    main(["get", "--store", store, "size", "--type", "int"])

    assert capsys.readouterr().out == "true\n0\n"


def test_bad_integer_is_reported(store, capsys) -> None:
    main(["set", "--store", store, "size", "big"])

    with pytest.raises(SystemExit) as excinfo:
        main(["get", "--store", store, "size", "--type", "int"])

    assert excinfo.value.code == 1
    assert capsys.readouterr().err.startswith("Error:")


def test_unset(store, capsys) -> None:
    main(["set", "--store", store, "k", "v"])
    main(["unset", "--store", store, "k"])

    with pytest.raises(SystemExit):
        main(["get", "--store", store, "k"])


def test_lists(store, capsys) -> None:
    main(["set-list", "--store", store, "hosts", "a", "b", "c"])
    main(["set-list", "--store", store, "hosts", "z"])
    main(["get-list", "--store", store, "hosts", "--format", "json"])

    assert json.loads(capsys.readouterr().out) == ["z"]

    main(["unset-list", "--store", store, "hosts"])
    with pytest.raises(SystemExit):
        main(["get-list", "--store", store, "hosts"])


def test_namespace_option(store, capsys) -> None:
    main(["set", "--store", store, "color", "red"])
    main(["set", "--store", store, "--namespace", "ui", "color", "blue"])
    main(["get", "--store", store, "--namespace", "ui", "color"])
    main(["get", "--store", store, "--namespace", "other", "color"])
    main(["dump", "--store", store, "--format", "json"])

    out = capsys.readouterr().out.splitlines()
    assert out[:2] == ["blue", "red"]
    assert json.loads("\n".join(out[2:])) == {"color": "red", "ui/color": "blue"}


def test_settings_file_supplies_store_and_defaults(tmp_path, capsys) -> None:
    settings = tmp_path / "settings.yaml"
    settings.write_text(f"store_path: {tmp_path / 'from_settings.yaml'}\ndefaults:\n  greeting: hello\n")

    main(["get", "--config", str(settings), "greeting"])
    main(["set", "--config", str(settings), "k", "v"])

    assert capsys.readouterr().out == "hello\n"
    assert (tmp_path / "from_settings.yaml").exists()


def test_dump_empty_store(store, capsys) -> None:
    main(["dump", "--store", store])
    assert capsys.readouterr().out == "(empty store)\n"


def test_no_command_prints_help(capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main([])
    assert excinfo.value.code == 1
