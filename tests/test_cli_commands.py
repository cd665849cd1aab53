from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from hartopy import cli
from hartopy.exceptions import EmissionValidationError

SCENARIO = '{"user":{"id":1,"meta":"{\\"active\\":true}"}}'


def _invoke(args: list[str]):
    return CliRunner().invoke(cli.app, args)


def test_cli_help_lists_subcommands() -> None:
    result = _invoke(["--help"])
    assert result.exit_code == 0
    assert "generate" in result.output
    assert "schema" in result.output


def test_generate_from_json(tmp_path: Path, write_json) -> None:
    source = write_json("users.json", SCENARIO)
    out = tmp_path / "out"
    result = _invoke(["generate", str(source), "--output-dir", str(out), "--root", str(tmp_path)])
    assert result.exit_code == 0, result.output
    module = (out / "users.py").read_text(encoding="utf-8")
    assert "class Users(BaseModel):" in module
    assert "class UsersUserMeta(_UsersUserMetaShape):" in module
    assert f"Successfully created {out / 'users.py'}" in result.output


def test_generate_from_json_reads_config(tmp_path: Path, write_json) -> None:
    (tmp_path / "hartopy.toml").write_text(
        '[synthesis]\nidentifier_prefix = "Doc"\n', encoding="utf-8"
    )
    source = write_json("1data.json", '{"a": 1}')
    out = tmp_path / "out"
    result = _invoke(["generate", str(source), "--output-dir", str(out), "--root", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert "class Doc1data(BaseModel):" in (out / "1data.py").read_text(encoding="utf-8")


def test_generate_from_invalid_json_fails(tmp_path: Path, write_json) -> None:
    source = write_json("broken.json", "{")
    out = tmp_path / "out"
    result = _invoke(["generate", str(source), "--output-dir", str(out), "--root", str(tmp_path)])
    assert result.exit_code == 1
    assert "Skipping" in result.output
    assert list(out.iterdir()) == []


def test_generate_from_har(tmp_path: Path, write_har, har_entry) -> None:
    archive = write_har(
        [
            har_entry(request_body={"name": "Ann"}, response_body={"id": 7}),
            har_entry(method="GET", url="https://api.example.com/v1/users/7"),
        ]
    )
    out = tmp_path / "out"
    result = _invoke(["generate", str(archive), "--output-dir", str(out), "--root", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert f"Found 2 entries in {archive}. Starting conversion..." in result.output
    assert "Conversion complete." in result.output
    post = (out / "POST_api_example_com_v1_users.py").read_text(encoding="utf-8")
    assert "def post_api_example_com_v1_users(" in post
    get = (out / "GET_api_example_com_v1_users_7.py").read_text(encoding="utf-8")
    assert ") -> httpx.Response:" in get


def test_generate_skips_entries_with_bad_urls(tmp_path: Path, write_har, har_entry) -> None:
    archive = write_har([har_entry(url="http://[::1/x"), har_entry(method="GET")])
    out = tmp_path / "out"
    result = _invoke(["generate", str(archive), "--output-dir", str(out), "--root", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert "Skipping entry 0: Could not parse URL 'http://[::1/x'" in result.output
    assert (out / "GET_api_example_com_v1_users.py").exists()


def test_generate_from_empty_har(tmp_path: Path, write_har) -> None:
    archive = write_har([])
    result = _invoke(
        ["generate", str(archive), "--output-dir", str(tmp_path / "out"), "--root", str(tmp_path)]
    )
    assert result.exit_code == 1
    assert "No entries found in HAR file" in result.output


def test_generate_from_missing_har(tmp_path: Path) -> None:
    result = _invoke(
        [
            "generate",
            str(tmp_path / "missing.har"),
            "--output-dir",
            str(tmp_path / "out"),
            "--root",
            str(tmp_path),
        ]
    )
    assert result.exit_code == 1
    assert "Error reading HAR file" in result.output


def test_schema_prints_module(tmp_path: Path, write_json) -> None:
    source = write_json("users.json", SCENARIO)
    result = _invoke(["schema", str(source), "--name", "Account", "--root", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert "class Account(BaseModel):" in result.output
    assert "class AccountUser(BaseModel):" in result.output


def test_schema_reports_decode_errors(tmp_path: Path, write_json) -> None:
    source = write_json("broken.json", '{"a": }')
    result = _invoke(["schema", str(source), "--root", str(tmp_path)])
    assert result.exit_code == 1
    assert "offset 6" in result.output


def test_schema_reports_missing_file(tmp_path: Path) -> None:
    result = _invoke(["schema", str(tmp_path / "nope.json"), "--root", str(tmp_path)])
    assert result.exit_code == 1
    assert "Failed to read JSON file" in result.output


def test_write_module_keeps_invalid_source_when_asked(tmp_path: Path) -> None:
    messages: list[str] = []

    def _echo(message: str, **_: object) -> None:
        messages.append(message)

    def _render() -> str:
        raise EmissionValidationError("bad token", source="class (:\n")

    report = cli.GenerationReport()
    kept = tmp_path / "kept.py"
    cli._write_module(kept, _render, keep_invalid=True, report=report, label="kept", echo_fn=_echo)
    assert kept.read_text(encoding="utf-8") == "class (:\n"
    assert report.written == [kept]

    dropped = tmp_path / "dropped.py"
    cli._write_module(
        dropped, _render, keep_invalid=False, report=report, label="dropped", echo_fn=_echo
    )
    assert not dropped.exists()
    assert report.skipped == ["dropped"]
    assert messages[0] == "Writing unvalidated code for kept: bad token"


def test_generate_writes_lone_surrogate_keys_as_escapes(tmp_path: Path, write_json) -> None:
    source = write_json("odd.json", '{"\\ud800": 1}')
    out = tmp_path / "out"
    result = _invoke(["generate", str(source), "--output-dir", str(out), "--root", str(tmp_path)])
    assert result.exit_code == 0, result.output
    module = (out / "odd.py").read_text(encoding="utf-8")
    assert 'Field_: int | None = Field(default=None, alias="\\ud800")' in module
