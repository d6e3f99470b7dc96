import json
from pathlib import Path

from typer.testing import CliRunner

from ckanbackup import cli

runner = CliRunner()


def _config(tmp_path: Path) -> str:
    path = tmp_path / "ckanbackup.toml"
    path.write_text(
        "[ckan]\n"
        'ckan_url = "https://ckan.test"\n'
        'api_key = "secret"\n'
        f'inbox_dir = "{(tmp_path / "inbox").as_posix()}"\n'
        f'output_dir = "{(tmp_path / "out").as_posix()}"\n',
        encoding="utf-8",
    )
    return str(path)


def test_backup_command_reports_each_route(tmp_path, monkeypatch, catalog_factory, dataset_factory) -> None:
    catalog = catalog_factory([dataset_factory("sensors", "readings.csv")])
    monkeypatch.setattr(cli, "open_repository", lambda cfg: catalog)

    result = runner.invoke(cli.app, ["backup", "sensors", "ghost-dataset", "--config", _config(tmp_path)])

    assert result.exit_code == 0, result.output
    lines = [line for line in result.output.splitlines() if "\t" in line]
    assert lines[0].startswith("sensors\tsuccess\tsensors20")
    assert lines[1] == "ghost-dataset\tnot-found"
    journal = (tmp_path / "out" / "backups.jsonl").read_text(encoding="utf-8").splitlines()
    assert [json.loads(x)["route"] for x in journal] == ["success", "not-found"]
    assert catalog.closed


def test_backup_command_exits_non_zero_on_failure(tmp_path, monkeypatch, catalog_factory, dataset_factory) -> None:
    catalog = catalog_factory([dataset_factory("broken", "noext")])
    monkeypatch.setattr(cli, "open_repository", lambda cfg: catalog)

    result = runner.invoke(cli.app, ["backup", "broken", "--config", _config(tmp_path)])

    assert result.exit_code == 1
    assert "broken\tfailure\tNamingViolation" in result.output


def test_process_inbox_dispatches_files(tmp_path, monkeypatch, catalog_factory, dataset_factory) -> None:
    config = _config(tmp_path)
    inbox = tmp_path / "inbox"
    inbox.mkdir()
    for name in ("sensors.csv", "ghost.csv", "broken.json"):
        (inbox / name).write_text("x", encoding="utf-8")
    monkeypatch.setattr(
        cli,
        "open_repository",
        lambda cfg: catalog_factory([dataset_factory("sensors", "a.csv"), dataset_factory("broken", "noext")]),
    )

    result = runner.invoke(cli.app, ["process-inbox", "--config", config])

    assert result.exit_code == 0, result.output
    assert "Processed 3 item(s): success=1, not-found=1, failure=1" in result.output
    assert (inbox / "success" / "sensors.csv").exists()
    assert (inbox / "not-found" / "ghost.csv").exists()
    assert (inbox / "failure" / "broken.json").exists()
    assert (inbox / "failure" / "broken.json.penalty.json").exists()


def test_show_prints_resources(tmp_path, monkeypatch, catalog_factory, dataset_factory) -> None:
    catalog = catalog_factory([dataset_factory("sensors", "readings.csv", "meta.json")])
    monkeypatch.setattr(cli, "open_repository", lambda cfg: catalog)

    result = runner.invoke(cli.app, ["show", "sensors", "--config", _config(tmp_path)])

    assert result.exit_code == 0, result.output
    assert "2 resource(s)" in result.output
    assert "readings.csv" in result.output
    assert catalog.writes == 0
    assert catalog.closed


def test_missing_api_key_is_rejected(tmp_path) -> None:
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"ckan_url": "https://ckan.test"}), encoding="utf-8")

    result = runner.invoke(cli.app, ["backup", "sensors", "--config", str(path)], env={"CKAN_API_KEY": ""})

    assert result.exit_code != 0
