import importlib
import json
from datetime import datetime

import pytest

from intervals_deduper.config import AppConfig
from intervals_deduper.errors import IntervalsAPIError

from conftest import make_detail, make_summary

cli = importlib.import_module("intervals_deduper.main")

NOW = datetime(2025, 3, 31, 12, 0, 0)


def _args(*argv):
    return cli._build_parser().parse_args(list(argv))


def _write_config(tmp_path, extra=""):
    path = tmp_path / "config.yml"
    path.write_text(
        "api_key: secret\nathlete_id: i99\nweights:\n  power: 10\n" + extra,
        encoding="utf-8",
    )
    return path


class FakeClient:
    instances = []

    def __init__(self, api_key, athlete_id, **kwargs):
        self.api_key = api_key
        self.athlete_id = athlete_id
        self.fail_listing = False
        self.deleted = []
        self.updates = []
        self.windows = []
        FakeClient.instances.append(self)

    def list_activities(self, oldest, newest):
        self.windows.append((oldest, newest))
        if self.fail_listing:
            raise IntervalsAPIError("activities forbidden (status 403)")
        return [make_summary("a", 0), make_summary("b", 12)]

    def get_activity_detail(self, activity_id):
        streams = ("watts",) if activity_id == "a" else ()
        return make_detail(activity_id, streams=streams)

    def update_activity(self, activity_id, updates):
        self.updates.append((activity_id, updates))

    def delete_activity(self, activity_id):
        self.deleted.append(activity_id)


@pytest.fixture
def fake_client(monkeypatch):
    FakeClient.instances = []
    monkeypatch.setattr(cli, "IntervalsClient", FakeClient)
    return FakeClient


def test_window_defaults_to_config_days():
    config = AppConfig(api_key="k", athlete_id="a", days_to_sync=7)
    oldest, newest = cli.resolve_window(_args(), config, now=NOW)
    assert newest == NOW
    assert oldest == datetime(2025, 3, 24, 12, 0, 0)


def test_window_falls_back_to_thirty_days():
    config = AppConfig(api_key="k", athlete_id="a")
    oldest, _ = cli.resolve_window(_args(), config, now=NOW)
    assert oldest == datetime(2025, 3, 1, 12, 0, 0)


def test_days_flag_overrides_config():
    config = AppConfig(api_key="k", athlete_id="a", days_to_sync=7)
    oldest, _ = cli.resolve_window(_args("--days", "2"), config, now=NOW)
    assert oldest == datetime(2025, 3, 29, 12, 0, 0)


def test_explicit_start_and_end_cover_whole_end_day():
    config = AppConfig(api_key="k", athlete_id="a", days_to_sync=7)
    oldest, newest = cli.resolve_window(
        _args("--start", "2025-01-01", "--end", "2025-01-31", "--days", "3"), config, now=NOW
    )
    assert oldest == datetime(2025, 1, 1)
    assert newest == datetime(2025, 1, 31, 23, 59, 59)


def test_start_without_end_runs_until_now():
    config = AppConfig(api_key="k", athlete_id="a")
    oldest, newest = cli.resolve_window(_args("--start", "2025-02-10"), config, now=NOW)
    assert oldest == datetime(2025, 2, 10)
    assert newest == NOW


def test_bad_date_is_rejected():
    with pytest.raises(SystemExit):
        _args("--start", "10/02/2025")


def test_missing_config_exits_with_error(tmp_path, fake_client, caplog):
    code = cli.main(["--config", str(tmp_path / "nope.yml")])
    assert code == 1
    assert "Error loading config" in caplog.text
    assert fake_client.instances == []


def test_run_deletes_duplicates(tmp_path, fake_client):
    config = _write_config(tmp_path)
    assert cli.main(["--config", str(config)]) == 0
    client = fake_client.instances[0]
    assert (client.api_key, client.athlete_id) == ("secret", "i99")
    assert client.deleted == ["b"]


def test_dry_run_writes_report_without_deleting(tmp_path, fake_client):
    config = _write_config(tmp_path)
    report = tmp_path / "decisions.xlsx"
    code = cli.main(["--config", str(config), "--dry-run", "--report", str(report)])
    assert code == 0
    assert fake_client.instances[0].deleted == []
    assert report.exists()


def test_listing_failure_returns_error(tmp_path, fake_client, monkeypatch):
    config = _write_config(tmp_path)
    original_init = FakeClient.__init__

    def failing_init(self, *args, **kwargs):
        original_init(self, *args, **kwargs)
        self.fail_listing = True

    monkeypatch.setattr(FakeClient, "__init__", failing_init)
    assert cli.main(["--config", str(config)]) == 1


def test_dump_exports_details_and_skips_cleanup(tmp_path, fake_client):
    config = _write_config(tmp_path)
    dump = tmp_path / "dump.json"
    code = cli.main(["--config", str(config), "--dump", str(dump)])
    assert code == 0
    client = fake_client.instances[0]
    assert client.deleted == []
    assert [item["id"] for item in json.loads(dump.read_text(encoding="utf-8"))] == ["a", "b"]


def test_version_flag(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--version"])
    assert exc.value.code == 0
    assert "intervals-deduper version" in capsys.readouterr().out
