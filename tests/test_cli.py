from __future__ import annotations

import json
from pathlib import Path

import pytest

import zorrito.cli as cli
from zorrito.probe.health import HealthResult, ProbeSummary


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc:
        cli.main(argv)
    return int(exc.value.code or 0)


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.chdir(tmp_path)
    for key in ("ZORRITO_BACKEND", "ZORRITO_ROOT_DIR", "ZORRITO_PROBE_TIMEOUT_S"):
        monkeypatch.delenv(key, raising=False)
    return tmp_path


def test_create_feed_and_show_fox(workdir: Path, capsys) -> None:
    image = workdir / "fox.png"
    image.write_bytes(b"\x89PNG" + bytes(200))
    store = ["--backend", "local", "--root-dir", str(workdir / "store"), "--season", "2025-11"]

    assert _run(["create", "--name", "Rojo", "--owner", "0xabc123ff", "--image", str(image), *store]) == 0
    created = json.loads(capsys.readouterr().out)
    fox_id = created["record"]["foxId"]
    assert fox_id.startswith("fox-abc123-")

    assert _run(["feed", fox_id, "--owner", "0xabc123ff", *store]) == 0
    fed = json.loads(capsys.readouterr().out)
    assert fed["record"]["creditsDelta"] == -1

    assert _run(["fox", fox_id, *store]) == 0
    view = json.loads(capsys.readouterr().out)
    assert view["name"] == "Rojo"
    assert view["stats"]["event_count"] == 1
    assert view["stats"]["total_credits_delta"] == -1

    assert _run(["foxes", *store]) == 0
    foxes = json.loads(capsys.readouterr().out)
    assert [f["fox_id"] for f in foxes] == [fox_id]

    assert _run(["records", *store]) == 0
    rows = capsys.readouterr().out.splitlines()
    assert rows[0].startswith("record_id,content_hash,type,fox_id")
    assert [row.split(",")[2] for row in rows[1:]] == ["fox_profile", "feed_event"]
    assert created["content_hash"] in rows[1]

    assert _run(["records", "--format", "table", *store]) == 0
    table = capsys.readouterr().out
    assert "feed_event" in table
    assert created["content_hash"] in table


def test_unknown_fox_exits_1(workdir: Path, capsys) -> None:
    assert _run(["fox", "ghost", "--season", "2025-11"]) == 1
    assert "not found" in capsys.readouterr().err


def test_validation_errors_exit_1(workdir: Path, capsys) -> None:
    image = workdir / "tiny.png"
    image.write_bytes(b"x" * 10)
    assert _run(["create", "--name", "R", "--owner", "0xabc", "--image", str(image), "--backend", "local"]) == 1
    assert "minimum size" in capsys.readouterr().err
    assert _run(["foxes", "--season", "2025-13"]) == 1


def test_unknown_command_exits_2(workdir: Path) -> None:
    assert _run(["nope"]) == 2


def test_probe_command_writes_report(workdir: Path, monkeypatch, capsys) -> None:
    providers = workdir / "providers.json"
    providers.write_text(json.dumps([{"address": "0xA", "endpoint_url": "http://a.test/"}]))
    seen: dict[str, object] = {}

    async def fake_check_all(items, *, timeout_s):
        seen["timeout_s"] = timeout_s
        seen["addresses"] = [p.address for p in items]
        result = HealthResult(index=1, address="0xA", endpoint_url="http://a.test/", status="ok", elapsed_ms=1.0)
        return ProbeSummary.from_results([result])

    monkeypatch.setattr(cli, "check_all", fake_check_all)
    out = workdir / "provider-status.json"

    assert _run(["probe", "--providers", str(providers), "--timeout", "0.5", "--out", str(out)]) == 0

    assert seen == {"timeout_s": 0.5, "addresses": ["0xA"]}
    assert "healthy=1" in capsys.readouterr().out
    assert json.loads(out.read_text())["healthy"] == 1


def test_writes_on_memory_backend_are_refused(workdir: Path, capsys) -> None:
    image = workdir / "fox.png"
    image.write_bytes(b"\x89PNG" + bytes(200))

    assert _run(["create", "--name", "Rojo", "--owner", "0xabc123ff", "--image", str(image), "--season", "2025-11"]) == 1
    err = capsys.readouterr().err
    assert err.startswith("[ERROR]")
    assert "--backend local" in err

    assert _run(["feed", "fox-abc123-1", "--owner", "0xabc123ff", "--backend", "memory"]) == 1
    assert "--backend local" in capsys.readouterr().err


def test_created_fox_is_visible_to_the_next_invocation(workdir: Path, monkeypatch, capsys) -> None:
    monkeypatch.setenv("ZORRITO_BACKEND", "local")
    image = workdir / "fox.png"
    image.write_bytes(b"\x89PNG" + bytes(200))

    assert _run(["create", "--name", "Rojo", "--owner", "0xabc123ff", "--image", str(image), "--season", "2025-11"]) == 0
    fox_id = json.loads(capsys.readouterr().out)["record"]["foxId"]

    assert _run(["fox", fox_id, "--season", "2025-11"]) == 0
    assert json.loads(capsys.readouterr().out)["fox_id"] == fox_id


def test_missing_input_files_exit_1(workdir: Path, capsys) -> None:
    missing = str(workdir / "absent.png")

    assert _run(["create", "--name", "R", "--owner", "0xabc123ff", "--image", missing, "--backend", "local"]) == 1
    assert capsys.readouterr().err.startswith("[ERROR]")

    assert _run(["probe", "--providers", str(workdir / "absent.json")]) == 1
    assert capsys.readouterr().err.startswith("[ERROR]")


def test_malformed_providers_file_exits_1(workdir: Path, capsys) -> None:
    providers = workdir / "providers.json"
    providers.write_text(json.dumps([{"endpoint_url": "http://a.test/"}]))

    assert _run(["probe", "--providers", str(providers)]) == 1
    err = capsys.readouterr().err
    assert err.startswith("[ERROR]")
    assert "address" in err
