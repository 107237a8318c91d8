"""End-to-end runs of the command line front end with the network faked."""

import pytest

import shelf_app
from conftest import FakeResponse, FakeSession, collection_page, make_item
from vinylshelf.errors import FetchFailed

LP = [{"name": "Vinyl", "descriptions": ["LP"]}]


@pytest.fixture
def fake_discogs(monkeypatch, tmp_path):
    """Route shelf_app's session to a FakeSession seeded by the test."""
    monkeypatch.setenv("DISCOGS_TOKEN", "t0ken")
    monkeypatch.setattr(shelf_app, "load_environment", lambda: None)
    monkeypatch.setattr(shelf_app, "default_config_path", lambda: tmp_path / "missing.json")
    holder = {}

    def seed(*responses):
        holder["session"] = FakeSession(FakeResponse(200, {"username": "digger"}), *responses)
        monkeypatch.setattr(shelf_app, "open_session", lambda credential, user_agent: holder["session"])
        return holder["session"]

    return seed


def test_writes_shelf_files(fake_discogs, tmp_path, capsys):
    fake_discogs(collection_page([
        make_item("Swim", ["Caribou"], formats=LP, year=2010),
        make_item("Moon Safari", ["Air"], formats=LP, year=1998),
        make_item("Single", ["Blur"], formats=[{"name": "Vinyl", "descriptions": ['7"', "45 RPM"]}]),
    ]))
    out_dir = tmp_path / "out"

    shelf_app.main(["--output-dir", str(out_dir), "--json", "--sections"])

    txt = (out_dir / "vinyl_shelf_order.txt").read_text(encoding="utf-8").splitlines()
    assert txt == ["=== A ===", "Air — Moon Safari (1998)", "=== C ===", "Caribou — Swim (2010)"]
    assert (out_dir / "vinyl_shelf_order.csv").exists()
    assert (out_dir / "vinyl_shelf_order.json").exists()
    out = capsys.readouterr().out
    assert "Sections: A: 1 • C: 1" in out
    assert "Summary: 2 items" in out


def test_media_and_sort_flags(fake_discogs, tmp_path):
    fake_discogs(collection_page([
        make_item("Late", ["Abba"], formats=[{"name": "Vinyl", "descriptions": ['7"', "45 RPM"]}], year=1980),
        make_item("Early", ["Zappa"], formats=[{"name": "Vinyl", "descriptions": ['7"', "45 RPM"]}], year=1966),
    ]))

    shelf_app.main(["--output-dir", str(tmp_path), "--media", "45", "--sort-by", "year", "--no-dividers"])

    txt = (tmp_path / "vinyl45_shelf_order.txt").read_text(encoding="utf-8").splitlines()
    assert txt == ["Zappa — Early (1966)", "Abba — Late (1980)"]


def test_nothing_matched(fake_discogs, tmp_path, capsys):
    fake_discogs(collection_page([make_item("Disc", formats=[{"name": "CD"}])]))

    shelf_app.main(["--output-dir", str(tmp_path), "--lp-strict"])

    out = capsys.readouterr().out
    assert "No matching 33⅓ RPM LPs found." in out
    assert "--lp-strict" in out
    assert not (tmp_path / "vinyl_shelf_order.txt").exists()


def test_fetch_failure_surfaces(fake_discogs, tmp_path):
    fake_discogs(FakeResponse(200, {"unexpected": True}))

    with pytest.raises(FetchFailed):
        shelf_app.main(["--output-dir", str(tmp_path)])


def test_cli_exit_codes(monkeypatch, capsys):
    def fail(argv=None):
        raise FetchFailed("boom", page=3, fetched=200)

    monkeypatch.setattr(shelf_app, "main", fail)

    with pytest.raises(SystemExit) as excinfo:
        shelf_app.cli()

    assert excinfo.value.code == 3
    assert "after 200 entries" in capsys.readouterr().err


def test_missing_credentials_exit_code(monkeypatch, tmp_path, capsys):
    for name in ("DISCOGS_TOKEN", "DISCOGS_CONSUMER_KEY", "DISCOGS_CONSUMER_SECRET",
                 "DISCOGS_OAUTH_TOKEN", "DISCOGS_OAUTH_TOKEN_SECRET"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(shelf_app, "load_environment", lambda: None)
    monkeypatch.setattr(shelf_app, "default_config_path", lambda: tmp_path / "missing.json")
    monkeypatch.setattr("sys.argv", ["vinylshelf"])

    with pytest.raises(SystemExit) as excinfo:
        shelf_app.cli()

    assert excinfo.value.code == 2
    assert "No credentials provided" in capsys.readouterr().err
