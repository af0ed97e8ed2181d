import pytest

from focuslens.cli import build_parser, main
from focuslens.core.clock import now_ms
from focuslens.core.database import Database
from focuslens.core.services.focus_service import FocusService


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "focuslens.db")


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_settings_show_and_set(db_path, capsys):
    assert main(["--db", db_path, "settings", "--set", "words_per_minute=200"]) == 0
    out = capsys.readouterr().out
    assert "words_per_minute" in out and "200" in out

    assert main(["--db", db_path, "settings", "--set", "words_per_minute=lots"]) == 2
    assert main(["--db", db_path, "settings", "--set", "no_such_knob=1"]) == 2
    assert main(["--db", db_path, "settings", "--set", "missing-equals"]) == 2
    assert main(["--db", db_path, "settings", "--set", "retention_interval_ms=inf"]) == 2

    assert main(["--db", db_path, "settings", "--reset"]) == 0
    assert "150" in capsys.readouterr().out


def test_status(db_path, capsys):
    assert main(["--db", db_path, "status"]) == 0
    assert "No active focus." in capsys.readouterr().out

    db = Database(db_path)
    focus = FocusService(db)
    focus.create("Rust", ["Rust", "ownership"], now_ms())
    db.close()

    assert main(["--db", db_path, "status"]) == 0
    out = capsys.readouterr().out
    assert "Current focus: Rust" in out
    assert "keywords: Rust, ownership" in out


def test_sweep_is_gated(db_path, capsys):
    assert main(["--db", db_path, "sweep"]) == 0
    assert "website_visits" in capsys.readouterr().out

    assert main(["--db", db_path, "sweep"]) == 0
    assert "ran recently" in capsys.readouterr().out

    assert main(["--db", db_path, "sweep", "--force"]) == 0
