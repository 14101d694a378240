"""
Tests for configuration and the command line
"""

import json
import pytest

from chatquant import config
from chatquant.cli import main

BASE = 1704067200000


@pytest.fixture
def chat_file(tmp_path):
    data = {
        "platform": "whatsapp",
        "participants": ["Alice", "Bob"],
        "messages": [
            {"sender": "Alice" if i % 2 == 0 else "Bob", "timestamp": BASE + i * 60_000, "content": f"message {i}"}
            for i in range(6)
        ],
    }
    path = tmp_path / "chat.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


# ============================================================================
# CONFIG
# ============================================================================

def test_validate_config():
    valid, msg = config.validate_config()
    assert valid, msg


def test_weights_sum_to_one():
    assert sum(config.INTEREST_WEIGHTS.values()) == pytest.approx(1.0)
    assert sum(config.GHOST_RISK_WEIGHTS.values()) == pytest.approx(1.0)


def test_invalid_timezone(monkeypatch):
    monkeypatch.setattr(config, "TIMEZONE_NAME", "Mars/Olympus_Mons")
    valid, msg = config.validate_config()
    assert not valid
    assert "CHATQUANT_TIMEZONE" in msg


def test_config_summary():
    summary = config.get_config_summary()
    assert summary["sessions"]["high_velocity_platforms"] == ["discord"]
    assert summary["bursts"]["min_days"] == 8


# ============================================================================
# CLI
# ============================================================================

def test_cli_validate(chat_file, capsys):
    with pytest.raises(SystemExit) as exc:
        main(["validate", str(chat_file)])
    assert exc.value.code == 0
    assert "Valid: True" in capsys.readouterr().out


def test_cli_analyze_writes_report(chat_file, tmp_path):
    out = tmp_path / "report.json"
    main(["analyze", str(chat_file), "-o", str(out)])

    report = json.loads(out.read_text(encoding="utf-8"))
    assert report["metadata"]["total_messages"] == 6
    assert set(report["per_person"]) == {"Alice", "Bob"}


def test_cli_summary(chat_file, capsys):
    main(["analyze", str(chat_file), "--summary"])
    out = capsys.readouterr().out
    assert "Alice" in out
    assert "interest" in out


def test_cli_missing_file_exits(tmp_path):
    with pytest.raises(SystemExit) as exc:
        main(["analyze", str(tmp_path / "missing.json")])
    assert exc.value.code == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
