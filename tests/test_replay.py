import gzip
import json

from conftest import START
from dm_replay import iter_messages, main, replay_file, summarize


def _messages():
    return [
        {"type": "enter_area", "timestamp": START},
        {"type": "damage", "timestamp": START + 200, "data": {"source": [1, 0, 256, 0], "target": [2, 0, 9, -1], "damage": 300, "flags": 0, "action_id": 5}},
        {"type": "damage", "timestamp": START + 1200, "data": {"source": [1, 1, 257, 1], "target": [2, 0, 9, -1], "damage": 40, "flags": 0, "action_id": 8}},
        {"type": "damage", "timestamp": START + 2900, "data": {"source": [1, 0, 256, 0], "target": [2, 0, 9, -1], "damage": 100, "flags": 0, "action_id": 5}},
    ]


def _write(path, messages, compress=False):
    text = "\n".join(json.dumps(m) for m in messages) + "\n\n"
    if compress:
        with gzip.open(path, "wt", encoding="utf-8") as fp:
            fp.write(text)
    else:
        path.write_text(text, encoding="utf-8")
    return path


def test_iter_messages_skips_blank_lines(tmp_path):
    path = _write(tmp_path / "fight.jsonl", _messages())
    assert list(iter_messages(path)) == _messages()


def test_replay_file_uses_file_name_as_record_id(registry, tmp_path):
    path = _write(tmp_path / "fight-01.jsonl.gz", _messages(), compress=True)
    session = replay_file(registry, path)
    assert session.id == "fight-01"
    assert registry.active_session_id == ""
    assert session.start_timestamp == START
    assert session.last_timestamp == START + 2900
    p0, p1 = session.players
    assert p0.total_damage == [300, 300, 400]
    assert p1.total_damage == [0, 40, 40]


def test_replay_into_explicit_record_keeps_live_pointer(registry, tmp_path):
    live = registry.resolve_live(START)
    path = _write(tmp_path / "fight.jsonl", _messages())
    session = replay_file(registry, path, record_id="archive")
    assert session.id == "archive"
    assert registry.active_session_id == live.id
    assert live.players == []


def test_summarize_lists_players(registry, tmp_path):
    session = replay_file(registry, _write(tmp_path / "fight.jsonl", _messages()))
    lines = summarize(session)
    assert lines[0] == "Record fight: 2.9s"
    assert "slot 0 [0x100] total=400" in lines[1]
    assert "5=400 (2 hits)" in lines[1]
    assert "slot 1 [0x101] total=40" in lines[2]


def test_cli_prints_summary(tmp_path, capsys):
    path = _write(tmp_path / "fight.jsonl", _messages())
    assert main([str(path), "--record-id", "cli"]) == 0
    out = capsys.readouterr().out
    assert "Record cli: 2.9s" in out


def test_cli_empty_file(tmp_path):
    path = tmp_path / "empty.jsonl"
    path.write_text("\n", encoding="utf-8")
    assert main([str(path)]) == 1


def test_replay_skips_bad_lines(registry, tmp_path, capsys):
    path = tmp_path / "fight.jsonl"
    lines = [json.dumps(m) for m in _messages()]
    lines.insert(2, "{truncated")
    lines.insert(3, json.dumps({"type": "damage", "data": {}}))
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    session = replay_file(registry, path)
    assert session.players[0].total_damage == [300, 300, 400]
    assert session.players[1].total_damage == [0, 40, 40]
    out = capsys.readouterr().out
    assert "fight.jsonl:3: skipped bad JSON" in out
    assert "[Replay] Skipped malformed message" in out
    assert "4 messages into fight (1 skipped)" in out
