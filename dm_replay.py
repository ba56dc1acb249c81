import argparse
import gzip
import json
from pathlib import Path

from dm_events import MalformedMessage, ingest, parse_message
from dm_export import export_session
from dm_sessions import Session, SessionRegistry


def _record_id_for(path: Path) -> str:
    name = path.name
    for suffix in (".gz", ".jsonl", ".json"):
        if name.endswith(suffix):
            name = name[: -len(suffix)]
    return name


def iter_messages(path):
    path = Path(path)
    opener = gzip.open if path.suffix == ".gz" else open
    with opener(path, "rt", encoding="utf-8") as fp:
        for lineno, line in enumerate(fp, 1):
            line = line.strip()
            if not line:
                continue
            try:
                raw = json.loads(line)
            except json.JSONDecodeError as e:
                print(f"[Replay] {path.name}:{lineno}: skipped bad JSON: {e}")
                continue
            yield raw


def replay_file(registry: SessionRegistry, path, record_id: str | None = None) -> Session | None:
    """
    Feed a recorded message log into one record, addressed by id so the live
    active-record pointer is left alone. Lines without a timestamp or with a
    bad payload are logged and skipped.
    """
    path = Path(path)
    record_id = record_id or _record_id_for(path)
    session = None
    count = skipped = 0
    for raw in iter_messages(path):
        try:
            ev = parse_message(raw)
        except MalformedMessage as e:
            print(f"[Replay] Skipped malformed message: {e}")
            skipped += 1
            continue
        session = ingest(registry, ev, session_id=record_id)
        count += 1
    print(f"[Replay] {path.name}: {count} messages into {record_id} ({skipped} skipped)")
    return session


def summarize(session: Session) -> list[str]:
    lines = []
    duration = (session.last_timestamp - session.start_timestamp) / 1000
    lines.append(f"Record {session.id}: {duration:.1f}s")
    for party_idx, player in enumerate(session.players):
        if player is None:
            continue
        total = player.total_damage[-1]
        peak = max(player.damage_in_minute_per_second)
        top = sorted(player.actions, key=lambda a: -a.damage)[:3]
        parts = [f"{a.id}={a.damage} ({a.hits} hits)" for a in top]
        lines.append(
            f"  slot {party_idx} [{player.id:#x}] total={total} peak_dps={peak} top: {', '.join(parts) or '-'}"
        )
    return lines


def main(argv=None):
    parser = argparse.ArgumentParser(description="Replay a recorded combat log into a damage record.")
    parser.add_argument("path", help="JSONL message log (.jsonl or .jsonl.gz)")
    parser.add_argument("--record-id", default=None, help="record to replay into (default: file name)")
    parser.add_argument("--export", action="store_true", help="upload the resulting record to S3")
    args = parser.parse_args(argv)

    registry = SessionRegistry()
    session = replay_file(registry, args.path, args.record_id)
    if session is None:
        print("[Replay] No messages found.")
        return 1
    print("\n".join(summarize(session)))
    if args.export:
        url, _ = export_session(session)
        print(f"[Replay] Export: {url or 'not configured'}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
