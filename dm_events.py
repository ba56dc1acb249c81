from dataclasses import dataclass, field
from typing import NamedTuple

import dm_state as st
from dm_sessions import Player, Session, SessionRegistry
from frame_series import advance_frames, frame_index
from player_ledger import record_action, record_target


class MalformedMessage(ValueError):
    pass


class EntityRef(NamedTuple):
    entity_type: int
    index: int
    entity_id: int
    party_index: int


@dataclass
class DamageEvent:
    timestamp: int
    source: EntityRef
    target: EntityRef
    damage: int
    action_id: int
    flags: int = 0
    type: str = field(default="damage", init=False)


@dataclass
class EnterAreaEvent:
    timestamp: int
    type: str = field(default="enter_area", init=False)


@dataclass
class OtherEvent:
    type: str
    timestamp: int


def _entity(value, name: str) -> EntityRef:
    try:
        entity_type, idx, entity_id, party_idx = value
        return EntityRef(int(entity_type), int(idx), int(entity_id), int(party_idx))
    except (TypeError, ValueError, OverflowError) as e:
        raise MalformedMessage(f"bad {name} tuple: {value!r}") from e


def parse_message(raw: dict, received_at: int | None = None):
    """
    Turn one wire message into an event.

    Wire shape: {"type": str, "data": {...}, "timestamp": ms?}. Messages from
    the live emitter carry no timestamp and get the receive time instead.
    """
    if not isinstance(raw, dict):
        raise MalformedMessage(f"expected an object, got {type(raw).__name__}")
    ev_type = raw.get("type")
    if not isinstance(ev_type, str) or not ev_type:
        raise MalformedMessage("message has no type")
    ts = raw.get("timestamp", received_at)
    if ts is None:
        raise MalformedMessage("message has no timestamp")
    try:
        ts = int(ts)
    except (TypeError, ValueError, OverflowError) as e:
        raise MalformedMessage(f"bad timestamp: {ts!r}") from e

    if ev_type == "damage":
        data = raw.get("data")
        if not isinstance(data, dict):
            raise MalformedMessage("damage message has no data")
        try:
            damage = int(data["damage"])
            action_id = int(data["action_id"])
            flags = int(data.get("flags", 0))
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            raise MalformedMessage(f"bad damage payload: {e}") from e
        return DamageEvent(
            timestamp=ts,
            source=_entity(data.get("source"), "source"),
            target=_entity(data.get("target"), "target"),
            damage=damage,
            action_id=action_id,
            flags=flags,
        )
    if ev_type == "enter_area":
        return EnterAreaEvent(timestamp=ts)
    return OtherEvent(type=ev_type, timestamp=ts)


def on_damage(session: Session, ev: DamageEvent) -> Player | None:
    if ev.target.entity_id == st.IGNORED_TARGET_ID:
        return None
    party_idx = ev.source.party_index
    # -1 marks an enemy source; only 0..MAX_PARTY_SLOTS-1 are party slots
    if party_idx < 0 or party_idx >= st.MAX_PARTY_SLOTS:
        return None

    frame = frame_index(ev.timestamp, session.start_timestamp)
    last_frame = frame_index(session.last_timestamp, session.start_timestamp)

    source = session.player_at(party_idx)
    if source is None:
        source = session.add_player(party_idx, ev.source.entity_id)

    latest = len(source.total_damage) - 1
    if frame < latest:
        print(f"[Event] Late damage for slot {party_idx}: frame {frame} clamped to {latest}")
        frame = latest

    for idx, player in enumerate(session.players):
        if player is None:
            continue
        advance_frames(player, frame, last_frame, ev.damage, idx == party_idx)

    record_target(source, ev.target.entity_id, ev.damage)
    record_action(source, ev.action_id, ev.damage)
    return source


def ingest(registry: SessionRegistry, ev, session_id: str | None = None) -> Session:
    """
    Apply one event. With session_id the event is a replay addressed to that
    record; without it the event follows the live active-record pointer.
    """
    session = registry.resolve(
        ev.timestamp, session_id, enters_area=isinstance(ev, EnterAreaEvent)
    )
    if session.last_timestamp < ev.timestamp:
        session.last_timestamp = ev.timestamp
    if st.RECORD_MESSAGES:
        session.messages.append(ev)
    if isinstance(ev, DamageEvent):
        on_damage(session, ev)
    return session
