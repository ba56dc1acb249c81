import time
import uuid
from dataclasses import asdict, dataclass, field

from player_ledger import ActionTally, TargetTally


def now_ms() -> int:
    return int(time.time() * 1000)


def new_session_id(timestamp: int) -> str:
    return f"{uuid.uuid4()}-{timestamp}"


@dataclass
class Player:
    id: int
    total_damage: list[int] = field(default_factory=lambda: [0])
    damage_in_second: list[int] = field(default_factory=lambda: [0])
    damage_in_minute: list[int] = field(default_factory=lambda: [0])
    damage_in_minute_per_second: list[int] = field(default_factory=lambda: [0])
    targets: list[TargetTally] = field(default_factory=list)
    actions: list[ActionTally] = field(default_factory=list)


@dataclass
class Session:
    id: str
    start_timestamp: int
    last_timestamp: int
    players: list[Player | None] = field(default_factory=list)
    messages: list = field(default_factory=list)

    def player_at(self, party_idx: int) -> Player | None:
        if 0 <= party_idx < len(self.players):
            return self.players[party_idx]
        return None

    def add_player(self, party_idx: int, entity_id: int) -> Player:
        while len(self.players) <= party_idx:
            self.players.append(None)
        player = Player(id=entity_id)
        self.players[party_idx] = player
        return player

    def to_dict(self) -> dict:
        return asdict(self)


class SessionRegistry:
    """
    Ordered collection of recording sessions plus the live "active" pointer.

    Live events follow the pointer (an area-enter always opens a new session);
    replay events name their session explicitly and leave the pointer alone.
    """

    def __init__(self, id_factory=new_session_id):
        self.sessions: list[Session] = []
        self.active_session_id = ""
        self._id_factory = id_factory

    def create_session(self, timestamp: int | None = None, session_id: str | None = None) -> Session:
        if timestamp is None:
            timestamp = now_ms()
        if session_id is None:
            session_id = self._id_factory(timestamp)
        session = Session(id=session_id, start_timestamp=timestamp, last_timestamp=timestamp)
        self.sessions.append(session)
        print(f"[Record] Created {session_id} at {timestamp}. Records = {len(self.sessions)}")
        return session

    def find(self, session_id: str) -> Session | None:
        for session in self.sessions:
            if session.id == session_id:
                return session
        return None

    def get_or_create_active(self, timestamp: int | None = None) -> Session:
        session = self.find(self.active_session_id)
        if session is None:
            session = self.create_session(timestamp)
        return session

    def active_session(self) -> Session | None:
        return self.find(self.active_session_id)

    def resolve_live(self, timestamp: int, enters_area: bool = False) -> Session:
        if enters_area:
            session = self.create_session(timestamp)
        else:
            session = self.get_or_create_active(timestamp)
        self.active_session_id = session.id
        return session

    def resolve_replay(self, session_id: str, timestamp: int) -> Session:
        session = self.find(session_id)
        if session is None:
            session = self.create_session(timestamp, session_id)
        return session

    def resolve(self, timestamp: int, session_id: str | None = None, enters_area: bool = False) -> Session:
        if session_id:
            return self.resolve_replay(session_id, timestamp)
        return self.resolve_live(timestamp, enters_area)

    def snapshot(self) -> dict:
        return {
            "active_record_id": self.active_session_id,
            "records": [s.to_dict() for s in self.sessions],
        }
