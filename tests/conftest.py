import os

import pytest

os.environ.setdefault("DM_ACT_AUTOCONNECT", "0")

from dm_events import DamageEvent, EntityRef
from dm_sessions import SessionRegistry

START = 1_700_000_000_000


@pytest.fixture
def registry():
    return SessionRegistry()


@pytest.fixture
def damage():
    """Build a DamageEvent at START + offset_ms."""

    def _make(offset_ms, amount, party_idx=0, source_id=0x100, target_id=0x500, action_id=1):
        return DamageEvent(
            timestamp=START + offset_ms,
            source=EntityRef(1, party_idx, source_id, party_idx),
            target=EntityRef(2, 0, target_id, -1),
            damage=amount,
            action_id=action_id,
        )

    return _make


def check_series(player):
    n = len(player.total_damage)
    assert len(player.damage_in_second) == n
    assert len(player.damage_in_minute) == n
    assert len(player.damage_in_minute_per_second) == n
    running = 0
    for f in range(n):
        running += player.damage_in_second[f]
        assert running == player.total_damage[f]
        if f > 0:
            assert player.total_damage[f] >= player.total_damage[f - 1]
        base = player.total_damage[f - 60] if f >= 60 else 0
        assert player.damage_in_minute[f] == player.total_damage[f] - base
        assert player.damage_in_minute_per_second[f] == player.damage_in_minute[f] // min(max(f, 1), 60)
