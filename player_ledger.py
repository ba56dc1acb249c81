from dataclasses import dataclass


# Per-target and per-action breakdowns of one player's damage
@dataclass
class TargetTally:
    id: int
    damage: int


@dataclass
class ActionTally:
    id: int
    damage: int
    hits: int = 1
    min: int = 0
    max: int = 0

    def record_hit(self, damage):
        self.damage += damage
        self.hits += 1
        self.min = min(self.min, damage)
        self.max = max(self.max, damage)


def record_target(player, target_id: int, damage: int) -> TargetTally:
    for tally in player.targets:
        if tally.id == target_id:
            tally.damage += damage
            return tally
    tally = TargetTally(id=target_id, damage=damage)
    player.targets.append(tally)
    return tally


def record_action(player, action_id: int, damage: int) -> ActionTally:
    for tally in player.actions:
        if tally.id == action_id:
            tally.record_hit(damage)
            return tally
    tally = ActionTally(id=action_id, damage=damage, hits=1, min=damage, max=damage)
    player.actions.append(tally)
    return tally
