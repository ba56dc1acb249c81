import dm_state as st


def _put(series: list, idx: int, value: int):
    # frames are only ever written in order, so idx never runs past len(series)
    if idx < len(series):
        series[idx] = value
    else:
        series.append(value)


def frame_index(timestamp: int, start_timestamp: int) -> int:
    return (timestamp - start_timestamp) // st.FRAME_MS


def advance_frames(player, frame: int, last_frame: int, damage: int, is_source: bool):
    """
    Extend one player's four per-frame series up to last_frame.

    Frames the player has not reached yet are forward-filled from the last
    cumulative total; the event's damage is added once, at its own frame,
    and only for the event source. The trailing-minute sum is the difference
    of two cumulative totals, so no window buffer is kept.
    """
    total = player.total_damage
    in_second = player.damage_in_second
    in_minute = player.damage_in_minute
    per_second = player.damage_in_minute_per_second

    start_frame = min(frame, len(total))
    for frame_idx in range(start_frame, last_frame + 1):
        delta = damage if (is_source and frame_idx == frame) else 0

        if frame_idx < len(total):
            old_total = total[frame_idx]
        elif frame_idx > 0:
            old_total = total[frame_idx - 1]
        else:
            old_total = 0
        _put(total, frame_idx, old_total + delta)

        old_second = in_second[frame_idx] if frame_idx < len(in_second) else 0
        _put(in_second, frame_idx, old_second + delta)

        window_base = 0
        if frame_idx >= st.MINUTE_FRAMES:
            window_base = total[frame_idx - st.MINUTE_FRAMES]
        _put(in_minute, frame_idx, total[frame_idx] - window_base)

        frames = max(min(frame_idx, st.MINUTE_FRAMES), 1)
        _put(per_second, frame_idx, in_minute[frame_idx] // frames)
