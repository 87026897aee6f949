"""Twitch emote tag parsing."""

from __future__ import annotations

import logging
from bisect import bisect_left
from collections.abc import Sequence

from ..models import MessageEmoteOccurrence
from .codeunits import supplementary_positions
from .provider import twitch_emote_url

logger = logging.getLogger(__name__)


def _parse_index(value: str) -> int | None:
    if not value or not value.isascii() or not value.isdigit():
        return None
    return int(value)


def _parse_ranges(positions: str) -> list[tuple[int, int]]:
    """Parse "start-end,start-end" into half-open ranges, skipping bad pairs."""
    ranges: list[tuple[int, int]] = []
    for pair in positions.split(","):
        parts = pair.split("-")
        if len(parts) != 2:
            continue
        start = _parse_index(parts[0])
        end = _parse_index(parts[1])
        if start is None or end is None:
            continue
        ranges.append((start, end + 1))  # Twitch uses inclusive end
    return ranges


def parse_emote_positions(
    emotes_tag: str,
    text: str,
    removed_positions: Sequence[int] = (),
    low_res: bool = False,
) -> list[MessageEmoteOccurrence]:
    """Parse Twitch emote positions from IRC tags.

    Format: emote_id:start-end,start-end/emote_id:start-end

    Tag offsets count code points. The returned ranges are shifted into
    UTF-16 code units of ``text`` and past any ``removed_positions``
    (indices stripped from the text before display).
    """
    occurrences: list[MessageEmoteOccurrence] = []
    if not emotes_tag:
        return occurrences

    supplementary = supplementary_positions(text)
    removed = sorted(removed_positions)

    for emote_section in emotes_tag.split("/"):
        split = emote_section.split(":")
        if len(split) != 2:
            logger.debug(f"Skipping malformed emote tag entry: {emote_section!r}")
            continue
        emote_id, positions = split
        ranges = _parse_ranges(positions)
        if not ranges:
            continue

        fixed: list[tuple[int, int]] = []
        for start, end in ranges:
            extra = bisect_left(supplementary, start)
            removed_extra = bisect_left(removed, start + extra)
            shift = extra + removed_extra
            fixed.append((start + shift, end + shift))

        first_start, first_end = ranges[0]
        occurrences.append(
            MessageEmoteOccurrence(
                code=text[first_start:first_end],
                id=emote_id,
                url=twitch_emote_url(emote_id, low_res=low_res),
                scale=1,
                is_animated=False,
                is_first_party=True,
                ranges=fixed,
            )
        )

    return occurrences
