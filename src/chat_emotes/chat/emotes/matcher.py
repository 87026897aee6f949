"""Third-party emote matcher (whitespace tokens)."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from ..models import Emote, EmoteProvider, MessageEmoteOccurrence
from .catalog import CatalogStore
from .codeunits import utf16_len

# Channel catalogs first, then globals
SCAN_ORDER: tuple[tuple[EmoteProvider, bool], ...] = (
    (EmoteProvider.FFZ, False),
    (EmoteProvider.BTTV, False),
    (EmoteProvider.BTTV, True),
    (EmoteProvider.FFZ, True),
)

# str.isspace() also accepts these, but they are not Unicode White_Space
_NON_WHITESPACE_SEPARATORS = frozenset("\x1c\x1d\x1e\x1f")


def _is_whitespace(ch: str) -> bool:
    return ch.isspace() and ch not in _NON_WHITESPACE_SEPARATORS


def tokenize(text: str) -> list[tuple[int, str]]:
    """Split text on whitespace runs into (utf16_start, token) pairs."""
    tokens: list[tuple[int, str]] = []
    offset = 0
    i = 0
    n = len(text)
    while i < n:
        if _is_whitespace(text[i]):
            # Whitespace is always a single UTF-16 unit
            offset += 1
            i += 1
            continue
        run_start = i
        while i < n and not _is_whitespace(text[i]):
            i += 1
        token = text[run_start:i]
        tokens.append((offset, token))
        offset += utf16_len(token)
    return tokens


def _index_tokens(tokens: list[tuple[int, str]]) -> dict[str, list[tuple[int, int]]]:
    """Map each token text to the ranges where it occurs."""
    index: dict[str, list[tuple[int, int]]] = {}
    for start, token in tokens:
        index.setdefault(token, []).append((start, start + utf16_len(token)))
    return index


def _match_emote(
    emote: Emote, token_index: dict[str, list[tuple[int, int]]], low_res: bool = False
) -> MessageEmoteOccurrence | None:
    ranges = token_index.get(emote.code)
    if not ranges:
        return None
    return MessageEmoteOccurrence(
        code=emote.code,
        id=emote.id,
        url=emote.low_res_url if low_res and emote.low_res_url else emote.url,
        scale=emote.scale,
        is_animated=emote.is_animated,
        is_first_party=False,
        ranges=list(ranges),
    )


def match_catalogs(
    text: str, catalogs: Iterable[Mapping[str, Emote]], low_res: bool = False
) -> list[MessageEmoteOccurrence]:
    """Occurrences of every catalog emote in text, one per (catalog, code)."""
    token_index = _index_tokens(tokenize(text))
    if not token_index:
        return []

    occurrences: list[MessageEmoteOccurrence] = []
    for catalog in catalogs:
        for emote in catalog.values():
            occurrence = _match_emote(emote, token_index, low_res)
            if occurrence:
                occurrences.append(occurrence)
    return occurrences


def find_third_party_emotes(
    text: str,
    store: CatalogStore,
    channel: str,
    providers: Iterable[EmoteProvider] | None = None,
    low_res: bool = False,
) -> list[MessageEmoteOccurrence]:
    """Return FFZ and BTTV emote occurrences within text.

    The same code in two catalogs yields two occurrences over the same
    ranges; the renderer stacks them.
    """
    enabled = set(providers) if providers is not None else None
    catalogs = [
        store.emote_map(provider, is_global, channel)
        for provider, is_global in SCAN_ORDER
        if enabled is None or provider in enabled
    ]
    return match_catalogs(text, catalogs, low_res=low_res)
