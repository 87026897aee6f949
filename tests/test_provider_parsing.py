"""Tests for provider payload parsing."""

import asyncio
import threading

from chat_emotes.chat.emotes.provider import (
    BTTVProvider,
    FFZProvider,
    TwitchProvider,
    parse_badge_table,
)
from chat_emotes.chat.models import CHANNEL_BTTV, CHANNEL_FFZ, GLOBAL_BTTV, GLOBAL_FFZ, GLOBAL_TWITCH


def _build_twitch(payload, resolver=None):
    return asyncio.run(TwitchProvider().build_emotes(payload, resolver))


# --- Twitch ---


def test_twitch_global_sets(twitch_payload):
    global_emotes, _ = _build_twitch(twitch_payload)
    assert {e.code: e.id for e in global_emotes} == {"Kappa": "25", ":)": "1", "Keepo": "1902"}
    assert all(e.scope == GLOBAL_TWITCH for e in global_emotes)


def test_twitch_urls(twitch_payload):
    global_emotes, _ = _build_twitch(twitch_payload)
    kappa = next(e for e in global_emotes if e.code == "Kappa")
    assert kappa.url == "https://static-cdn.jtvnw.net/emoticons/v1/25/3.0"
    assert kappa.low_res_url == "https://static-cdn.jtvnw.net/emoticons/v1/25/2.0"
    assert kappa.scale == 1
    assert kappa.is_animated is False


def test_twitch_channel_sets_resolved(twitch_payload):
    async def resolve(set_id):
        return {"1234": "forsen", "5678": "pajlada"}[set_id]

    _, channel_emotes = _build_twitch(twitch_payload, resolve)
    assert {e.code: e.scope.channel_name for e in channel_emotes} == {
        "forsenE": "forsen",
        "pajaS": "pajlada",
    }


def test_twitch_failed_resolution_falls_back(twitch_payload):
    async def resolve(set_id):
        if set_id == "1234":
            raise RuntimeError("lookup failed")
        return None

    _, channel_emotes = _build_twitch(twitch_payload, resolve)
    assert {e.scope.channel_name for e in channel_emotes} == {"Twitch"}


def test_twitch_resolver_not_called_for_global_sets(twitch_payload):
    asked = []

    async def resolve(set_id):
        asked.append(set_id)
        return "someone"

    _build_twitch(twitch_payload, resolve)
    assert sorted(asked) == ["1234", "5678"]


def test_twitch_normalizes_only_global_codes():
    payload = {"emoticon_sets": {"0": [{"id": 1, "code": ":-)"}], "99": [{"id": 2, "code": ":-)"}]}}
    global_emotes, channel_emotes = _build_twitch(payload)
    assert [e.code for e in global_emotes] == [":)"]
    assert [e.code for e in channel_emotes] == [":-)"]


def test_twitch_skips_malformed_entries():
    payload = {"sets": {"0": [{"id": 1}, {"code": "NoId"}, "junk", {"id": 2, "name": "Kappa"}]}}
    global_emotes, _ = _build_twitch(payload)
    assert [e.code for e in global_emotes] == ["Kappa"]


def test_twitch_bad_payload():
    assert _build_twitch({"emoticon_sets": []}) == ([], [])



def test_twitch_skips_sets_that_are_not_lists():
    payload = {"emoticon_sets": {"0": [{"id": 25, "code": "Kappa"}], "9": 5}}
    global_emotes, channel_emotes = _build_twitch(payload)
    assert [e.code for e in global_emotes] == ["Kappa"]
    assert channel_emotes == []


def test_twitch_skips_non_string_codes_and_bad_ids():
    entries = [{"id": 1, "code": 123}, {"id": True, "code": "Yes"}, {"id": 2, "code": "Kappa"}]
    payload = {"emoticon_sets": {"0": entries}}
    global_emotes, _ = _build_twitch(payload)
    assert [(e.code, e.id) for e in global_emotes] == [("Kappa", "2")]


def test_twitch_sets_are_parsed_off_the_event_loop(monkeypatch, twitch_payload):
    threads = []
    parse_sets = TwitchProvider.parse_sets

    def recording(self, sets, owners):
        threads.append(threading.get_ident())
        return parse_sets(self, sets, owners)

    monkeypatch.setattr(TwitchProvider, "parse_sets", recording)
    global_emotes, _ = _build_twitch(twitch_payload)
    assert global_emotes
    assert threads and threads[0] != threading.get_ident()


# --- FFZ ---


def test_ffz_channel_emotes(ffz_payload):
    emotes = {e.code: e for e in FFZProvider().parse_channel_emotes(ffz_payload)}
    assert sorted(emotes) == ["LULW", "OMEGALUL", "PepeHands"]
    assert all(e.scope == CHANNEL_FFZ for e in emotes.values())


def test_ffz_scale_and_urls(ffz_payload):
    emotes = {e.code: e for e in FFZProvider().parse_channel_emotes(ffz_payload)}
    assert (emotes["LULW"].scale, emotes["LULW"].url, emotes["LULW"].low_res_url) == (
        1,
        "https://cdn.ffz/1/4",
        "https://cdn.ffz/1/2",
    )
    assert (emotes["PepeHands"].scale, emotes["PepeHands"].url) == (2, "https://cdn.ffz/2/2")
    assert (emotes["OMEGALUL"].scale, emotes["OMEGALUL"].url, emotes["OMEGALUL"].low_res_url) == (
        4,
        "https://cdn.ffz/3/1",
        "https://cdn.ffz/3/1",
    )
    assert emotes["LULW"].id == "1"


def test_ffz_global_emotes(ffz_payload):
    emotes = FFZProvider().parse_global_emotes(ffz_payload)
    assert all(e.scope == GLOBAL_FFZ for e in emotes)


def test_ffz_moderator_badge(ffz_payload):
    provider = FFZProvider()
    assert provider.parse_moderator_badge(ffz_payload) == "https://cdn.frankerfacez.com/room-badge/mod/x/1"
    assert provider.parse_moderator_badge({"room": {"moderator_badge": None}}) is None
    assert provider.parse_moderator_badge({}) is None


def test_ffz_bad_payload():
    assert FFZProvider().parse_channel_emotes({"sets": "nope"}) == []
    assert FFZProvider().parse_channel_emotes([]) == []



def test_ffz_skips_malformed_entries():
    payload = {
        "sets": {
            "1": {
                "emoticons": [
                    {"id": 1, "name": 123, "urls": {"1": "//cdn.ffz/1/1"}},
                    {"id": 2, "name": "IntUrl", "urls": {"1": 7}},
                    {"id": 3, "name": "ListUrls", "urls": ["//cdn.ffz/3/1"]},
                    {"id": 4.5, "name": "FloatId", "urls": {"1": "//cdn.ffz/4/1"}},
                    {"id": 5, "name": "LULW", "urls": {"1": "//cdn.ffz/5/1", "2": 9}},
                ]
            },
            "2": {"emoticons": 5},
        }
    }
    emotes = FFZProvider().parse_channel_emotes(payload)
    assert [(e.code, e.url, e.low_res_url) for e in emotes] == [
        ("LULW", "https://cdn.ffz/5/1", "https://cdn.ffz/5/1")
    ]


def test_ffz_moderator_badge_must_be_a_string():
    assert FFZProvider().parse_moderator_badge({"room": {"moderator_badge": 7}}) is None


# --- BTTV ---


def test_bttv_channel_and_shared(bttv_payload):
    emotes = {e.code: e for e in BTTVProvider().parse_channel_emotes(bttv_payload)}
    assert sorted(emotes) == ["PepeHands", "catJAM", "monkaS"]
    assert emotes["catJAM"].is_animated is True
    assert emotes["monkaS"].is_animated is False
    assert emotes["catJAM"].url == "https://cdn.betterttv.net/emote/b1/3x"
    assert emotes["catJAM"].low_res_url == "https://cdn.betterttv.net/emote/b1/2x"
    assert all(e.scope == CHANNEL_BTTV for e in emotes.values())


def test_bttv_global(bttv_payload):
    emotes = BTTVProvider().parse_global_emotes(bttv_payload["channelEmotes"])
    assert [e.code for e in emotes] == ["catJAM", "monkaS"]
    assert all(e.scope == GLOBAL_BTTV for e in emotes)


def test_bttv_bad_payloads():
    assert BTTVProvider().parse_global_emotes({"not": "a list"}) == []
    assert BTTVProvider().parse_channel_emotes(["not", "a", "dict"]) == []



def test_bttv_skips_malformed_entries_and_lists():
    payload = {
        "channelEmotes": [
            {"id": "b1", "code": 42},
            {"id": None, "code": "NoId"},
            {"id": "b2", "code": "monkaS"},
        ],
        "sharedEmotes": 5,
    }
    assert [e.code for e in BTTVProvider().parse_channel_emotes(payload)] == ["monkaS"]


# --- Badges ---


def test_badge_table(badge_payload):
    table = parse_badge_table(badge_payload)
    assert sorted(table) == ["moderator", "subscriber"]
    sub12 = table["subscriber"].versions["12"]
    assert sub12.high_res_url == "https://badges/sub12/3"
    assert sub12.low_res_url == "https://badges/sub12/2"
    assert sub12.title == "1-Year Subscriber"


def test_badge_table_skips_versions_without_images():
    payload = {"badge_sets": {"bits": {"versions": {"1": {"title": "cheer"}}}, "vip": "junk"}}
    assert parse_badge_table(payload) == {}


def test_badge_table_bad_payload():
    assert parse_badge_table({"badge_sets": []}) == {}
    assert parse_badge_table(None) == {}


def test_badge_table_ignores_non_string_urls_and_titles():
    payload = {
        "badge_sets": {
            "subscriber": {
                "versions": {
                    "0": {"image_url_4x": 4, "image_url_2x": "https://badges/sub0/2", "title": 5},
                    "1": {"image_url_4x": ["x"]},
                }
            }
        }
    }
    table = parse_badge_table(payload)
    assert list(table["subscriber"].versions) == ["0"]
    sub0 = table["subscriber"].versions["0"]
    assert sub0.high_res_url == sub0.low_res_url == "https://badges/sub0/2"
    assert sub0.title == ""
