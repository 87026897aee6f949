"""Shared test fixtures for chat_emotes tests."""

import pytest

from chat_emotes.chat.emotes.catalog import CatalogStore
from chat_emotes.chat.manager import EmoteManager


@pytest.fixture
def store():
    return CatalogStore()


@pytest.fixture
def manager():
    manager = EmoteManager()
    yield manager
    manager.close()


@pytest.fixture
def twitch_payload():
    return {
        "emoticon_sets": {
            "0": [
                {"id": 25, "code": "Kappa"},
                {"id": 1, "code": "\\:-?\\)"},
            ],
            "42": [{"id": 1902, "code": "Keepo"}],
            "1234": [{"id": 300, "code": "forsenE"}],
            "5678": [{"id": 400, "code": "pajaS"}],
        }
    }


@pytest.fixture
def ffz_payload():
    return {
        "room": {"moderator_badge": "//cdn.frankerfacez.com/room-badge/mod/x/1"},
        "sets": {
            "1001": {
                "emoticons": [
                    {"id": 1, "name": "LULW", "urls": {"1": "//cdn.ffz/1/1", "2": "//cdn.ffz/1/2", "4": "//cdn.ffz/1/4"}},
                    {"id": 2, "name": "PepeHands", "urls": {"1": "//cdn.ffz/2/1", "2": "//cdn.ffz/2/2"}},
                    {"id": 3, "name": "OMEGALUL", "urls": {"1": "//cdn.ffz/3/1"}},
                    {"id": 4, "name": "Broken", "urls": {}},
                    {"name": "NoId", "urls": {"1": "//cdn.ffz/x/1"}},
                ]
            }
        },
    }


@pytest.fixture
def bttv_payload():
    return {
        "channelEmotes": [
            {"id": "b1", "code": "catJAM", "imageType": "gif"},
            {"id": "b2", "code": "monkaS", "imageType": "png"},
        ],
        "sharedEmotes": [
            {"id": "b3", "code": "PepeHands", "imageType": "png"},
            {"id": "", "code": "Missing"},
        ],
    }


@pytest.fixture
def badge_payload():
    return {
        "badge_sets": {
            "subscriber": {
                "versions": {
                    "0": {
                        "image_url_1x": "https://badges/sub0/1",
                        "image_url_2x": "https://badges/sub0/2",
                        "image_url_4x": "https://badges/sub0/3",
                        "title": "Subscriber",
                    },
                    "12": {
                        "image_url_1x": "https://badges/sub12/1",
                        "image_url_2x": "https://badges/sub12/2",
                        "image_url_4x": "https://badges/sub12/3",
                        "title": "1-Year Subscriber",
                    },
                }
            },
            "moderator": {
                "versions": {
                    "1": {
                        "image_url_1x": "https://badges/mod/1",
                        "image_url_2x": "https://badges/mod/2",
                        "image_url_4x": "https://badges/mod/3",
                        "title": "Moderator",
                    }
                }
            },
        }
    }
