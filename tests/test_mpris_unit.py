from __future__ import annotations

import types

import pytest

import ultrastar_lyrics.mpris.client as mpris_client
from ultrastar_lyrics.mpris.client import MprisClient, _join_artist, track_info_from_metadata


def test_list_players_returns_empty_on_dbus_error(monkeypatch):
    class _FakeDbusException(Exception):
        pass

    def _raise_session_bus():
        raise _FakeDbusException("no session bus")

    # Patch the imported `dbus` module inside `ultrastar_lyrics.mpris.client`
    monkeypatch.setattr(
        mpris_client,
        "dbus",
        types.SimpleNamespace(SessionBus=_raise_session_bus, DBusException=_FakeDbusException),
    )

    assert MprisClient.list_players() == []


@pytest.mark.parametrize(
    "value, expected",
    [
        (["A", "B"], "A, B"),
        (("A", "", "B"), "A, B"),
        ("Solo", "Solo"),
        (123, "123"),
    ],
)
def test_join_artist_handles_common_types(value, expected):
    assert _join_artist(value) == expected


def test_track_info_from_metadata():
    ti = track_info_from_metadata(
        {
            "xesam:title": "T",
            "xesam:artist": ["A"],
            "xesam:url": "file:///x/y.ogg",
            "mpris:trackid": "/t/1",
        }
    )
    assert (ti.title, ti.artist, ti.url) == ("T", "A", "file:///x/y.ogg")
    assert ti.track_key == "A | T | file:///x/y.ogg | /t/1"


def test_track_info_from_empty_metadata():
    ti = track_info_from_metadata({})
    assert (ti.title, ti.artist, ti.track_key) == ("", "", "")
