from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse

import dbus

from .errors import NoPlayersFound, PlayerUnavailable

logger = logging.getLogger(__name__)

_PLAYER_IFACE = "org.mpris.MediaPlayer2.Player"


@dataclass(frozen=True, slots=True)
class TrackInfo:
    title: str
    artist: str
    url: str
    # stable-ish identifier for "track changed" checks
    track_key: str

    @property
    def local_path(self) -> Path | None:
        """Local file behind a file:// url, if any."""
        return url_to_path(self.url)


def url_to_path(url: str) -> Path | None:
    parsed = urlparse(url)
    if parsed.scheme != "file" or not parsed.path:
        return None
    return Path(unquote(parsed.path))


def _to_str(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return ""


def _join_artist(value: Any) -> str:
    if isinstance(value, (list, tuple, dbus.Array)):
        return ", ".join(_to_str(x) for x in value if _to_str(x))
    return _to_str(value)


def track_info_from_metadata(md: dict[str, Any]) -> TrackInfo:
    title = _to_str(md.get("xesam:title", "")) or ""
    artist = _join_artist(md.get("xesam:artist", [])) or ""
    url = _to_str(md.get("xesam:url", "")) or ""
    track_id = _to_str(md.get("mpris:trackid", "")) or ""
    key = " | ".join(x for x in (artist, title, url, track_id) if x)
    return TrackInfo(title=title, artist=artist, url=url, track_key=key)


class MprisClient:
    """
    Position source for playback: the media player owns the audio clock,
    we only read where it is.
    """

    def __init__(self, service_name: str):
        self.service_name = service_name
        self._bus = dbus.SessionBus()
        self._obj = self._bus.get_object(service_name, "/org/mpris/MediaPlayer2")
        self._props = dbus.Interface(self._obj, "org.freedesktop.DBus.Properties")

    @staticmethod
    def list_players() -> list[str]:
        try:
            bus = dbus.SessionBus()
            return [s for s in bus.list_names() if s.startswith("org.mpris.MediaPlayer2.")]
        except dbus.DBusException as e:
            # no session bus in CI / sandboxes: treat as "no players"
            logger.debug("Unable to connect to D-Bus session bus: %s", e)
            return []

    @staticmethod
    def pick_player(preferred: str | None = None) -> "MprisClient":
        players = MprisClient.list_players()
        if not players:
            raise NoPlayersFound("No active MPRIS players")

        if preferred:
            # allow passing short name like "vlc"
            for s in players:
                if s == preferred or s.endswith("." + preferred):
                    return MprisClient(s)
            logger.warning("Preferred player '%s' not found, falling back", preferred)

        # prefer Playing
        for s in players:
            try:
                c = MprisClient(s)
                if c.playback_status().lower() == "playing":
                    return c
            except (dbus.DBusException, PlayerUnavailable) as e:
                logger.debug("Skipping player %s: %s", s, e)

        return MprisClient(players[0])

    def playback_status(self) -> str:
        try:
            return _to_str(self._props.Get(_PLAYER_IFACE, "PlaybackStatus"))
        except dbus.DBusException as e:
            raise PlayerUnavailable(str(e)) from e

    def metadata(self) -> dict[str, Any]:
        try:
            return dict(self._props.Get(_PLAYER_IFACE, "Metadata"))
        except dbus.DBusException as e:
            raise PlayerUnavailable(str(e)) from e

    def position_ms(self) -> float:
        """
        MPRIS Position is microseconds.
        """
        try:
            pos_us = self._props.Get(_PLAYER_IFACE, "Position")
            return int(pos_us) / 1000.0
        except dbus.DBusException as e:
            raise PlayerUnavailable(str(e)) from e

    def seek_to_ms(self, position_ms: float) -> None:
        """Absolute seek, used to skip a long intro."""
        try:
            md = self.metadata()
            track_id = md.get("mpris:trackid")
            player = dbus.Interface(self._obj, _PLAYER_IFACE)
            player.SetPosition(track_id, dbus.Int64(int(position_ms * 1000)))
        except dbus.DBusException as e:
            raise PlayerUnavailable(str(e)) from e

    def track_info(self) -> TrackInfo:
        return track_info_from_metadata(self.metadata())
