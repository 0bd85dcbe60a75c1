"""
Turns links from supported media hosts into embeddable player URLs.
"""

import json
import logging
import re
from dataclasses import dataclass, field, replace
from urllib.parse import parse_qs, quote, urlencode, urlsplit

from socialfeed.extensions.http_client import get_http_client

logger = logging.getLogger(__name__)


SUPPORTED_DOMAINS = (
    "youtube.com",
    "youtu.be",
    "vimeo.com",
    "open.spotify.com",
    "soundcloud.com",
)

SPOTIFY_CONTENT_TYPES = ("track", "album", "playlist", "artist")

_VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")

_OEMBED_ENDPOINTS = {
    "youtube": "https://www.youtube.com/oembed",
    "vimeo": "https://vimeo.com/api/oembed.json",
    "spotify": "https://open.spotify.com/oembed",
    "soundcloud": "https://soundcloud.com/oembed",
}

_GENERIC_TITLES = {
    "youtube": "YouTube video",
    "vimeo": "Vimeo video",
    "spotify": "Spotify",
    "soundcloud": "SoundCloud audio",
}


@dataclass(frozen=True)
class EmbedInfo:
    embed_url: str
    platform: str
    source_url: str
    meta: dict = field(default_factory=dict)
    title: str | None = None

    @property
    def display_title(self) -> str:
        if self.title:
            return self.title
        if self.platform == "spotify":
            content_type = self.meta.get("spotify", {}).get("contentType", "")
            return f"Spotify {content_type}".strip()
        return _GENERIC_TITLES.get(self.platform, "Embedded media")

    def to_dict(self):
        payload = {
            "embedUrl": self.embed_url,
            "platform": self.platform,
            "title": self.display_title,
        }
        if self.meta:
            payload["meta"] = self.meta
        return payload


def _hostname(url: str) -> str | None:
    if not isinstance(url, str) or not url.strip():
        return None
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return None
    if parts.scheme not in ("http", "https") or not parts.hostname:
        return None
    return parts.hostname.lower().removeprefix("www.")


def is_supported(url: str) -> bool:
    return _hostname(url) in SUPPORTED_DOMAINS


def supported_domains():
    return list(SUPPORTED_DOMAINS)


def _youtube(parts, url):
    video_id = ""
    host = parts.hostname.lower().removeprefix("www.")
    if host == "youtube.com" and parts.path.startswith("/watch"):
        video_id = (parse_qs(parts.query).get("v") or [""])[0]
    elif host == "youtu.be":
        video_id = parts.path.lstrip("/").split("/")[0]

    if not video_id or not _VIDEO_ID_RE.match(video_id):
        return None
    return EmbedInfo(
        embed_url=f"https://www.youtube-nocookie.com/embed/{video_id}",
        platform="youtube",
        source_url=url,
    )


def _vimeo(parts, url):
    video_id = parts.path.lstrip("/").rstrip("/")
    if not video_id.isdigit():
        return None
    return EmbedInfo(
        embed_url=f"https://player.vimeo.com/video/{video_id}",
        platform="vimeo",
        source_url=url,
    )


def _spotify(parts, url):
    segments = [segment for segment in parts.path.split("/") if segment]
    if len(segments) < 2:
        return None

    content_type, content_id = segments[0], segments[1]
    if content_type not in SPOTIFY_CONTENT_TYPES or not content_id:
        return None
    return EmbedInfo(
        embed_url=f"https://open.spotify.com/embed/{content_type}/{content_id}",
        platform="spotify",
        source_url=url,
        meta={"spotify": {"contentType": content_type}},
    )


def _soundcloud(parts, url):
    if not parts.path.strip("/"):
        return None
    query = urlencode({
        "url": url,
        "color": "#ff5500",
        "auto_play": "false",
        "hide_related": "true",
    }, quote_via=quote)
    return EmbedInfo(
        embed_url=f"https://w.soundcloud.com/player/?{query}",
        platform="soundcloud",
        source_url=url,
    )


_RESOLVERS = {
    "youtube.com": _youtube,
    "youtu.be": _youtube,
    "vimeo.com": _vimeo,
    "open.spotify.com": _spotify,
    "soundcloud.com": _soundcloud,
}


def resolve(url: str) -> EmbedInfo | None:
    host = _hostname(url)
    resolver = _RESOLVERS.get(host)
    if resolver is None:
        return None

    url = url.strip()
    return resolver(urlsplit(url), url)


def fetch_title(info: EmbedInfo) -> EmbedInfo:
    """
    Look the title up through the platform's oEmbed endpoint.

    Best effort: any failure leaves info as it was, so display_title falls
    back to the platform label.
    """
    endpoint = _OEMBED_ENDPOINTS.get(info.platform)
    if endpoint is None:
        return info

    try:
        response = get_http_client().request(
            "GET",
            endpoint,
            fields={"url": info.source_url, "format": "json"},
        )
        if response.status != 200:
            logger.info(
                "Metadata lookup for %s returned %s", info.source_url, response.status
            )
            return info

        title = json.loads(response.data.decode("utf-8")).get("title")
    except Exception:
        logger.warning("Metadata lookup failed for %s", info.source_url, exc_info=True)
        return info

    if not isinstance(title, str) or not title.strip():
        return info
    return replace(info, title=title.strip())
