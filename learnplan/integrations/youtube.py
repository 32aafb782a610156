"""YouTube Data API integration for playlist-based plans."""

import os
import re
import logging
from typing import List, NamedTuple, Optional
import requests
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

YOUTUBE_API_BASE = "https://www.googleapis.com/youtube/v3"
YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

# Single page only; longer playlists are truncated here
PLAYLIST_PAGE_SIZE = 50

_PLAYLIST_URL_PATTERN = re.compile(r"[?&]list=([^&#]+)")
_PLAYLIST_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class PlaylistVideo(NamedTuple):
    title: str
    description: str
    video_id: str
    position: int

    @property
    def watch_url(self) -> str:
        return YOUTUBE_WATCH_URL.format(video_id=self.video_id)


class YouTubeError(Exception):
    """The playlist could not be fetched."""


def extract_playlist_id(url_or_id: str) -> Optional[str]:
    """Pull the playlist ID out of a playlist/watch URL, or accept a bare ID."""
    if not url_or_id:
        return None
    value = url_or_id.strip()
    match = _PLAYLIST_URL_PATTERN.search(value)
    if match:
        return match.group(1)
    if _PLAYLIST_ID_PATTERN.match(value):
        return value
    return None


class YouTubeClient:
    """Client for the YouTube Data API v3."""

    def __init__(self, api_key: Optional[str] = None):
        """Initialize YouTube client.

        Args:
            api_key: YouTube Data API key. If None, reads from YOUTUBE_API_KEY env var.
        """
        self.api_key = api_key or os.getenv("YOUTUBE_API_KEY")

    def fetch_playlist(self, playlist_id: str) -> List[PlaylistVideo]:
        """Fetch the first page of a playlist's videos, ordered by position.

        Raises:
            YouTubeError: If the API key is missing or the request fails
        """
        if not self.api_key:
            raise YouTubeError("YouTube API key not configured")

        params = {
            "part": "snippet",
            "maxResults": PLAYLIST_PAGE_SIZE,
            "playlistId": playlist_id,
            "key": self.api_key,
        }
        try:
            response = requests.get(f"{YOUTUBE_API_BASE}/playlistItems", params=params, timeout=10)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            logger.error(f"Failed to fetch YouTube playlist {playlist_id}: {type(e).__name__}")
            raise YouTubeError("Failed to fetch YouTube playlist") from e

        videos = []
        for item in data.get("items", []):
            snippet = item.get("snippet") or {}
            video_id = (snippet.get("resourceId") or {}).get("videoId")
            if not video_id:
                continue
            videos.append(PlaylistVideo(
                title=snippet.get("title", ""),
                description=snippet.get("description") or "",
                video_id=video_id,
                position=int(snippet.get("position", len(videos))),
            ))
        logger.debug(f"Fetched {len(videos)} videos from playlist {playlist_id}")
        return sorted(videos, key=lambda v: v.position)
