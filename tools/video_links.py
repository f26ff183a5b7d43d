# tools/video_links.py
"""
FitPlan AI — Exercise Video Links
=================================
Decides whether an exercise video can be embedded (YouTube) or should be
shown as a plain outbound link. String matching only, no network calls.
"""

import re
from dataclasses import dataclass
from typing import Optional

YOUTUBE_ID_LENGTH = 11
YOUTUBE_EMBED_BASE = "https://www.youtube.com/embed/"

# youtu.be/<id>, /v/<id>, /u/<x>/<id>, /embed/<id>, watch?v=<id>, &v=<id>
_YOUTUBE_PATTERN = re.compile(r"^.*(youtu\.be/|v/|u/\w/|embed/|watch\?v=|&v=)([^#&?]*).*")


@dataclass(frozen=True)
class VideoSource:
    kind: str  # "embed" | "link"
    url: str
    video_id: Optional[str] = None

    @property
    def embeddable(self) -> bool:
        return self.kind == "embed"


def extract_youtube_id(url: Optional[str]) -> Optional[str]:
    """Return the 11-character YouTube id in url, or None."""
    if not url:
        return None
    match = _YOUTUBE_PATTERN.match(url.strip())
    if match and len(match.group(2)) == YOUTUBE_ID_LENGTH:
        return match.group(2)
    return None


def resolve_video_source(url: str) -> VideoSource:
    video_id = extract_youtube_id(url)
    if video_id:
        return VideoSource(kind="embed", url=f"{YOUTUBE_EMBED_BASE}{video_id}", video_id=video_id)
    return VideoSource(kind="link", url=url)
