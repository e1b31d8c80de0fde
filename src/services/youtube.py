"""YouTube transcript fetching: video id parsing, captions, oEmbed metadata."""

import asyncio
import re
from typing import List, Protocol

import httpx
import logfire
from youtube_transcript_api import (
    CouldNotRetrieveTranscript,
    NoTranscriptFound,
    RequestBlocked,
    YouTubeRequestFailed,
    YouTubeTranscriptApi,
)

from src.constants import (
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    YOUTUBE_OEMBED_URL,
    YOUTUBE_TRANSCRIPT_LANGUAGES,
)
from src.exceptions import FetchFailureError, InvalidSourceError, ParseFailureError
from src.models.content_models import RawDocument, SourceKind, TranscriptSegment

_VIDEO_ID_RE = re.compile(
    r"(?:youtu\.be/|youtube(?:-nocookie)?\.com/"
    r"(?:embed/|v/|shorts/|live/|watch\?v=|watch\?.+&v=))"
    r"([^\"&?/\s]{11})"
)
_BARE_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")


def extract_video_id(value: str) -> str:
    """Return the 11-character video id from a YouTube URL or bare id.

    Raises:
        InvalidSourceError: If the link shape is not recognized
    """
    candidate = value.strip()
    if _BARE_ID_RE.match(candidate):
        return candidate
    match = _VIDEO_ID_RE.search(candidate)
    if not match:
        raise InvalidSourceError(f"Invalid YouTube URL: {value}", source_url=value)
    return match.group(1)


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


class TranscriptProvider(Protocol):
    """Blocking transcript source; called from a worker thread."""

    def fetch_segments(self, video_id: str) -> List[TranscriptSegment]:
        ...


class YouTubeTranscriptApiProvider:
    """Transcript provider backed by youtube-transcript-api."""

    def __init__(self, languages: tuple[str, ...] = YOUTUBE_TRANSCRIPT_LANGUAGES):
        self._languages = list(languages)

    def fetch_segments(self, video_id: str) -> List[TranscriptSegment]:
        api = YouTubeTranscriptApi()
        try:
            fetched = api.fetch(video_id, languages=self._languages)
        except NoTranscriptFound:
            # No preferred language; take whatever captions exist
            transcript = next(iter(api.list(video_id)), None)
            if transcript is None:
                raise
            fetched = transcript.fetch()
        return [
            TranscriptSegment(text=snippet.text, offset_millis=round(snippet.start * 1000))
            for snippet in fetched
        ]


class YouTubeFetcher:
    """Fetch a video's transcript segments and best-effort title/author."""

    def __init__(
        self,
        transcripts: TranscriptProvider | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
    ):
        self._transcripts = transcripts or YouTubeTranscriptApiProvider()
        self._timeout = timeout

    async def fetch(self, locator: str) -> RawDocument:
        """Return a RawDocument holding the ordered transcript segments.

        Raises:
            InvalidSourceError: If no video id can be parsed
            ParseFailureError: If the transcript is disabled or unavailable
            FetchFailureError: If the transcript service cannot be reached
        """
        video_id = extract_video_id(locator)
        transcript_task = asyncio.to_thread(self._transcripts.fetch_segments, video_id)
        oembed_task = self.fetch_oembed(video_id)
        segments_result, oembed = await asyncio.gather(
            transcript_task, oembed_task, return_exceptions=True
        )

        if isinstance(segments_result, (YouTubeRequestFailed, RequestBlocked)):
            raise FetchFailureError(
                f"Transcript request failed for video {video_id}",
                source_url=locator,
            ) from segments_result
        if isinstance(segments_result, CouldNotRetrieveTranscript):
            raise ParseFailureError(
                f"Transcript unavailable for video {video_id}", source_url=locator
            ) from segments_result
        if isinstance(segments_result, OSError):
            raise FetchFailureError(
                f"Failed to fetch transcript for video {video_id}: {segments_result}",
                source_url=locator,
            ) from segments_result
        if isinstance(segments_result, BaseException):
            raise segments_result

        segments = [s for s in segments_result if s.text.strip()]
        if not segments:
            raise ParseFailureError(
                f"Transcript for video {video_id} is empty", source_url=locator
            )

        metadata: dict[str, str] = {}
        warnings: List[str] = []
        if isinstance(oembed, BaseException):
            warnings.append(f"Video metadata unavailable: {oembed}")
            logfire.warning(
                "YouTube oEmbed lookup failed", video_id=video_id, error=str(oembed)
            )
        else:
            metadata = oembed

        logfire.info(
            "YouTube transcript fetched",
            video_id=video_id,
            segment_count=len(segments),
            has_title="title" in metadata,
        )
        return RawDocument(
            source_kind=SourceKind.YOUTUBE,
            source_url=locator,
            segments=segments,
            metadata=metadata,
            warnings=warnings,
        )

    async def fetch_oembed(self, video_id: str) -> dict[str, str]:
        """Look up title and author through the public oEmbed endpoint.

        Raises:
            httpx.HTTPError: On network failure or non-2xx status
            ValueError: If the response is not a JSON object
        """
        async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
            response = await client.get(
                YOUTUBE_OEMBED_URL,
                params={"url": watch_url(video_id), "format": "json"},
            )
            response.raise_for_status()
            data = response.json()
        if not isinstance(data, dict):
            raise ValueError("oEmbed response is not an object")
        metadata: dict[str, str] = {}
        title = str(data.get("title") or "").strip()
        author = str(data.get("author_name") or "").strip()
        if title:
            metadata["title"] = title
        if author:
            metadata["author"] = author
        return metadata
