"""
Container metadata model.

Mirrors the subset of ``mkvmerge -J`` output needed to classify tracks and
attachments.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from mkvfonts.config.paths import ASS_CODEC


class TrackType(str, Enum):
    """Matroska track types as reported by mkvmerge."""

    VIDEO = "video"
    AUDIO = "audio"
    SUBTITLES = "subtitles"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str) -> "TrackType":
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True)
class Attachment:
    """A file embedded in the container."""

    id: int
    file_name: str
    size: int
    content_type: str

    @property
    def is_font(self) -> bool:
        return self.content_type.startswith("font/")


@dataclass(frozen=True)
class Track:
    """A media stream in the container."""

    id: int
    type: TrackType
    codec: str
    language: str = ""
    track_name: str = ""

    @property
    def is_subtitle(self) -> bool:
        return self.type is TrackType.SUBTITLES

    @property
    def is_ass(self) -> bool:
        return self.is_subtitle and self.codec == ASS_CODEC


@dataclass(frozen=True)
class ContainerMetadata:
    """Attachments and tracks of one container, in container order."""

    attachments: tuple[Attachment, ...] = ()
    tracks: tuple[Track, ...] = ()

    @property
    def subtitle_tracks(self) -> tuple[Track, ...]:
        return tuple(t for t in self.tracks if t.is_subtitle)

    @property
    def has_ass_subtitle(self) -> bool:
        return any(t.is_ass for t in self.tracks)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "ContainerMetadata":
        """
        Build metadata from a decoded ``mkvmerge -J`` document.

        Args:
            data: Decoded JSON object

        Returns:
            ContainerMetadata instance

        Raises:
            TypeError, ValueError, KeyError: If the document has the wrong shape
        """
        if not isinstance(data, dict):
            raise TypeError(f"Expected a JSON object, got {type(data).__name__}")

        attachments = tuple(
            Attachment(
                id=int(item["id"]),
                file_name=str(item.get("file_name") or ""),
                size=int(item.get("size") or 0),
                content_type=str(item.get("content_type") or ""),
            )
            for item in data.get("attachments") or []
        )

        tracks = []
        for item in data.get("tracks") or []:
            properties = item.get("properties") or {}
            tracks.append(
                Track(
                    id=int(item["id"]),
                    type=TrackType.parse(str(item.get("type") or "")),
                    codec=str(item.get("codec") or ""),
                    language=str(properties.get("language") or ""),
                    track_name=str(properties.get("track_name") or ""),
                )
            )

        return cls(attachments=attachments, tracks=tuple(tracks))
