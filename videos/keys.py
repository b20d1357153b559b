"""
Storage key derivation.

Keys look like ``<root>/<base>.<ext>`` (``/videos/v1.mov``). A derived key
keeps ``<base>`` and swaps the root and the extension.
"""
from typing import NamedTuple

from .errors import MalformedKey


class ParsedKey(NamedTuple):
    root: str
    base: str
    ext: str

    @property
    def filename(self) -> str:
        return f"{self.base}.{self.ext}"


def parse_key(key: str) -> ParsedKey:
    if not isinstance(key, str) or not key.strip():
        raise MalformedKey(key, "empty key")

    root, _, filename = key.rpartition("/")
    base, dot, ext = filename.rpartition(".")
    if not dot:
        raise MalformedKey(key, "file name has no extension")
    if not base or not ext:
        raise MalformedKey(key, "empty base name or extension")
    return ParsedKey(root, base, ext)


def derive_key(key: str, root: str, ext: str) -> str:
    parsed = parse_key(key)
    return f"{root.rstrip('/')}/{parsed.base}.{ext.lstrip('.')}"


def audio_key_for(video_key: str, audio_root: str) -> str:
    return derive_key(video_key, audio_root, "mp3")


def transcript_key_for(audio_key: str, text_root: str) -> str:
    return derive_key(audio_key, text_root, "json")
