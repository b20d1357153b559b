import mimetypes
import os

# mimetypes doesn't know these on every platform
mimetypes.add_type("video/x-matroska", ".mkv")
mimetypes.add_type("video/webm", ".webm")


def guess_kind(path: str) -> str:
    """Return 'image' | 'video' | 'audio' | 'other' based on mimetype/extension."""
    mime, _ = mimetypes.guess_type(path)
    if not mime:
        return "other"
    for kind in ("image", "video", "audio"):
        if mime.startswith(f"{kind}/"):
            return kind
    return "other"


def guess_content_type(path: str) -> str:
    mime, _ = mimetypes.guess_type(path)
    return mime or "application/octet-stream"


def video_key(video_root: str, video_id, filename: str) -> str:
    """<video root>/<id><ext>, so scratch and derived names are unique per video."""
    _, ext = os.path.splitext(filename)
    return f"{video_root.rstrip('/')}/{video_id}{ext.lower()}"


def search_terms(search: str) -> list:
    return [w for w in search.split() if w]
