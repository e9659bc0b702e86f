from dataclasses import dataclass


DEFAULT_WORKERS = 4
DEBUG_HTML_FILE = "debug.html"
CHUNK_SIZE = 1024 * 512

ALLOWED_EXTENSIONS = frozenset(
    {
        # images
        "jpg", "jpeg", "png", "gif", "webp", "bmp",
        # documents
        "pdf", "doc", "docx", "txt", "rtf", "xls", "xlsx", "ppt", "pptx",
        # video
        "mp4", "avi", "mkv", "mov", "wmv", "flv", "webm",
        # audio
        "mp3", "wav", "flac", "aac", "ogg",
        # archives
        "zip", "rar", "7z", "tar", "gz", "bz2",
        # executables and packages
        "exe", "msi", "dmg", "pkg", "deb", "rpm",
        # disk images
        "iso", "img", "bin",
        # mobile packages
        "apk", "ipa",
        # web assets
        "css", "js", "json", "xml", "csv",
    }
)


class GrabberError(Exception):
    pass


class SourceError(GrabberError):
    pass


class DownloadError(GrabberError):
    pass


@dataclass(frozen=True)
class LinkDescriptor:
    url: str
    subdir: str = ""
