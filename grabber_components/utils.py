import re
from pathlib import Path
from typing import Optional
from urllib.parse import parse_qsl, unquote, urlsplit

from .types import ALLOWED_EXTENSIONS

INVALID_FS_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1F]+')


def file_extension(name: str) -> str:
    base = name.rsplit("/", 1)[-1]
    if "." not in base:
        return ""
    return base.rsplit(".", 1)[1].lower()


def has_allowed_ext(url: str) -> bool:
    try:
        parts = urlsplit(url)
    except ValueError:
        return False

    if file_extension(unquote(parts.path)) in ALLOWED_EXTENSIONS:
        return True

    # download endpoints often carry the filename in the query, e.g. ?f=report.pdf
    for _, value in parse_qsl(parts.query, keep_blank_values=True):
        if file_extension(value) in ALLOWED_EXTENSIONS:
            return True
    return False


def clean_filename(name: str, fallback: str) -> str:
    name = (name or "").strip()
    name = INVALID_FS_CHARS.sub("_", name).strip(" .")
    return name or fallback


def clean_path_component(name: str, fallback: str) -> str:
    name = (name or "").strip()
    name = INVALID_FS_CHARS.sub("_", name).strip(" ")
    if not name or name in {".", ".."}:
        return fallback
    return name


def filename_from_url(url: str) -> str:
    path = unquote(urlsplit(url).path).rstrip("/")
    return clean_filename(path.rsplit("/", 1)[-1], fallback="")


def build_target_dir(base_dir: Path, subdir: str) -> Path:
    parts = [p for p in re.split(r"[\\/]+", subdir or "") if p and p not in {".", ".."}]
    out = base_dir
    for part in parts:
        out = out / clean_path_component(part, "folder")
    return out


def human_bytes(value: Optional[float]) -> str:
    if value is None:
        return "?"
    value = float(max(0.0, value))
    units = ["B", "KB", "MB", "GB", "TB"]
    idx = 0
    while value >= 1024 and idx < len(units) - 1:
        value /= 1024.0
        idx += 1
    return f"{value:.2f}{units[idx]}"
