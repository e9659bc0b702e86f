from pathlib import Path
from typing import Iterable, Optional, Union
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from .types import DEBUG_HTML_FILE, LinkDescriptor, SourceError
from .ui import TerminalUI
from .utils import has_allowed_ext

PathLike = Union[str, Path]


def extract_file_links(html_text: Union[str, bytes], base_url: Optional[str], ui: TerminalUI) -> list[str]:
    try:
        soup = BeautifulSoup(html_text, "html.parser")
    except Exception as exc:
        raise SourceError(f"error parsing HTML: {exc}") from exc

    links: list[str] = []
    total_href = 0
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"]
        total_href += 1
        if base_url is not None:
            try:
                candidate = urljoin(base_url, href.strip())
            except ValueError:
                continue
        elif href.startswith(("http://", "https://")):
            candidate = href
        else:
            continue
        if has_allowed_ext(candidate):
            links.append(candidate)

    ui.info(f"Total href attributes found: {total_href}")
    return links


def save_debug_html(body: bytes, ui: TerminalUI, path: PathLike = DEBUG_HTML_FILE) -> None:
    try:
        Path(path).write_bytes(body)
    except OSError as exc:
        ui.warn(f"Could not save debug HTML file: {exc}")
        return
    ui.info(f"HTML content saved to {path}")


def extract_links_from_url(
    session: requests.Session,
    url: str,
    ui: TerminalUI,
    debug: bool = False,
    timeout: Optional[float] = None,
) -> list[str]:
    try:
        r = session.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise SourceError(f"error fetching URL: {exc}") from exc

    with r:
        if r.status_code != 200:
            raise SourceError(f"bad status code: {r.status_code}")
        body = r.content

    if debug:
        save_debug_html(body, ui)
    return extract_file_links(body, url, ui)


def links_from_url(
    session: requests.Session,
    url: str,
    ui: TerminalUI,
    debug: bool = False,
    timeout: Optional[float] = None,
) -> list[LinkDescriptor]:
    urls = extract_links_from_url(session, url, ui, debug=debug, timeout=timeout)
    return [LinkDescriptor(u) for u in urls]


def extract_links_from_html_file(path: PathLike, ui: TerminalUI) -> list[str]:
    try:
        raw = Path(path).read_bytes()
    except OSError as exc:
        raise SourceError(f"error reading HTML file: {exc}") from exc
    return extract_file_links(raw, None, ui)


def links_from_html_file(path: PathLike, ui: TerminalUI) -> list[LinkDescriptor]:
    return [LinkDescriptor(u) for u in extract_links_from_html_file(path, ui)]


def _read_lines(path: PathLike) -> list[str]:
    try:
        text = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise SourceError(f"error reading file {path}: {exc}") from exc
    return [raw.lstrip("\ufeff").strip() for raw in text.splitlines()]


def read_links_file(path: PathLike) -> list[LinkDescriptor]:
    """Read an export file, honouring ``# subdir`` group headers."""
    links: list[LinkDescriptor] = []
    current_subdir = ""
    for line in _read_lines(path):
        if not line:
            continue
        if line.startswith("#"):
            subdir = line[1:].strip()
            if subdir.startswith("./"):
                subdir = subdir[2:]
            current_subdir = subdir
            continue
        links.append(LinkDescriptor(line, current_subdir))
    return links


def read_page_urls(path: PathLike) -> list[str]:
    """Read a plain list of page URLs; ``#`` lines are comments."""
    return [line for line in _read_lines(path) if line and not line.startswith("#")]


def write_links(urls: Iterable[str], path: PathLike) -> None:
    with Path(path).open("w", encoding="utf-8", newline="\n") as f:
        for url in urls:
            f.write(url + "\n")
