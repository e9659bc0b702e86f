import queue
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Optional, Sequence

import requests

from .sources import (
    extract_links_from_html_file,
    extract_links_from_url,
    links_from_html_file,
    links_from_url,
    read_links_file,
    read_page_urls,
    write_links,
)
from .state import SessionFactory
from .types import CHUNK_SIZE, DEFAULT_WORKERS, DownloadError, LinkDescriptor, SourceError
from .ui import TerminalUI
from .utils import build_target_dir, filename_from_url, human_bytes

_STOP = object()


def fetch_file(
    session: requests.Session,
    url: str,
    output_root: Path,
    subdir: str = "",
    timeout: Optional[float] = None,
) -> tuple[Path, int]:
    """Returns the written path and the number of bytes copied."""
    with session.get(url, stream=True, timeout=timeout) as r:
        if r.status_code != 200:
            raise DownloadError(f"bad status: {r.status_code} {r.reason or ''}".rstrip())

        file_name = filename_from_url(r.url)
        if not file_name:
            raise DownloadError(f"cannot derive a filename from {r.url}")

        target_dir = build_target_dir(Path(output_root), subdir)
        target_dir.mkdir(parents=True, exist_ok=True)
        out_path = target_dir / file_name

        written = 0
        with out_path.open("wb") as f:
            for chunk in r.iter_content(chunk_size=CHUNK_SIZE):
                if not chunk:
                    continue
                f.write(chunk)
                written += len(chunk)
    return out_path, written


def worker(
    worker_id: int,
    jobs: "queue.Queue",
    output_root: Path,
    ui: TerminalUI,
    sessions: SessionFactory,
    timeout: Optional[float],
) -> dict[str, int]:
    counts = {"downloaded": 0, "failed": 0}
    session = sessions.get()
    label = f"[Worker {worker_id}]"
    while True:
        job = jobs.get()
        if job is _STOP:
            return counts
        ui.info(f"{label} Downloading: {job.url}")
        try:
            out_path, written = fetch_file(
                session=session,
                url=job.url,
                output_root=output_root,
                subdir=job.subdir,
                timeout=timeout,
            )
        except Exception as exc:
            ui.complete_task(label, False, f"Error: {job.url}: {exc}")
            counts["failed"] += 1
            continue
        ui.complete_task(label, True, f"saved -> {out_path} ({human_bytes(written)})")
        counts["downloaded"] += 1


def download_all(
    links: Sequence[LinkDescriptor],
    output_root: Path,
    ui: TerminalUI,
    sessions: SessionFactory,
    workers: int = DEFAULT_WORKERS,
    timeout: Optional[float] = None,
) -> dict[str, int]:
    workers = max(1, workers)
    jobs: "queue.Queue" = queue.Queue(maxsize=1)
    totals = {"downloaded": 0, "failed": 0}

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(worker, i, jobs, output_root, ui, sessions, timeout)
            for i in range(1, workers + 1)
        ]
        try:
            for link in links:
                jobs.put(link)
        finally:
            # workers only exit on the sentinel
            for _ in range(workers):
                jobs.put(_STOP)

        for future in as_completed(futures):
            for key, value in future.result().items():
                totals[key] = totals.get(key, 0) + value
    return totals


def collect_links(
    source: str,
    value: str,
    ui: TerminalUI,
    sessions: SessionFactory,
    debug: bool = False,
    timeout: Optional[float] = None,
) -> list[LinkDescriptor]:
    if source == "url":
        return links_from_url(sessions.get(), value, ui, debug=debug, timeout=timeout)
    if source == "file":
        return read_links_file(value)
    if source == "html":
        return links_from_html_file(value, ui)
    raise ValueError(f"Unknown source: {source}")


def collect_export_urls(
    source: str,
    value: str,
    ui: TerminalUI,
    sessions: SessionFactory,
    debug: bool = False,
    timeout: Optional[float] = None,
) -> list[str]:
    session = sessions.get()
    if source == "url":
        return extract_links_from_url(session, value, ui, debug=debug, timeout=timeout)
    if source == "html":
        return extract_links_from_html_file(value, ui)
    if source != "file":
        raise ValueError(f"Unknown source: {source}")

    pages = read_page_urls(value)
    ui.info(f"Processing {len(pages)} URLs from file...")
    all_links: list[str] = []
    for idx, page_url in enumerate(pages, start=1):
        ui.info(f"Processing URL {idx}/{len(pages)}: {page_url}")
        try:
            links = extract_links_from_url(session, page_url, ui, debug=debug, timeout=timeout)
        except SourceError as exc:
            ui.warn(f"Error extracting links from URL {page_url}: {exc}")
            continue
        ui.info(f"Found {len(links)} downloadable files from {page_url}")
        all_links.extend(links)
    return all_links


def run_download(
    source: str,
    value: str,
    output: Path,
    ui: TerminalUI,
    sessions: SessionFactory,
    workers: int = DEFAULT_WORKERS,
    debug: bool = False,
    timeout: Optional[float] = None,
) -> dict[str, int]:
    links = collect_links(source, value, ui, sessions, debug=debug, timeout=timeout)
    if not links:
        ui.info("No downloadable files found")
        return {"downloaded": 0, "failed": 0}

    ui.info(f"Found {len(links)} downloadable files")
    output.mkdir(parents=True, exist_ok=True)
    counts = download_all(links, output, ui, sessions, workers=workers, timeout=timeout)
    ui.info(f"Summary: downloaded={counts['downloaded']}, failed={counts['failed']}")
    return counts


def run_export(
    source: str,
    value: str,
    output: Path,
    ui: TerminalUI,
    sessions: SessionFactory,
    debug: bool = False,
    timeout: Optional[float] = None,
) -> int:
    urls = collect_export_urls(source, value, ui, sessions, debug=debug, timeout=timeout)
    if not urls:
        ui.info("No downloadable files found")
        return 0

    ui.info(f"Total downloadable files found: {len(urls)}")
    write_links(urls, output)
    ui.ok(f"URLs exported to: {output}")
    return len(urls)
