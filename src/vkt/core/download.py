"""Download of remote files and directories.

Directories are fetched concurrently with a thread pool; every file is
reported on its own as it completes, in no particular order.
"""

import logging
from collections.abc import Generator
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path

from vkt.core.errors import ForgeError, NotFound
from vkt.core.events import CompletionEvent, ProgressEvent
from vkt.gateway.forge.abc import ForgeClient
from vkt.gateway.forge.parsing import normalize_remote_path

logger = logging.getLogger(__name__)

# Concurrent downloads for a directory
DEFAULT_MAX_WORKERS = 8


@dataclass(frozen=True)
class FileDownload:
    """Result of downloading one file. `error` is None on success."""

    remote_path: str
    local_path: Path
    size: int
    error: str | None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class DownloadSummary:
    results: tuple[FileDownload, ...]

    @property
    def succeeded(self) -> list[FileDownload]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> list[FileDownload]:
        return [r for r in self.results if not r.ok]

    @property
    def total_bytes(self) -> int:
        return sum(r.size for r in self.results if r.ok)


def format_bytes(size: int) -> str:
    """Human-readable size: 512B, 4.1KB, 2.0MB."""
    if size < 1024:
        return f"{size}B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f}KB"
    return f"{size / (1024 * 1024):.1f}MB"


def download_file(
    forge: ForgeClient,
    remote_path: str,
    local_path: Path,
    *,
    ref: str,
    force: bool,
) -> FileDownload:
    """Fetch one file and write it to local_path.

    Failures are returned as a FileDownload with `error` set, so one bad
    file does not stop a directory download.
    """
    if local_path.exists() and not force:
        return FileDownload(
            remote_path=remote_path,
            local_path=local_path,
            size=0,
            error=f"'{local_path}' already exists, use -f/--force to overwrite",
        )
    try:
        content = forge.read_blob(remote_path, ref=ref)
        local_path.parent.mkdir(parents=True, exist_ok=True)
        local_path.write_bytes(content)
    except ForgeError as e:
        return FileDownload(remote_path=remote_path, local_path=local_path, size=0, error=e.message)
    except OSError as e:
        logger.debug("Failed to write %s", local_path, exc_info=True)
        return FileDownload(remote_path=remote_path, local_path=local_path, size=0, error=str(e))
    return FileDownload(
        remote_path=remote_path, local_path=local_path, size=len(content), error=None
    )


def _report(result: FileDownload) -> ProgressEvent:
    if result.ok:
        return ProgressEvent(f"✓ {result.remote_path} ({format_bytes(result.size)})", "success")
    return ProgressEvent(f"✗ {result.remote_path}: {result.error}", style="error")


def execute_download(
    forge: ForgeClient,
    remote_path: str,
    output_dir: Path,
    *,
    ref: str,
    force: bool,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> Generator[ProgressEvent | CompletionEvent[DownloadSummary]]:
    """Download a remote file into output_dir, or a remote directory below it.

    A file lands at `<output_dir>/<name>`; a directory's files land at
    `<output_dir>/<directory name>/<relative path>`.

    Raises:
        ForgeError: If the remote path cannot be resolved at all
    """
    normalized = normalize_remote_path(remote_path)

    try:
        entries = forge.list_tree(normalized or None, recursive=True, ref=ref)
    except NotFound:
        if not normalized:
            raise
        name = normalized.rsplit("/", 1)[-1]
        yield ProgressEvent(f"Fetching {normalized}...")
        result = download_file(forge, normalized, output_dir / name, ref=ref, force=force)
        yield _report(result)
        yield CompletionEvent(DownloadSummary(results=(result,)))
        return

    files = [entry for entry in entries if not entry.is_dir]
    if not files:
        yield ProgressEvent(f"Directory is empty: {normalized or '/'}", style="warning")
        yield CompletionEvent(DownloadSummary(results=()))
        return

    base = output_dir / normalized.rsplit("/", 1)[-1] if normalized else output_dir
    prefix = f"{normalized}/" if normalized else ""
    yield ProgressEvent(f"Found {len(files)} file(s), saving to {base}...")

    results: list[FileDownload] = []
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [
            executor.submit(
                download_file,
                forge,
                entry.path,
                base / entry.path.removeprefix(prefix),
                ref=ref,
                force=force,
            )
            for entry in files
        ]
        for future in as_completed(futures):
            result = future.result()
            results.append(result)
            yield _report(result)

    yield CompletionEvent(DownloadSummary(results=tuple(results)))
