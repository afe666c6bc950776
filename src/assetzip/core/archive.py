"""ZIP archive builder.

The plugin hands entries to :class:`ZipArchiveBuilder` without looking at
their options.  Only this module interprets :class:`FileOptions` and
:class:`ArchiveOptions`; entries are buffered until :meth:`finalize` so
archive-wide options can still affect every local header.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, fields
from datetime import date, datetime
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple
from zipfile import ZIP_DEFLATED, ZIP_STORED, ZipFile, ZipInfo

from assetzip.core.errors import ArchiveError, ConfigurationError
from assetzip.utils.paths import is_absolute

logger = logging.getLogger(__name__)

DEFAULT_MODE = 0o100664
CHUNK_SIZE = 64 * 1024
# Earliest timestamp the DOS date format can hold.
ZIP_EPOCH: Tuple[int, int, int, int, int, int] = (1980, 1, 1, 0, 0, 0)


def _parse_mtime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        text = value[:-1] + "+00:00" if value.endswith("Z") else value
        try:
            return datetime.fromisoformat(text)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid mtime: {value!r}") from exc
    raise ConfigurationError(f"Invalid mtime: {value!r}")


def _from_mapping(cls, data: Mapping[str, Any], label: str) -> Dict[str, Any]:
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown {label} option(s): {', '.join(unknown)}")
    return dict(data)


@dataclass(frozen=True)
class FileOptions:
    """Per-entry options: timestamp, POSIX mode, compression, ZIP64 headers."""

    mtime: Optional[datetime] = None
    mode: Optional[int] = None
    compress: bool = True
    force_zip64: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "FileOptions":
        values = _from_mapping(cls, data, "file")
        if "mtime" in values:
            values["mtime"] = _parse_mtime(values["mtime"])
        return cls(**values)


@dataclass(frozen=True)
class ArchiveOptions:
    """Whole-archive options."""

    force_zip64: bool = False
    comment: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ArchiveOptions":
        return cls(**_from_mapping(cls, data, "zip"))


def _date_time(moment: datetime) -> Tuple[int, int, int, int, int, int]:
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    stamp = moment.timetuple()[:6]
    return stamp if stamp >= ZIP_EPOCH else ZIP_EPOCH


class ZipArchiveBuilder:
    """One archive-writing session backed by a private in-memory buffer.

    Lifecycle: ``open()`` once, ``add_entry()`` any number of times, then
    ``finalize()`` once.  A builder is never reused for a second archive.
    """

    def __init__(self, chunk_size: int = CHUNK_SIZE) -> None:
        self.chunk_size = chunk_size
        self._buffer: Optional[io.BytesIO] = None
        self._entries: List[Tuple[str, bytes, FileOptions, datetime]] = []
        self._finalized = False

    def open(self) -> "ZipArchiveBuilder":
        if self._buffer is not None:
            raise ArchiveError("Archive builder was already opened")
        self._buffer = io.BytesIO()
        return self

    def add_entry(
        self,
        path: str,
        content: bytes,
        file_options: Optional[FileOptions] = None,
    ) -> None:
        """Queue ``content`` to be stored under ``path``."""
        self._require_open()
        if not path or is_absolute(path):
            raise ArchiveError(f"Archive entry paths must be relative: {path!r}")
        if any(segment in ("", ".", "..") for segment in path.split("/")):
            raise ArchiveError(f"Archive entry path has an empty, . or .. segment: {path!r}")
        if not isinstance(content, (bytes, bytearray, memoryview)):
            raise ArchiveError(f"Entry {path!r} content must be bytes, got {type(content).__name__}")
        self._entries.append((path, bytes(content), file_options or FileOptions(), datetime.now()))

    def finalize(self, archive_options: Optional[ArchiveOptions] = None) -> Iterator[bytes]:
        """Close the archive and return an iterator over its byte chunks.

        The archive is written lazily, on the first pull from the iterator.
        """
        self._require_open()
        self._finalized = True
        return self._stream(archive_options or ArchiveOptions())

    def _require_open(self) -> None:
        if self._buffer is None:
            raise ArchiveError("Archive builder is not open")
        if self._finalized:
            raise ArchiveError("Archive builder was already finalized")

    def _stream(self, options: ArchiveOptions) -> Iterator[bytes]:
        buffer = self._buffer
        with ZipFile(buffer, "w", compression=ZIP_DEFLATED, allowZip64=True) as archive:
            if options.comment:
                archive.comment = options.comment.encode("utf-8")
            for path, content, file_options, added_at in self._entries:
                self._write_entry(archive, path, content, file_options, added_at, options)
        self._entries = []

        view = buffer.getbuffer()
        try:
            for offset in range(0, len(view), self.chunk_size):
                yield bytes(view[offset : offset + self.chunk_size])
        finally:
            view.release()

    @staticmethod
    def _write_entry(
        archive: ZipFile,
        path: str,
        content: bytes,
        file_options: FileOptions,
        added_at: datetime,
        options: ArchiveOptions,
    ) -> None:
        info = ZipInfo(path, date_time=_date_time(file_options.mtime or added_at))
        info.create_system = 3
        mode = DEFAULT_MODE if file_options.mode is None else file_options.mode
        info.external_attr = (mode & 0xFFFF) << 16
        info.compress_type = ZIP_DEFLATED if file_options.compress else ZIP_STORED
        info.file_size = len(content)
        force_zip64 = file_options.force_zip64 or options.force_zip64
        with archive.open(info, "w", force_zip64=force_zip64) as handle:
            handle.write(content)
        logger.debug("Added %s (%d bytes, zip64=%s)", path, len(content), force_zip64)
