"""Reception of uploaded file parts and their reassembly in the import directory."""

from __future__ import annotations

import shutil
import zipfile
from dataclasses import dataclass
from logging import getLogger
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Final

from exchange1c.domain.errors import ExchangeIOError

if TYPE_CHECKING:
    from exchange1c.config import ExchangeConfig

log = getLogger(__name__)

PARTS_DIR_NAME: Final[str] = ".parts"
PART_SUFFIX: Final[str] = ".part"
ZIP_SIGNATURE: Final[bytes] = b"PK\x03\x04"


def sanitize_filename(filename: str) -> str:
    """Reduce an uploaded name to its base name; directory components are dropped."""

    name = PurePosixPath(filename.replace("\\", "/")).name
    if name in {"", ".", ".."} or name == PARTS_DIR_NAME:
        raise ExchangeIOError(f"Invalid file name: {filename!r}")
    return name


@dataclass(frozen=True, slots=True)
class FileAck:
    filename: str
    bytes_written: int
    assembled_bytes: int
    complete: bool = True
    extracted: tuple[str, ...] = ()


class FileReceiver:
    """Writes uploads under the import directory.

    A part index selects a slot; the file on disk is rebuilt from the
    contiguous run of slots starting at 0, so parts may arrive in any order.
    Sending part 0 when slot 0 is already filled restarts the file and drops
    the slots staged for the previous attempt.
    An upload without an index replaces the file outright.
    """

    def __init__(self, config: ExchangeConfig) -> None:
        self._config = config

    @property
    def import_dir(self) -> Path:
        return self._config.resolve_import_dir()

    def path_for(self, filename: str) -> Path:
        return self.import_dir / sanitize_filename(filename)

    def receive_part(
        self,
        filename: str,
        content: bytes,
        part_index: int | None = None,
    ) -> FileAck:
        name = sanitize_filename(filename)
        if part_index is not None and part_index < 0:
            raise ExchangeIOError(f"Negative part index {part_index} for {name}")
        limit = self._config.file_limit
        if limit and len(content) > limit:
            raise ExchangeIOError(f"Part of {name} exceeds file_limit of {limit} bytes")

        try:
            self._config.ensure_import_dir()
            if part_index is None:
                self._drop_staging(name)
                self.path_for(name).write_bytes(content)
                assembled, complete = len(content), True
            else:
                staging = self._staging_dir(name)
                if part_index == 0 and self._has_slot(name, 0):
                    # part 0 again restarts the file
                    self._drop_staging(name)
                staging.mkdir(parents=True, exist_ok=True)
                (staging / f"{part_index:06d}{PART_SUFFIX}").write_bytes(content)
                assembled, complete = self._assemble(name)
        except OSError as exc:
            raise ExchangeIOError(f"Cannot write {name}: {exc}") from exc

        log.info(
            "Received %s part=%s bytes=%s assembled=%s complete=%s",
            name,
            part_index,
            len(content),
            assembled,
            complete,
        )
        extracted: tuple[str, ...] = ()
        if complete and self._config.use_zip and content_is_zip(self.path_for(name)):
            extracted = self._extract(name)
        return FileAck(
            filename=name,
            bytes_written=len(content),
            assembled_bytes=assembled,
            complete=complete,
            extracted=extracted,
        )

    def pending_offset(self, filename: str) -> int | None:
        """Return the assembled size while staged parts still have a gap, else ``None``."""

        name = sanitize_filename(filename)
        indices = self._staged_indices(name)
        if indices == list(range(len(indices))):
            return None
        target = self.path_for(name)
        return target.stat().st_size if target.exists() else 0

    def reset(self) -> None:
        """Forget every staged part; assembled files stay in place."""

        parts_root = self.import_dir / PARTS_DIR_NAME
        if parts_root.exists():
            shutil.rmtree(parts_root, ignore_errors=True)
            log.debug("Cleared staged file parts in %s", parts_root)

    def _staging_dir(self, name: str) -> Path:
        return self.import_dir / PARTS_DIR_NAME / name

    def _staged_indices(self, name: str) -> list[int]:
        staging = self._staging_dir(name)
        if not staging.is_dir():
            return []
        return sorted(int(part.stem) for part in staging.glob(f"*{PART_SUFFIX}"))

    def _has_slot(self, name: str, index: int) -> bool:
        return (self._staging_dir(name) / f"{index:06d}{PART_SUFFIX}").exists()

    def _drop_staging(self, name: str) -> None:
        staging = self._staging_dir(name)
        if staging.exists():
            shutil.rmtree(staging)

    def _assemble(self, name: str) -> tuple[int, bool]:
        staging = self._staging_dir(name)
        indices = self._staged_indices(name)
        written = 0
        expected = 0
        with self.path_for(name).open("wb") as target:
            for index in indices:
                if index != expected:
                    break
                with (staging / f"{index:06d}{PART_SUFFIX}").open("rb") as chunk:
                    shutil.copyfileobj(chunk, target)
                    written += chunk.tell()
                expected += 1
        return written, expected == len(indices)

    def _extract(self, name: str) -> tuple[str, ...]:
        import_dir = self.import_dir
        extracted: list[str] = []
        try:
            with zipfile.ZipFile(self.path_for(name)) as archive:
                for info in archive.infolist():
                    if info.is_dir():
                        continue
                    destination = (import_dir / info.filename).resolve()
                    if not destination.is_relative_to(import_dir):
                        log.warning("Skipping archive entry outside import dir: %s", info.filename)
                        continue
                    destination.parent.mkdir(parents=True, exist_ok=True)
                    with archive.open(info) as source, destination.open("wb") as target:
                        shutil.copyfileobj(source, target)
                    extracted.append(destination.relative_to(import_dir).as_posix())
        except (zipfile.BadZipFile, OSError) as exc:
            raise ExchangeIOError(f"Cannot extract {name}: {exc}") from exc
        log.info("Extracted %s entries from %s", len(extracted), name)
        return tuple(extracted)


def content_is_zip(path: Path) -> bool:
    """Sniff the zip local file header, whatever the upload is named."""

    with path.open("rb") as handle:
        return handle.read(len(ZIP_SIGNATURE)) == ZIP_SIGNATURE
