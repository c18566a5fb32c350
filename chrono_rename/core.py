"""
Core functionality for ordering media files by capture time and renaming them.
"""

from pathlib import Path
from typing import Iterable, List, NamedTuple, Optional, Sequence

from .metadata import (
    MEDIA_EXTENSIONS,
    MetadataError,
    MetadataSource,
    default_source,
    filesystem_fallback_ms,
)
from .timestamps import first_valid_timestamp

PLANNED = "planned"
RENAMED = "renamed"
COLLISION = "collision"
FAILED = "failed"


class MediaSortError(Exception):
    """Fatal problem that stops a run before any file is touched."""


class MediaRecord(NamedTuple):
    """A discovered media file and the instant it is ordered by."""
    path: Path
    instant_ms: int
    used_fallback: bool = False


class RenamePlanEntry(NamedTuple):
    source_path: Path
    destination_name: str
    sequence_index: int


class RenameOutcome(NamedTuple):
    entry: RenamePlanEntry
    status: str
    error: Optional[str] = None


class RenameReport:
    """Per-file results of a rename pass."""

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run
        self.outcomes: List[RenameOutcome] = []

    def add(self, entry: RenamePlanEntry, status: str, error: Optional[str] = None) -> RenameOutcome:
        outcome = RenameOutcome(entry, status, error)
        self.outcomes.append(outcome)
        return outcome

    def _count(self, status: str) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def renamed(self) -> int:
        return self._count(RENAMED)

    @property
    def skipped(self) -> int:
        return self._count(COLLISION)

    @property
    def failed(self) -> int:
        return self._count(FAILED)

    @property
    def mapping(self) -> List[tuple]:
        return [(o.entry.source_path.name, o.entry.destination_name) for o in self.outcomes]


def is_media_file(filepath: Path) -> bool:
    return filepath.suffix.lower() in MEDIA_EXTENSIONS


def discover_media(directory: Path) -> List[Path]:
    """Regular media files directly inside ``directory``, in file name order."""
    return sorted(
        (entry for entry in Path(directory).iterdir() if entry.is_file() and is_media_file(entry)),
        key=lambda entry: entry.name,
    )


def resolve_record(filepath: Path, candidates: Iterable[str], fallback: int) -> MediaRecord:
    """Build the record for one file, noting whether the fallback was needed."""
    instant = first_valid_timestamp(candidates)
    if instant is None:
        return MediaRecord(filepath, fallback, used_fallback=True)
    return MediaRecord(filepath, instant)


def order_records(records: Iterable[MediaRecord]) -> List[MediaRecord]:
    """
    Sort records by instant, oldest first.

    ``sorted`` is stable, so files with the same instant keep the order they
    were discovered in. Cameras that do not record sub-second time rely on
    this to keep burst shots in file name order.
    """
    return sorted(records, key=lambda record: record.instant_ms)


def sequence_width(total: int) -> int:
    """Digits used for sequence numbers: at least 3, more for large batches."""
    return max(3, len(str(total)))


def plan_renames(ordered: Sequence[MediaRecord], base_name: str) -> List[RenamePlanEntry]:
    """Assign ``<base_name>_<NNN><ext>`` to each record in order."""
    width = sequence_width(len(ordered))
    plan = []
    for index, record in enumerate(ordered, start=1):
        destination = f"{base_name}_{index:0{width}d}{record.path.suffix}"
        plan.append(RenamePlanEntry(record.path, destination, index))
    return plan


def apply_renames(plan: Iterable[RenamePlanEntry], dry_run: bool = False) -> RenameReport:
    """
    Execute a rename plan in order.

    Args:
        plan: Entries from ``plan_renames``.
        dry_run: Only record the intended mapping.

    An existing destination is never overwritten: that entry is recorded as a
    collision and its source stays where it is. Renames happen one by one
    without temporary names, so ``base_name`` must not match the names of
    files still waiting to be renamed.
    """
    report = RenameReport(dry_run=dry_run)
    for entry in plan:
        target = entry.source_path.parent / entry.destination_name

        if dry_run:
            report.add(entry, PLANNED)
        elif target.exists():
            report.add(entry, COLLISION)
        else:
            try:
                entry.source_path.rename(target)
            except OSError as e:
                report.add(entry, FAILED, str(e))
            else:
                report.add(entry, RENAMED)
    return report


def plan_and_apply(ordered: Sequence[MediaRecord], base_name: str, apply: bool) -> RenameReport:
    return apply_renames(plan_renames(ordered, base_name), dry_run=not apply)


def validate_base_name(base_name: str) -> str:
    if not base_name or not base_name.strip():
        raise MediaSortError("base name must not be empty")
    if "/" in base_name or "\\" in base_name or base_name in (".", ".."):
        raise MediaSortError(f"base name must be a plain file name: {base_name}")
    return base_name


class MediaSorter:
    """
    Orders a directory of media files by capture time and renames them into
    one numbered sequence.

    Features:
    - Reads capture dates through a pluggable metadata source
    - Falls back to the file modification time when no date is found
    - Keeps discovery order for files taken in the same instant
    - Never overwrites an existing file
    """

    def __init__(self, source: Optional[MetadataSource] = None, dry_run: bool = False):
        """
        Initialize the MediaSorter.

        Args:
            source: Where timestamp candidates come from. Defaults to exiftool
                when installed, otherwise Pillow/exifread and ffprobe.
            dry_run: If True, only show what would be renamed without actual changes
        """
        self.source = source or default_source()
        self.dry_run = dry_run

    def scan(self, directory: Path) -> List[Path]:
        directory = Path(directory)
        if not directory.exists() or not directory.is_dir():
            raise MediaSortError(f"directory does not exist: {directory}")

        print("Scanning directory for media files...")
        files = discover_media(directory)
        if not files:
            raise MediaSortError(f"no media found in {directory}")
        return files

    def read_record(self, filepath: Path) -> MediaRecord:
        """Resolve the instant for one file, reporting problems as warnings."""
        print(f"Reading metadata: {filepath.name}")
        try:
            candidates = self.source.candidates(filepath)
        except MetadataError as e:
            print(f"Warning: Could not extract metadata from {filepath.name}: {e}")
            candidates = []

        record = resolve_record(filepath, candidates, filesystem_fallback_ms(filepath))
        if record.used_fallback:
            print(f"Warning: {filepath.name} has no valid metadata timestamp, "
                  f"using file modification date as fallback")
        return record

    def process_directory(self, directory: Path, base_name: str) -> RenameReport:
        """Scan, order and rename every media file in ``directory``."""
        validate_base_name(base_name)
        files = self.scan(directory)

        records = [self.read_record(filepath) for filepath in files]

        print(f"\nSorting {len(records)} files by timestamp...\n")
        ordered = order_records(records)

        report = plan_and_apply(ordered, base_name, apply=not self.dry_run)
        for outcome in report.outcomes:
            entry = outcome.entry
            if outcome.status == PLANNED:
                print(f"[dry-run] {entry.source_path.name} -> {entry.destination_name}")
            elif outcome.status == COLLISION:
                print(f"File exists, skipping: {entry.destination_name}")
            elif outcome.status == FAILED:
                print(f"Error renaming {entry.source_path.name}: {outcome.error}")
            else:
                print(f"Renamed: {entry.source_path.name} -> {entry.destination_name}")

        print(f"\nProcessed {report.total} items")
        return report
