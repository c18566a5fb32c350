"""
Sources of raw capture timestamps for media files.

Every source answers the same question: given a file, which timestamp lines
does its metadata contain, in priority order? The lines use the shape that
``chrono_rename.timestamps.parse_timestamp`` understands.
"""

import json
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

import exifread
from PIL import Image
from PIL.ExifTags import TAGS

# Capture date first, then the dates that usually track it.
EXIFTOOL_FIELDS = [
    "-DateTimeOriginal",
    "-CreateDate",
    "-ModifyDate",
    "-MediaCreateDate",
    "-TrackCreateDate",
    "-FileModifyDate",
]
EXIFTOOL_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"

# QuickTime stores UTC, exiftool only converts it when asked to.
QUICKTIME_UTC_EXTENSIONS = {".mov", ".mp4", ".m4v"}

METADATA_TIMEOUT = 30

EXIF_IFD_POINTER = 0x8769

# (date tag, sub-second tag, offset tag), most authoritative first
EXIF_DATE_TAGS = [
    ("DateTimeOriginal", "SubsecTimeOriginal", "OffsetTimeOriginal"),
    ("DateTimeDigitized", "SubsecTimeDigitized", "OffsetTimeDigitized"),
    ("DateTime", "SubsecTime", "OffsetTime"),
]
EXIFREAD_DATE_TAGS = [
    ("EXIF DateTimeOriginal", "EXIF SubSecTimeOriginal", "EXIF OffsetTimeOriginal"),
    ("EXIF DateTimeDigitized", "EXIF SubSecTimeDigitized", "EXIF OffsetTimeDigitized"),
    ("Image DateTime", "EXIF SubSecTime", "EXIF OffsetTime"),
]

VIDEO_DATE_KEYS = ["creation_time", "com.apple.quicktime.creationdate", "date"]

PHOTO_EXTENSIONS = {
    ".jpg", ".jpeg", ".png", ".heic", ".dng", ".nef", ".cr2", ".cr3", ".arw", ".orf", ".raf",
}
VIDEO_EXTENSIONS = {".mov", ".mp4", ".m4v", ".avi", ".mts", ".m2ts", ".3gp", ".mkv"}
MEDIA_EXTENSIONS = PHOTO_EXTENSIONS | VIDEO_EXTENSIONS


class MetadataError(Exception):
    """Raised when a file's metadata could not be read at all."""


def filesystem_fallback_ms(filepath: Path) -> int:
    """Last modification time of ``filepath`` in milliseconds since the epoch."""
    return Path(filepath).stat().st_mtime_ns // 1_000_000


def format_exif_datetime(value: str, subsec: Optional[str] = None,
                         offset: Optional[str] = None) -> Optional[str]:
    """
    Rewrite an EXIF ``YYYY:MM:DD HH:MM:SS`` value into the parser's shape.

    >>> format_exif_datetime("2024:01:15 12:00:00", "45", "+01:00")
    '2024-01-15T12:00:00.45+0100'
    """
    value = str(value).strip().rstrip("\x00")
    if len(value) < 19 or value[4] != ":" or value[7] != ":":
        return None

    result = f"{value[:4]}-{value[5:7]}-{value[8:10]}T{value[11:19]}"

    subsec = str(subsec).strip().rstrip("\x00") if subsec is not None else ""
    if subsec.isdigit():
        result += f".{subsec}"

    offset = str(offset).strip().rstrip("\x00") if offset is not None else ""
    if len(offset) == 6 and offset[0] in "+-" and offset[3] == ":":
        result += offset[:3] + offset[4:]

    return result


def format_iso_datetime(value: str) -> str:
    """Rewrite an ISO 8601 value from ffprobe into the parser's shape."""
    value = str(value).strip()
    if value.endswith("Z"):
        return value[:-1] + "+0000"
    # +HH:MM -> +HHMM
    if len(value) > 6 and value[-6] in "+-" and value[-3] == ":":
        return value[:-3] + value[-2:]
    return value


class MetadataSource:
    """Capability interface: timestamp candidate lines for one file."""

    def candidates(self, filepath: Path) -> List[str]:
        raise NotImplementedError


class ExiftoolSource(MetadataSource):
    """Reads all date fields with a single exiftool invocation per file."""

    def __init__(self, executable: str = "exiftool", timeout: int = METADATA_TIMEOUT):
        self.executable = executable
        self.timeout = timeout

    def build_command(self, filepath: Path) -> List[str]:
        cmd = [self.executable]
        if filepath.suffix.lower() in QUICKTIME_UTC_EXTENSIONS:
            cmd += ["-api", "QuickTimeUTC"]
        cmd += EXIFTOOL_FIELDS
        cmd += ["-s", "-s", "-s", "-d", EXIFTOOL_DATE_FORMAT, str(filepath)]
        return cmd

    def candidates(self, filepath: Path) -> List[str]:
        try:
            result = subprocess.run(
                self.build_command(filepath),
                capture_output=True, text=True, errors="replace", timeout=self.timeout
            )
        except FileNotFoundError:
            raise MetadataError(f"{self.executable} not found")
        except subprocess.TimeoutExpired:
            raise MetadataError(f"{self.executable} timed out after {self.timeout}s")
        except OSError as e:
            raise MetadataError(f"could not run {self.executable}: {e}")

        # exiftool exits non-zero for unreadable files but may still print tags
        if result.returncode != 0 and not result.stdout.strip():
            message = result.stderr.strip() or f"exit status {result.returncode}"
            raise MetadataError(message)

        return [line.strip() for line in result.stdout.splitlines() if line.strip()]


class PillowExifSource(MetadataSource):
    """Reads EXIF dates from images with Pillow, falling back to exifread."""

    def _pillow_candidates(self, filepath: Path) -> List[str]:
        with Image.open(filepath) as img:
            exif = img.getexif()
            tags = {TAGS.get(tag_id, tag_id): value for tag_id, value in exif.items()}
            for tag_id, value in exif.get_ifd(EXIF_IFD_POINTER).items():
                tags[TAGS.get(tag_id, tag_id)] = value

        found = []
        for date_tag, subsec_tag, offset_tag in EXIF_DATE_TAGS:
            if date_tag in tags:
                line = format_exif_datetime(tags[date_tag], tags.get(subsec_tag), tags.get(offset_tag))
                if line:
                    found.append(line)
        return found

    def _exifread_candidates(self, filepath: Path) -> List[str]:
        with open(filepath, "rb") as f:
            tags = exifread.process_file(f, details=False)

        found = []
        for date_tag, subsec_tag, offset_tag in EXIFREAD_DATE_TAGS:
            if date_tag in tags:
                line = format_exif_datetime(
                    str(tags[date_tag]),
                    str(tags[subsec_tag]) if subsec_tag in tags else None,
                    str(tags[offset_tag]) if offset_tag in tags else None,
                )
                if line:
                    found.append(line)
        return found

    def candidates(self, filepath: Path) -> List[str]:
        pillow_error = None
        try:
            found = self._pillow_candidates(filepath)
            if found:
                return found
        except Exception as e:
            # includes DecompressionBombError for very large images
            pillow_error = e

        # RAW and HEIC files Pillow cannot open are often readable by exifread
        try:
            return self._exifread_candidates(filepath)
        except Exception as e:
            raise MetadataError(f"could not read EXIF: {pillow_error or e}")


class FfprobeSource(MetadataSource):
    """Reads container and stream creation dates from videos with ffprobe."""

    def __init__(self, executable: str = "ffprobe", timeout: int = METADATA_TIMEOUT):
        self.executable = executable
        self.timeout = timeout

    def candidates(self, filepath: Path) -> List[str]:
        cmd = [
            self.executable, '-v', 'quiet', '-print_format', 'json',
            '-show_format', '-show_streams', str(filepath)
        ]
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, errors="replace", timeout=self.timeout
            )
        except FileNotFoundError:
            raise MetadataError(f"{self.executable} not found")
        except subprocess.TimeoutExpired:
            raise MetadataError(f"{self.executable} timed out after {self.timeout}s")
        except OSError as e:
            raise MetadataError(f"could not run {self.executable}: {e}")

        if result.returncode != 0:
            raise MetadataError(f"{self.executable} exit status {result.returncode}")

        try:
            metadata = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise MetadataError(f"unreadable {self.executable} output: {e}")

        tag_sets = [metadata.get('format', {}).get('tags', {})]
        tag_sets += [stream.get('tags', {}) for stream in metadata.get('streams', [])]

        found = []
        for tags in tag_sets:
            for key in VIDEO_DATE_KEYS:
                if tags.get(key):
                    found.append(format_iso_datetime(tags[key]))
        return found


class NativeSource(MetadataSource):
    """Picks Pillow/exifread for photos and ffprobe for videos."""

    def __init__(self, photo_source: Optional[MetadataSource] = None,
                 video_source: Optional[MetadataSource] = None):
        self.photo_source = photo_source or PillowExifSource()
        self.video_source = video_source or FfprobeSource()

    def candidates(self, filepath: Path) -> List[str]:
        if filepath.suffix.lower() in VIDEO_EXTENSIONS:
            return self.video_source.candidates(filepath)
        return self.photo_source.candidates(filepath)


def default_source(exiftool: str = "exiftool", use_exiftool: bool = True) -> MetadataSource:
    """exiftool when it is installed, otherwise the pure-Python readers."""
    if use_exiftool and shutil.which(exiftool):
        return ExiftoolSource(exiftool)
    return NativeSource()
