"""Parsers for mutool and exiftool output.

mutool prints plain-text listings; exiftool is always run with -json so its
output is decoded with the json module. Every parser returns an empty
result for empty output and raises ValueError only for JSON that cannot be
decoded at all.
"""

import json
import mimetypes
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from pdf_forensic.models import (
    EmbeddedDocument,
    EmbeddedFont,
    ForensicMetadata,
    GPSLocation,
    PageResources,
    PDFObjectInfo,
    PDFVersionHistory,
    XMPEditEntry,
    XMPMetadata,
)

# "Fonts (2):", "Images (1):", "Shadings (0):" ...
SECTION_HEADER = re.compile(r"^\s*(Fonts|Images|Shadings|Patterns|Form XObjects|XObjects)\s*\(\d+\):")
# "\t1\t(4 0 R):\tType1 'Helvetica' WinAnsiEncoding (5 0 R)"
RESOURCE_LINE = re.compile(r"^\s*(\d+)\s+\((\d+)\s+\d+\s+R\):\s+(.*)$")
FONT_DESCRIPTION = re.compile(r"^(\S+)\s+'([^']*)'(?:\s+([A-Za-z0-9\-]+))?")
XREF_ENTRY = re.compile(r"^\s*(\d+):?\s+(\d+)\s+(\d+)\s+([nfo])\s*$")
PREV_OFFSET = re.compile(r"/Prev\s+(\d+)")
SIZE_ENTRY = re.compile(r"/Size\s+(\d+)")
DMS_VALUE = re.compile(
    r"(-?\d+(?:\.\d+)?)\s*deg\s*(?:(\d+(?:\.\d+)?)'\s*)?(?:(\d+(?:\.\d+)?)\"\s*)?([NSEW])?"
)

SUBSET_PREFIX_LENGTH = 6


def _load_json_records(output: str) -> List[Dict[str, Any]]:
    if not output.strip():
        return []
    data = json.loads(output)
    if isinstance(data, dict):
        data = [data]
    return [item for item in data if isinstance(item, dict)]


def _first_record(output: str) -> Dict[str, Any]:
    records = _load_json_records(output)
    return records[0] if records else {}


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    return str(value)


# ----------------------------------------------------------------------
# mutool
# ----------------------------------------------------------------------

def parse_fonts_output(output: str) -> List[EmbeddedFont]:
    """Parse ``mutool info -F`` into one EmbeddedFont per listed font."""
    fonts = []
    for line in output.splitlines():
        match = RESOURCE_LINE.match(line)
        if not match:
            continue
        description = FONT_DESCRIPTION.match(match.group(3).strip())
        if not description:
            continue

        font_type, name, encoding = description.groups()
        is_subset = name.find("+") == SUBSET_PREFIX_LENGTH
        fonts.append(EmbeddedFont(
            name=name[SUBSET_PREFIX_LENGTH + 1:] if is_subset else name,
            type=font_type,
            encoding=encoding,
            # Subset fonts are always embedded
            embedded=is_subset or "embedded" in line.lower(),
            subset=is_subset,
            page_number=int(match.group(1)),
        ))
    return fonts


def parse_page_resources_output(output: str) -> List[PageResources]:
    """Group the entries of ``mutool info`` by page."""
    pages: Dict[int, PageResources] = {}
    section = None

    for line in output.splitlines():
        header = SECTION_HEADER.match(line)
        if header:
            section = header.group(1)
            continue

        match = RESOURCE_LINE.match(line)
        if not match or section is None:
            continue

        page_number = int(match.group(1))
        entry = match.group(3).strip()
        resources = pages.setdefault(page_number, PageResources(page_number=page_number))
        if section == "Fonts":
            resources.fonts.append(entry)
        elif section == "Shadings":
            resources.shadings.append(entry)
        elif section in ("Images", "XObjects", "Form XObjects"):
            resources.images.append(entry)

    return [pages[n] for n in sorted(pages)]


def parse_object_info(trailer: str, xref: str) -> PDFObjectInfo:
    """
    Combine ``mutool show trailer`` and ``mutool show xref`` listings.

    Object 0 heads the free list in every classic table and is not counted
    as a deleted object.
    """
    info = PDFObjectInfo()

    offsets = [int(v) for v in PREV_OFFSET.findall(trailer)]
    info.previous_xref_offsets = offsets
    info.has_incremental_updates = bool(offsets)

    size = SIZE_ENTRY.search(trailer)
    if size:
        info.object_count = int(size.group(1))

    for line in xref.splitlines():
        match = XREF_ENTRY.match(line)
        if not match:
            continue
        number, _, _, kind = match.groups()
        if kind == "f":
            if int(number) != 0:
                info.free_objects += 1
        else:
            info.active_objects += 1

    return info


# ----------------------------------------------------------------------
# exiftool
# ----------------------------------------------------------------------

def _history_from_struct(entries: List[Any]) -> List[XMPEditEntry]:
    history = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        history.append(XMPEditEntry(
            action=_text(entry.get("Action")) or "",
            when=_text(entry.get("When")) or "",
            software_agent=_text(entry.get("SoftwareAgent")) or "",
            instance_id=_text(entry.get("InstanceID")),
        ))
    return history


def _history_from_flat(record: Dict[str, Any]) -> List[XMPEditEntry]:
    """Rebuild entries from exiftool's flattened HistoryAction/HistoryWhen lists."""

    def as_list(key: str) -> List[Any]:
        value = record.get(f"XMP-xmpMM:{key}")
        if value is None:
            return []
        return value if isinstance(value, list) else [value]

    actions = as_list("HistoryAction")
    whens = as_list("HistoryWhen")
    agents = as_list("HistorySoftwareAgent")
    instances = as_list("HistoryInstanceID")

    history = []
    for i, action in enumerate(actions):
        history.append(XMPEditEntry(
            action=str(action),
            when=str(whens[i]) if i < len(whens) else "",
            software_agent=str(agents[i]) if i < len(agents) else "",
            instance_id=str(instances[i]) if i < len(instances) else None,
        ))
    return history


def parse_xmp_metadata(output: str) -> XMPMetadata:
    """Parse ``exiftool -json -XMP:all -G1`` output."""
    record = _first_record(output)
    metadata = XMPMetadata()

    for key, value in record.items():
        if not key.startswith("XMP-") or ":" not in key:
            continue
        namespace, prop = key[4:].split(":", 1)
        metadata.namespaces.setdefault(namespace, {})[prop] = _text(value) or ""

    history = record.get("XMP-xmpMM:History")
    if isinstance(history, list):
        metadata.edit_history = _history_from_struct(history)
    else:
        metadata.edit_history = _history_from_flat(record)

    return metadata


def parse_version_history(output: str) -> PDFVersionHistory:
    """Parse ``exiftool -json -all -G1`` output into the document's date and tool history."""
    record = _first_record(output)

    def pick(*keys: str) -> Optional[str]:
        for key in keys:
            if record.get(key) is not None:
                return _text(record[key])
        return None

    linearized = (pick("PDF:Linearized") or "").lower()
    return PDFVersionHistory(
        create_date=pick("PDF:CreateDate", "XMP-xmp:CreateDate"),
        modify_date=pick("PDF:ModifyDate", "XMP-xmp:ModifyDate"),
        metadata_date=pick("XMP-xmp:MetadataDate"),
        producer=pick("PDF:Producer"),
        creator=pick("PDF:Creator"),
        pdf_version=pick("PDF:PDFVersion"),
        is_linearized=linearized in ("yes", "true"),
    )


def parse_coordinate(value: Any) -> Optional[float]:
    """Accept numeric degrees or exiftool's ``37 deg 46' 30.00" N`` form."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)

    text = str(value).strip()
    try:
        return float(text)
    except ValueError:
        pass

    match = DMS_VALUE.search(text)
    if not match:
        return None
    degrees, minutes, seconds, hemisphere = match.groups()
    result = abs(float(degrees)) + float(minutes or 0) / 60 + float(seconds or 0) / 3600
    if degrees.startswith("-") or hemisphere in ("S", "W"):
        result = -result
    return result


def _altitude(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = re.match(r"\s*(-?\d+(?:\.\d+)?)", str(value))
    return float(match.group(1)) if match else None


def parse_gps_data(output: str) -> List[GPSLocation]:
    """Parse ``exiftool -json -GPS:all -ee`` output."""
    locations = []
    for record in _load_json_records(output):

        def pick(name: str) -> Any:
            return record.get(f"GPS:{name}", record.get(name))

        latitude = parse_coordinate(pick("GPSLatitude"))
        longitude = parse_coordinate(pick("GPSLongitude"))
        if latitude is None or longitude is None:
            continue
        locations.append(GPSLocation(
            latitude=latitude,
            longitude=longitude,
            altitude=_altitude(pick("GPSAltitude")),
            timestamp=_text(pick("GPSDateTime")),
            source=_text(record.get("SourceFile")) or "Unknown",
        ))
    return locations


def parse_forensic_metadata(output: str) -> ForensicMetadata:
    """Group ``exiftool -json -all -G1 -struct`` tags by family-1 group."""
    record = _first_record(output)
    metadata = ForensicMetadata()
    for key, value in record.items():
        group, _, prop = key.partition(":")
        if not prop:
            group, prop = "Other", key
        if isinstance(value, (dict, list)):
            text = json.dumps(value, sort_keys=True)
        else:
            text = str(value)
        metadata.groups.setdefault(group, {})[prop] = text
    return metadata


def list_extracted_files(directory: Path) -> List[EmbeddedDocument]:
    """Describe every file exiftool wrote into the extraction directory."""
    documents = []
    for path in sorted(Path(directory).iterdir()):
        if not path.is_file():
            continue
        mime_type, _ = mimetypes.guess_type(path.name)
        documents.append(EmbeddedDocument(
            filename=path.name,
            path=str(path),
            size=path.stat().st_size,
            mime_type=mime_type or "application/octet-stream",
        ))
    return documents
