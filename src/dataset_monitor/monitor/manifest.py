"""
Manifest codec and bucket key layout.

Bucket layout::

    Incoming/<ISO-8601 instant>/manifest.xml     pending data set
    Incoming/<ISO-8601 instant>/<entry name>
    Done/<ISO-8601 instant>/manifest.xml         completed data set
    Done/<ISO-8601 instant>/<entry name>

Manifest body::

    <dataSetManifest xmlns="http://cms.hhs.gov/bluebutton/api/schema/ccw-rif/v1"
                     timestamp="2024-01-01T00:00:00Z" sequenceId="0">
      <entry name="beneficiaries.rif" type="BENEFICIARY"/>
    </dataSetManifest>
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from datetime import datetime

from dataset_monitor.exceptions import ManifestParseError
from dataset_monitor.monitor.instants import format_instant, parse_canonical_instant, parse_instant
from dataset_monitor.monitor.types import DataSetManifest, ManifestEntry, RifFileType

PREFIX_PENDING = "Incoming"
PREFIX_COMPLETED = "Done"
MANIFEST_FILE_NAME = "manifest.xml"
MANIFEST_NAMESPACE = "http://cms.hhs.gov/bluebutton/api/schema/ccw-rif/v1"

PENDING_MANIFEST_PATTERN = re.compile(rf"^{PREFIX_PENDING}/(.*)/manifest\.xml$")
COMPLETED_MANIFEST_PATTERN = re.compile(rf"^{PREFIX_COMPLETED}/(.*)/manifest\.xml$")


# --- Keys --------------------------------------------------------------------


def data_set_prefix(timestamp: datetime, *, completed: bool = False) -> str:
    """Key prefix (with trailing slash) holding one data set's objects."""
    root = PREFIX_COMPLETED if completed else PREFIX_PENDING
    return f"{root}/{format_instant(timestamp)}/"


def object_key(timestamp: datetime, name: str, *, completed: bool = False) -> str:
    """Key of one data set object (entry file or manifest)."""
    return data_set_prefix(timestamp, completed=completed) + name


def manifest_key(timestamp: datetime, *, completed: bool = False) -> str:
    return object_key(timestamp, MANIFEST_FILE_NAME, completed=completed)


def pending_manifest_timestamp(key: str) -> datetime | None:
    """
    Timestamp of a pending manifest key.

    Returns None both for keys that are not pending manifests and for pending
    manifests whose data set id is not an instant in its canonical form. The
    data set's other keys are rebuilt from the timestamp, so a
    non-canonical id would never find its files.
    """
    match = PENDING_MANIFEST_PATTERN.match(key)
    if match is None:
        return None
    return parse_canonical_instant(match.group(1))


# --- Codec -------------------------------------------------------------------


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def parse_manifest(body: bytes | str, *, key: str | None = None) -> DataSetManifest:
    """
    Deserialize a manifest document.

    Args:
        body: The raw XML document
        key: Object key the body came from, for error messages

    Raises:
        ManifestParseError: If the document is not a valid manifest
    """
    try:
        root = ET.fromstring(body)
    except ET.ParseError as e:
        raise ManifestParseError(f"malformed XML: {e}", key=key) from e

    if _local_name(root.tag) != "dataSetManifest":
        raise ManifestParseError(f"unexpected root element '{_local_name(root.tag)}'", key=key)

    raw_timestamp = root.get("timestamp")
    if raw_timestamp is None:
        raise ManifestParseError("missing 'timestamp' attribute", key=key)
    timestamp = parse_instant(raw_timestamp.strip())
    if timestamp is None:
        raise ManifestParseError(f"invalid timestamp '{raw_timestamp}'", key=key)

    raw_sequence = root.get("sequenceId", "0")
    try:
        sequence_id = int(raw_sequence)
    except ValueError:
        raise ManifestParseError(f"invalid sequenceId '{raw_sequence}'", key=key) from None

    entries = []
    for element in root:
        if _local_name(element.tag) != "entry":
            continue
        name = element.get("name")
        if not name:
            raise ManifestParseError("entry without a 'name' attribute", key=key)
        try:
            file_type = RifFileType.from_name(element.get("type", ""))
        except ValueError as e:
            raise ManifestParseError(f"entry '{name}': {e}", key=key) from None
        entries.append(ManifestEntry(name=name, type=file_type))

    try:
        return DataSetManifest(timestamp=timestamp, entries=tuple(entries), sequence_id=sequence_id)
    except ValueError as e:
        raise ManifestParseError(str(e), key=key) from e


def serialize_manifest(manifest: DataSetManifest) -> bytes:
    """Serialize a manifest to its XML document (UTF-8, with declaration)."""
    root = ET.Element(
        "dataSetManifest",
        {
            "xmlns": MANIFEST_NAMESPACE,
            "timestamp": format_instant(manifest.timestamp),
            "sequenceId": str(manifest.sequence_id),
        },
    )
    for entry in manifest.entries:
        ET.SubElement(root, "entry", {"name": entry.name, "type": entry.type.value})
    ET.indent(root)
    return ET.tostring(root, encoding="utf-8", xml_declaration=True)
