"""Scanara-Engine: HIPAA compliance audits for codebases."""

from scanara_engine.client import ScanaraClient
from scanara_engine.audits.parsing import ComplianceTier, compliance_tier, extract_json_object
from scanara_engine.snapshots.normalize import normalize_files, serialize_snapshot

__all__ = [
    "ScanaraClient",
    "ComplianceTier",
    "compliance_tier",
    "extract_json_object",
    "normalize_files",
    "serialize_snapshot",
]
__version__ = "0.1.0"
