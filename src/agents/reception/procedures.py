"""
Procedure Matcher

Case- and whitespace-insensitive substring search over the Procedure
Catalog. Catalog order is preserved; no match yields an empty list.
"""
import logging

from .normalizers import lookup_key
from .reference import ProcedureRecord

log = logging.getLogger(__name__)


def find_procedures(catalog, query: str) -> list[ProcedureRecord]:
    """
    All catalog entries whose name contains `query`

    Examples:
        "ultrassom" over ["Ultrassom Abdominal"] → [Ultrassom Abdominal]
        "tomografia" over ["Ultrassom Abdominal"] → []
    """
    needle = lookup_key(query)
    matches = [rec for rec in catalog if needle in lookup_key(rec.name)]
    log.info(f"[PROC] query='{needle}' matches={len(matches)}")
    return matches
