"""
Data-source interface for the reporting layer.

Reports only need a handful of read operations plus the save path that
appends revisions. Implement DatabaseClient against your actual storage; the
in-process MemoryClient in this package is the reference implementation.
"""

import re
from typing import Any, Dict, List, Optional

from ..diff.timeline import RevisionRecord
from .records import SlipRecord


def _pad_sequence(value: int, width: int = 6) -> str:
    return str(value).zfill(width)


def build_slip_number(fmt: Optional[str], slip_id: int) -> str:
    """
    Render a slip number from the configured format.

    Formats:
    - "{SEQ}" anywhere in the format is replaced by the id padded to 6 digits
      ("PS-{SEQ}" -> "PS-000042")
    - Otherwise a trailing run of digits is replaced by the id padded to the
      width of that run ("INV-0000" -> "INV-0042")
    - Otherwise the padded id is appended ("SLIP" -> "SLIP000042")

    Args:
        fmt: Configured format; blank or None means "PS-{SEQ}"
        slip_id: Database id of the slip

    Returns:
        The slip number
    """
    template = fmt.strip() if fmt and fmt.strip() else "PS-{SEQ}"
    if "{SEQ}" in template:
        return template.replace("{SEQ}", _pad_sequence(slip_id))

    trailing = re.search(r"(\d+)$", template)
    if trailing:
        width = len(trailing.group(1))
        return template[:-width] + _pad_sequence(slip_id, width)

    return f"{template}{_pad_sequence(slip_id)}"


class DatabaseClient:
    """
    Abstract data-source interface.

    Implement this interface with your actual database client. Read methods
    must return fresh records; callers are free to hold on to them.
    """

    def list_slips(self) -> List[SlipRecord]:
        """
        Get all packing slips with their lines.

        Returns:
            List of SlipRecord, each with lines populated
        """
        raise NotImplementedError

    def get_slip(self, slip_id: int) -> Optional[SlipRecord]:
        """
        Get one packing slip with its lines.

        Returns:
            SlipRecord, or None if no slip has this id
        """
        raise NotImplementedError

    def list_revisions(self) -> List[RevisionRecord]:
        """
        Get every stored revision of every slip.

        Returns:
            List of RevisionRecord with slip_id populated
        """
        raise NotImplementedError

    def get_revisions(self, slip_id: int) -> List[RevisionRecord]:
        """
        Get the revisions of one slip, ordered by ascending version.

        Returns:
            List of RevisionRecord (empty if the slip has none)
        """
        raise NotImplementedError

    def save_slip(self, slip: SlipRecord) -> SlipRecord:
        """
        Create or update a packing slip and append a revision snapshot.

        New slips (id is None) get an id and a slip number. Every save,
        including the first, appends exactly one revision.

        A ReportService over this client keeps serving cached reports until
        their TTL runs out; call its cache.invalidate() after saving to see
        the change at once.

        Args:
            slip: Slip to save

        Returns:
            The stored slip

        Raises:
            ValueError: If the slip fails validation
        """
        raise NotImplementedError

    def get_settings(self) -> Dict[str, Any]:
        """
        Get the application settings stored alongside the data.

        Returns:
            Dictionary with at least "slipNumberFormat"
        """
        raise NotImplementedError

    def close(self) -> None:
        """Release any resources held by the client."""
