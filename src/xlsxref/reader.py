"""Access to the sheets that references point to.

The file-backed reader lives in xlsxref.workbook next to the Workbook class
it opens.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path

from xlsxref.sheet import Sheet, parse_data_sheet

logger = logging.getLogger(__name__)


class SheetCache:
    """Parsed sheets of one workbook, keyed by sheet name."""

    def __init__(self):
        self._sheets: dict[str, Sheet] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._sheets

    def __len__(self) -> int:
        return len(self._sheets)

    def get_or_parse(self, name: str, parse: Callable[[str], Sheet]) -> Sheet:
        if name not in self._sheets:
            self._sheets[name] = parse(name)
        return self._sheets[name]


class SheetReader(ABC):
    """Opens the sheet ``sheet_name`` of the workbook at ``path``."""

    @abstractmethod
    def open(self, path: Path | str, sheet_name: str) -> Sheet:
        pass

    def close(self) -> None:  # noqa: B027
        """Release resources held by the reader."""


class MemoryReader(SheetReader):
    """Reader serving prepared sheets by name, ignoring the path.

    Unknown sheet names yield an empty sheet without columns.
    """

    def __init__(self, sheets: dict[str, Sheet] | None = None):
        self.sheets = {} if sheets is None else sheets

    def open(self, path: Path | str, sheet_name: str) -> Sheet:
        if sheet_name in self.sheets:
            return self.sheets[sheet_name]
        logger.debug('-> sheet "%s" not in memory, using an empty sheet', sheet_name)
        return parse_data_sheet(sheet_name, [])
