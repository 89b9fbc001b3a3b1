"""Source table adapters: Google Sheets and CSV exports."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Optional

import gspread
import pandas as pd
from gspread.utils import ValueRenderOption
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import SyncConfig


logger = logging.getLogger(__name__)


def column_index(letter: str) -> int:
    """Convert a column letter to a zero-based index (A -> 0, AA -> 26)."""
    letter = letter.strip().upper()
    if not letter or not letter.isalpha():
        raise ValueError(f"Invalid column letter: {letter!r}")

    index = 0
    for char in letter:
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index - 1


def is_empty_row(row: List[Any]) -> bool:
    """A row whose cells, concatenated, are blank after trimming."""
    return "".join("" if value is None else str(value) for value in row).strip() == ""


def trim_trailing_empty_rows(rows: List[List[Any]]) -> List[List[Any]]:
    """Drop blank rows after the last row with content."""
    end = len(rows)
    while end and is_empty_row(rows[end - 1]):
        end -= 1
    return rows[:end]


class SheetSource(ABC):
    """A flat table with a header row and a reserved status column."""

    def __init__(self, status_column: str = "K"):
        self.status_column = status_column.strip().upper()
        self.status_index = column_index(self.status_column)

    @abstractmethod
    def read_all(self) -> List[List[Any]]:
        """All rows including the header, trailing blank rows removed."""
        pass

    @abstractmethod
    def write_status(self, row: int, text: str) -> None:
        """Write outcome text to the status column of a 1-based row."""
        pass

    def last_data_row(self) -> int:
        """1-based number of the last row with content."""
        return len(self.read_all())


class GoogleSheetSource(SheetSource):
    """Worksheet accessed through gspread."""

    def __init__(self, worksheet: gspread.Worksheet, status_column: str = "K"):
        super().__init__(status_column)
        self.worksheet = worksheet

    @classmethod
    def from_config(cls, config: SyncConfig) -> "GoogleSheetSource":
        """Open the configured worksheet with a service account."""
        if not config.spreadsheet_id:
            raise ValueError("SHOPIFY_SYNC_SPREADSHEET_ID is required for the sheets source")

        if config.google_credentials:
            client = gspread.service_account(filename=str(config.google_credentials))
        else:
            client = gspread.service_account()

        spreadsheet = client.open_by_key(config.spreadsheet_id)
        if config.worksheet:
            worksheet = spreadsheet.worksheet(config.worksheet)
        else:
            worksheet = spreadsheet.sheet1

        return cls(worksheet, config.timestamp_column)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(gspread.exceptions.APIError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    )
    def read_all(self) -> List[List[Any]]:
        # Typed cells (bool, int, float), not display text
        values = self.worksheet.get_all_values(
            value_render_option=ValueRenderOption.unformatted
        )
        return trim_trailing_empty_rows(values)

    def write_status(self, row: int, text: str) -> None:
        self.worksheet.update_acell(f"{self.status_column}{row}", text)


class CSVSheetSource(SheetSource):
    """Local CSV export of a sheet. Status text is written back into the file."""

    def __init__(self, path: Path, status_column: str = "K"):
        super().__init__(status_column)
        self.path = Path(path)

    def _read_frame(self) -> pd.DataFrame:
        if not self.path.exists():
            raise FileNotFoundError(f"CSV file not found: {self.path}")

        try:
            df = pd.read_csv(
                self.path,
                header=None,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=False,
                encoding="utf-8"
            )
        except pd.errors.EmptyDataError:
            return pd.DataFrame()

        return df.fillna("")

    def read_all(self) -> List[List[Any]]:
        return trim_trailing_empty_rows(self._read_frame().values.tolist())

    def write_status(self, row: int, text: str) -> None:
        df = self._read_frame()

        width = max(len(df.columns), self.status_index + 1)
        height = max(len(df.index), row)
        df = df.reindex(index=range(height), columns=range(width), fill_value="")

        df.iat[row - 1, self.status_index] = text
        df.to_csv(self.path, header=False, index=False, encoding="utf-8")


def open_source(config: SyncConfig, csv_path: Optional[Path] = None) -> SheetSource:
    """Create the configured source table adapter."""
    if config.source == "csv" or csv_path:
        path = csv_path or config.csv_path
        if not path:
            raise ValueError("SHOPIFY_SYNC_CSV_PATH is required for the csv source")
        return CSVSheetSource(path, config.timestamp_column)

    return GoogleSheetSource.from_config(config)
