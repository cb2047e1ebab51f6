"""babynames-tidy — Turn the UK baby-name spreadsheets into tidy tables."""

__version__ = "0.2.0"

NAME_COLUMNS: tuple[str, str] = ("Name", "Name_2")
COUNT_COLUMNS: tuple[str, str] = ("Count", "Count_2")
REQUIRED_COLUMNS: list[str] = ["Name", "Count", "Name_2", "Count_2"]
TIDY_COLUMNS: list[str] = ["Name", "Count", "Rank", "Block"]

DEFAULT_SHEET_PATTERN = "Table 1"
# Header sits on spreadsheet row 7; a blank separator row follows it.
DEFAULT_SKIP_ROWS = 6
