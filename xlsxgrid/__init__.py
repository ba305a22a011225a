"""Read XLSX workbooks into sheets, rows and cells, and build sheets in memory."""

__version__ = "0.1.0"

__all__ = ["cellref", "reftable", "formula", "sheet", "worksheet", "workbook"]