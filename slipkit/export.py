"""Export report rows to CSV, Excel or JSON files."""

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import openpyxl

logger = logging.getLogger(__name__)


class ReportExporter:
    """Writes tabular report data (a list of row dicts) to disk."""

    def __init__(self, sheet_title: str = "Report"):
        """
        Args:
            sheet_title: Worksheet name used for Excel exports
        """
        self.sheet_title = sheet_title

    @staticmethod
    def headers_for(data: List[Dict[str, Any]]) -> List[str]:
        """Union of row keys, in the order they are first seen."""
        headers: List[str] = []
        seen = set()
        for row in data:
            for key in row.keys():
                if key not in seen:
                    seen.add(key)
                    headers.append(key)
        return headers

    def export(
        self,
        data: List[Dict[str, Any]],
        output_path: Union[str, Path],
        format: Optional[str] = None
    ) -> str:
        """Export report rows to a file.

        Args:
            data: List of dictionaries, one per report row
            output_path: Path where the file should be saved
            format: 'csv', 'excel', 'json', or None to detect from the extension

        Returns:
            Path to the exported file

        Raises:
            ValueError: If format is not supported or data is empty
        """
        if not data:
            raise ValueError("Cannot export empty data")

        output_path = Path(output_path)

        if format is None:
            suffix = output_path.suffix.lower()
            if suffix in ['.csv', '.tsv']:
                format = 'csv'
            elif suffix in ['.xlsx', '.xls']:
                format = 'excel'
            elif suffix == '.json':
                format = 'json'
            else:
                # Unrecognized extensions are written as CSV
                format = 'csv'
                output_path = output_path.with_suffix('.csv')

        format = format.lower()
        headers = self.headers_for(data)

        if format == 'csv':
            self._export_csv(data, output_path, headers)
        elif format == 'excel':
            self._export_excel(data, output_path, headers)
        elif format == 'json':
            self._export_json(data, output_path)
        else:
            raise ValueError(f"Unsupported export format: {format}. Supported formats: csv, excel, json")

        logger.info("Exported %d rows to %s", len(data), output_path)
        return str(output_path)

    def _export_csv(self, data: List[Dict[str, Any]], output_path: Path, headers: List[str]) -> None:
        with open(output_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=headers, extrasaction='ignore')
            writer.writeheader()
            for row in data:
                writer.writerow({header: _cell(row.get(header)) for header in headers})

    def _export_excel(self, data: List[Dict[str, Any]], output_path: Path, headers: List[str]) -> None:
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = self.sheet_title

        for col_idx, header in enumerate(headers, start=1):
            ws.cell(row=1, column=col_idx, value=header)

        for row_idx, row_data in enumerate(data, start=2):
            for col_idx, header in enumerate(headers, start=1):
                ws.cell(row=row_idx, column=col_idx, value=_cell(row_data.get(header)))

        wb.save(output_path)

    def _export_json(self, data: List[Dict[str, Any]], output_path: Path) -> None:
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)


def _cell(value: Any) -> Any:
    """Flatten a value for a spreadsheet cell; None becomes an empty cell."""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'yes' if value else 'no'
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return value
