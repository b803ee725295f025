"""Output formatters for different data formats."""

import csv
import json
from io import StringIO
from typing import Protocol

from .models import DateRange, SalesResult


class FormatterProtocol(Protocol):
    """Protocol for data formatters."""

    def format_sales(self, result: SalesResult, date_range: DateRange) -> str:
        """Format a sales total."""
        ...


class TableFormatter:
    """Format data as aligned ASCII tables."""

    def format_sales(self, result: SalesResult, date_range: DateRange) -> str:
        """Format a sales total as a one-row table."""
        lines = []
        lines.append("\n" + "=" * 80)
        lines.append(f"{'Period':<10} {'From':<30} {'To':<30} {'Total':>6}")
        lines.append("-" * 80)
        lines.append(
            f"{result.period.label:<10} {date_range.start:<30} {date_range.end:<30}"
        )
        lines.append("=" * 80)
        lines.append(f"{'Total':<61} {result.currency}{result.total:>15}")
        lines.append("=" * 80)
        return "\n".join(lines)


class JsonFormatter:
    """Format data as JSON."""

    def format_sales(self, result: SalesResult, date_range: DateRange) -> str:
        """Format a sales total as a JSON object."""
        data = {
            "period": result.period.label.lower(),
            "start": date_range.start,
            "end": date_range.end,
            "total": result.total,
            "currency": result.currency,
        }
        return json.dumps(data, indent=2, ensure_ascii=False)


class CsvFormatter:
    """Format data as CSV."""

    def format_sales(self, result: SalesResult, date_range: DateRange) -> str:
        """Format a sales total as CSV."""
        output = StringIO()
        writer = csv.writer(output)

        # Write header
        writer.writerow(["period", "start", "end", "total", "currency"])

        # Write data
        writer.writerow(
            [
                result.period.label.lower(),
                date_range.start,
                date_range.end,
                result.total,
                result.currency,
            ]
        )

        return output.getvalue()


def get_formatter(format_type: str) -> FormatterProtocol:
    """Get formatter instance by type.

    Args:
        format_type: One of 'table', 'json', or 'csv'

    Returns:
        Formatter instance. Defaults to TableFormatter for unknown types.
    """
    formatters = {
        "table": TableFormatter(),
        "json": JsonFormatter(),
        "csv": CsvFormatter(),
    }
    return formatters.get(format_type.lower(), TableFormatter())
