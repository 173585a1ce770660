"""Serialization of exported records to JSON or CSV."""

import csv
import io
import json
from datetime import date, datetime
from typing import Any, Iterable

from collectiondesk.domain.entities.bulk_operation import ExportFormat
from collectiondesk.domain.entities.collection import CollectionSchema
from collectiondesk.domain.entities.record import Record

SYSTEM_COLUMNS = ("id", "created_at", "updated_at")

MEDIA_TYPES = {
    ExportFormat.JSON: "application/json",
    ExportFormat.CSV: "text/csv",
}


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _csv_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True, default=_json_default)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


class RecordExporter:
    """Renders records in a stable order (by id) for download."""

    def __init__(self, schema: CollectionSchema | None = None) -> None:
        self.schema = schema

    def _columns(self, records: list[Record]) -> list[str]:
        if self.schema is not None:
            names = list(self.schema.field_names)
        else:
            names = []
        for record in records:
            for name in record.values:
                if name not in names:
                    names.append(name)
        return names

    def to_json(self, records: Iterable[Record]) -> str:
        rows = [record.to_dict() for record in sorted(records, key=lambda r: r.id)]
        return json.dumps(rows, indent=2, default=_json_default)

    def to_csv(self, records: Iterable[Record]) -> str:
        """Render one row per record; system columns first, then schema fields."""
        ordered = sorted(records, key=lambda r: r.id)
        columns = self._columns(ordered)

        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=[*SYSTEM_COLUMNS, *columns])
        writer.writeheader()
        for record in ordered:
            row = {
                "id": record.id,
                "created_at": record.created_at.isoformat(),
                "updated_at": record.updated_at.isoformat(),
            }
            for name in columns:
                row[name] = _csv_cell(record.values.get(name))
            writer.writerow(row)
        return buffer.getvalue()

    def export(self, records: Iterable[Record], export_format: ExportFormat) -> str:
        if ExportFormat(export_format) is ExportFormat.CSV:
            return self.to_csv(records)
        return self.to_json(records)
