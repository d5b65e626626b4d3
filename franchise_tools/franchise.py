"""Table/record access to a franchise snapshot.

A snapshot is the franchise file's tables exported to JSON::

    {
      "meta": {"gameYear": 24},
      "tables": {
        "CharacterVisuals": {
          "tableId": 4220,
          "recordCapacity": 3000,
          "records": [{"RawData": {...}}, null, ...]
        }
      }
    }

``null`` entries are empty rows. Fields left out of a record take the schema
default, so snapshots only need to carry the columns they care about.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator

from .errors import SchemaError
from .references import is_zero_reference, reference_row, reference_table_id
from .schema import SCHEMA_DIR, FieldSchema, FranchiseSchema, TableSchema, load_schema

SNAPSHOT_FORMAT = "franchise-snapshot"


@dataclass
class TableHeader:
    table_id: int
    record_capacity: int
    next_record_to_use: int


class Record:
    def __init__(self, table: Table, index: int, values: dict[str, Any], is_empty: bool) -> None:
        self._table = table
        self._values = values
        self.index = index
        self.is_empty = is_empty

    @property
    def table(self) -> Table:
        return self._table

    def __getitem__(self, name: str) -> Any:
        self._table.schema.get_field(name)
        return self._values[name]

    def __setitem__(self, name: str, value: Any) -> None:
        field_schema = self._table.schema.get_field(name)
        normalized = field_schema.validate(value)
        self._table.franchise.check_reference_target(self._table.name, field_schema, normalized)
        self._values[name] = normalized
        if self.is_empty:
            # Writing into an empty row claims it.
            self.is_empty = False
            self._table.refresh_next_record()

    def __repr__(self) -> str:
        state = "empty" if self.is_empty else "used"
        return f"<Record {self._table.name}[{self.index}] {state}>"

    def to_snapshot(self) -> dict[str, Any] | None:
        if self.is_empty:
            return None
        return dict(self._values)


class Table:
    def __init__(self, franchise: Franchise, schema: TableSchema, header: TableHeader) -> None:
        self.franchise = franchise
        self.schema = schema
        self.header = header
        self.records: list[Record] = []

    @property
    def name(self) -> str:
        return self.schema.name

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    def __repr__(self) -> str:
        return f"<Table {self.name} id={self.header.table_id} capacity={self.header.record_capacity}>"

    def refresh_next_record(self) -> None:
        self.header.next_record_to_use = next(
            (record.index for record in self.records if record.is_empty),
            self.header.record_capacity,
        )

    def to_snapshot(self) -> dict[str, Any]:
        return {
            "tableId": self.header.table_id,
            "recordCapacity": self.header.record_capacity,
            "records": [record.to_snapshot() for record in self.records],
        }


def _build_record_values(table_schema: TableSchema, raw: dict[str, Any], index: int) -> dict[str, Any]:
    unknown = sorted(set(raw) - set(table_schema.fields))
    if unknown:
        raise SchemaError(f"{table_schema.name}[{index}]: unknown field(s) {', '.join(unknown)}")

    values: dict[str, Any] = {}
    for name, field_schema in table_schema.fields.items():
        if name in raw:
            try:
                values[name] = field_schema.validate(raw[name])
            except SchemaError as exc:
                raise SchemaError(f"{table_schema.name}[{index}].{exc}") from None
        else:
            values[name] = field_schema.default_value()
    return values


class Franchise:
    def __init__(self, schema: FranchiseSchema, path: Path | None = None) -> None:
        self.schema = schema
        self.path = path
        self.tables: dict[str, Table] = {}

    @property
    def game_year(self) -> int:
        return self.schema.game_year

    @classmethod
    def load(cls, path: Path | str, schema_dir: Path = SCHEMA_DIR) -> Franchise:
        snapshot_path = Path(path)
        if not snapshot_path.exists():
            raise FileNotFoundError(f"Franchise file not found: {snapshot_path}")
        with snapshot_path.open("r", encoding="utf-8") as handle:
            try:
                payload = json.load(handle)
            except ValueError as exc:
                # Covers malformed JSON and binary saves that are not UTF-8.
                raise SchemaError(f"{snapshot_path}: not a franchise snapshot ({exc})") from None
        return cls.from_snapshot(payload, path=snapshot_path, schema_dir=schema_dir)

    @classmethod
    def from_snapshot(
        cls,
        payload: Any,
        path: Path | None = None,
        schema_dir: Path = SCHEMA_DIR,
    ) -> Franchise:
        if not isinstance(payload, dict) or not isinstance(payload.get("tables"), dict):
            raise SchemaError("snapshot must be a JSON object with a 'tables' object")
        meta = payload.get("meta") if isinstance(payload.get("meta"), dict) else {}
        game_year = meta.get("gameYear")
        if not isinstance(game_year, int) or isinstance(game_year, bool):
            raise SchemaError("snapshot meta.gameYear must be an integer")

        franchise = cls(load_schema(game_year, schema_dir), path=path)
        seen_ids: set[int] = set()
        for name, raw_table in payload["tables"].items():
            table = franchise._load_table(name, raw_table)
            if table.header.table_id in seen_ids:
                raise SchemaError(f"{name}: duplicate tableId {table.header.table_id}")
            seen_ids.add(table.header.table_id)
            franchise.tables[name] = table

        # References can only be checked once every table is present.
        for table in franchise.tables.values():
            for record in table.records:
                if record.is_empty:
                    continue
                for field_schema in table.schema.fields.values():
                    franchise.check_reference_target(table.name, field_schema, record[field_schema.name])
        return franchise

    def _load_table(self, name: str, raw_table: Any) -> Table:
        table_schema = self.schema.table(name)
        if not isinstance(raw_table, dict):
            raise SchemaError(f"{name}: table entry must be an object")
        table_id = raw_table.get("tableId")
        capacity = raw_table.get("recordCapacity")
        raw_records = raw_table.get("records", [])
        if not isinstance(table_id, int) or not isinstance(capacity, int) or capacity < 0:
            raise SchemaError(f"{name}: tableId and recordCapacity must be integers")
        if not isinstance(raw_records, list) or len(raw_records) > capacity:
            raise SchemaError(f"{name}: records must be a list of at most {capacity} rows")

        table = Table(self, table_schema, TableHeader(table_id=table_id, record_capacity=capacity, next_record_to_use=0))
        padded = raw_records + [None] * (capacity - len(raw_records))
        for index, raw in enumerate(padded):
            if raw is None:
                values = _build_record_values(table_schema, {}, index)
                table.records.append(Record(table, index, values, is_empty=True))
            elif isinstance(raw, dict):
                values = _build_record_values(table_schema, raw, index)
                table.records.append(Record(table, index, values, is_empty=False))
            else:
                raise SchemaError(f"{name}[{index}]: record must be an object or null")
        table.refresh_next_record()
        return table

    def get_table(self, name: str) -> Table:
        try:
            return self.tables[name]
        except KeyError:
            raise SchemaError(f"franchise file has no {name} table") from None

    def get_table_by_unique_id(self, unique_id: int) -> Table:
        for table in self.tables.values():
            if table.schema.unique_id == unique_id:
                return table
        raise SchemaError(f"franchise file has no table with unique id {unique_id}")

    def check_reference_target(self, table_name: str, field_schema: FieldSchema, value: Any) -> None:
        if field_schema.type != "reference" or not field_schema.table or is_zero_reference(value):
            return
        target = self.tables.get(field_schema.table)
        if target is None:
            return
        if reference_table_id(value) != target.header.table_id:
            raise SchemaError(
                f"{table_name}.{field_schema.name}: reference points at table id "
                f"{reference_table_id(value)}, expected {field_schema.table} ({target.header.table_id})"
            )
        if reference_row(value) >= target.header.record_capacity:
            raise SchemaError(f"{table_name}.{field_schema.name}: row {reference_row(value)} is outside {field_schema.table}")

    def resolve_reference(self, ref: str) -> Record | None:
        if is_zero_reference(ref):
            return None
        table_id = reference_table_id(ref)
        for table in self.tables.values():
            if table.header.table_id == table_id:
                row = reference_row(ref)
                return table.records[row] if row < table.header.record_capacity else None
        return None

    def to_snapshot(self) -> dict[str, Any]:
        return {
            "format": SNAPSHOT_FORMAT,
            "meta": {"gameYear": self.game_year},
            "tables": {name: table.to_snapshot() for name, table in self.tables.items()},
        }

    def save(self, path: Path | str | None = None) -> Path:
        target = Path(path) if path is not None else self.path
        if target is None:
            raise ValueError("no output path for an in-memory franchise")
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.with_name(target.name + ".tmp")
        try:
            with tmp.open("w", encoding="utf-8") as handle:
                json.dump(self.to_snapshot(), handle, indent=2)
                handle.write("\n")
            os.replace(tmp, target)
        finally:
            if tmp.exists():
                tmp.unlink()
        return target
