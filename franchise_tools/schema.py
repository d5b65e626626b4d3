"""Per-game-year table schemas for franchise snapshots.

Schemas are XML documents shipped under ``franchise_tools/schemas``::

    <franchiseSchema gameYear="24">
      <table name="Player" uniqueId="1612938518">
        <field name="ContractStatus" type="enum" values="Signed,FreeAgent" />
        <field name="CharacterVisuals" type="reference" table="CharacterVisuals" />
      </table>
    </franchiseSchema>
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from defusedxml import ElementTree as element_tree

from .errors import SchemaError, UnsupportedGameYearError
from .references import ZERO_REF, is_reference

SCHEMA_DIR = Path(__file__).resolve().parent / "schemas"

FIELD_TYPES = ("string", "int", "float", "bool", "enum", "reference", "json")


@dataclass
class FieldSchema:
    name: str
    type: str
    values: tuple[str, ...] = ()
    default: Any = None
    table: str | None = None

    def default_value(self) -> Any:
        return copy.deepcopy(self.default)

    def validate(self, value: Any) -> Any:
        """Return ``value`` normalized for storage or raise SchemaError."""
        if self.type == "string":
            if isinstance(value, str):
                return value
        elif self.type == "int":
            if isinstance(value, int) and not isinstance(value, bool):
                return value
        elif self.type == "float":
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return float(value)
        elif self.type == "bool":
            if isinstance(value, bool):
                return value
        elif self.type == "enum":
            if value in self.values:
                return value
            raise SchemaError(f"{self.name}: {value!r} is not one of {', '.join(self.values)}")
        elif self.type == "reference":
            if is_reference(value):
                return value
        elif self.type == "json":
            if isinstance(value, dict):
                return value
        raise SchemaError(f"{self.name}: expected {self.type}, got {type(value).__name__} {value!r}")


@dataclass
class TableSchema:
    name: str
    unique_id: int | None
    fields: dict[str, FieldSchema] = field(default_factory=dict)

    def get_field(self, name: str) -> FieldSchema:
        try:
            return self.fields[name]
        except KeyError:
            raise SchemaError(f"table {self.name} has no field {name}") from None


@dataclass
class FranchiseSchema:
    game_year: int
    tables: dict[str, TableSchema] = field(default_factory=dict)

    def table(self, name: str) -> TableSchema:
        try:
            return self.tables[name]
        except KeyError:
            raise SchemaError(f"schema M{self.game_year} has no table {name}") from None


def _parse_default(field_type: str, raw: str | None, values: tuple[str, ...]) -> Any:
    if field_type == "string":
        return raw or ""
    if field_type == "int":
        return int(raw) if raw else 0
    if field_type == "float":
        return float(raw) if raw else 0.0
    if field_type == "bool":
        return (raw or "").strip().lower() == "true"
    if field_type == "enum":
        if raw:
            return raw
        return values[0] if values else ""
    if field_type == "reference":
        return raw or ZERO_REF
    return {}


def _parse_field(node: Any, table_name: str) -> FieldSchema:
    name = (node.get("name") or "").strip()
    field_type = (node.get("type") or "").strip()
    if not name:
        raise SchemaError(f"table {table_name}: field without a name")
    if field_type not in FIELD_TYPES:
        raise SchemaError(f"{table_name}.{name}: unknown field type {field_type!r}")

    values = tuple(v.strip() for v in (node.get("values") or "").split(",") if v.strip())
    if field_type == "enum" and not values:
        raise SchemaError(f"{table_name}.{name}: enum field without values")

    schema = FieldSchema(
        name=name,
        type=field_type,
        values=values,
        default=_parse_default(field_type, node.get("default"), values),
        table=(node.get("table") or None),
    )
    # The declared default has to satisfy the field's own rules.
    schema.validate(schema.default_value())
    return schema


def parse_schema(path: Path) -> FranchiseSchema:
    try:
        root = element_tree.parse(path).getroot()
    except element_tree.ParseError as exc:
        raise SchemaError(f"{path}: {exc}") from exc
    if root.tag != "franchiseSchema":
        raise SchemaError(f"{path}: expected <franchiseSchema> root, got <{root.tag}>")

    try:
        game_year = int(root.get("gameYear", ""))
    except ValueError:
        raise SchemaError(f"{path}: missing or invalid gameYear") from None

    schema = FranchiseSchema(game_year=game_year)
    for table_node in root.findall("table"):
        table_name = (table_node.get("name") or "").strip()
        if not table_name:
            raise SchemaError(f"{path}: table without a name")
        unique_id = table_node.get("uniqueId")
        table = TableSchema(name=table_name, unique_id=int(unique_id) if unique_id else None)
        for field_node in table_node.findall("field"):
            parsed = _parse_field(field_node, table_name)
            table.fields[parsed.name] = parsed
        schema.tables[table_name] = table

    for table in schema.tables.values():
        for item in table.fields.values():
            if item.table and item.table not in schema.tables:
                raise SchemaError(f"{table.name}.{item.name}: reference to unknown table {item.table}")
    return schema


def available_game_years(schema_dir: Path = SCHEMA_DIR) -> list[int]:
    years: list[int] = []
    for path in sorted(schema_dir.glob("M*.xml")):
        suffix = path.stem[1:]
        if suffix.isdigit():
            years.append(int(suffix))
    return years


def load_schema(game_year: int, schema_dir: Path = SCHEMA_DIR) -> FranchiseSchema:
    path = schema_dir / f"M{game_year}.xml"
    if not path.exists():
        raise UnsupportedGameYearError(f"no table schema for Madden {game_year} franchise files")
    schema = parse_schema(path)
    if schema.game_year != game_year:
        raise SchemaError(f"{path}: declares gameYear {schema.game_year}, expected {game_year}")
    return schema
