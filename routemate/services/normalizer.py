"""Turn manual entries and tabular rows into ordered, role-tagged stops."""

import csv
import io
import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from routemate.core.exceptions import ValidationError
from routemate.models.stops import NormalizedStop, StopInput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnRule:
    """Maps any column whose lower-cased name contains one of ``synonyms`` to ``field``.

    A rule with ``truthy`` tokens describes a boolean column: a cell is true
    when its trimmed, lower-cased value is one of the tokens.
    """

    field: str
    synonyms: Tuple[str, ...]
    truthy: Optional[FrozenSet[str]] = None

    def matches(self, column: str) -> bool:
        lowered = column.lower()
        return any(synonym in lowered for synonym in self.synonyms)

    def convert(self, value: Any) -> Any:
        text = "" if value is None else str(value).strip()
        if self.truthy is None:
            return text
        return text.lower() in self.truthy


# Evaluated in order; the first matching rule claims the column
DEFAULT_COLUMN_RULES: Tuple[ColumnRule, ...] = (
    ColumnRule("address", ("address", "地址", "位置")),
    ColumnRule("note", ("note", "備註", "說明")),
    ColumnRule(
        "is_start_point",
        ("start", "起點"),
        frozenset({"true", "yes", "1", "y", "start", "起點"}),
    ),
    ColumnRule(
        "is_end_point",
        ("end", "終點"),
        frozenset({"true", "yes", "1", "y", "end", "終點"}),
    ),
)


class AddressNormalizer:
    def __init__(self, rules: Sequence[ColumnRule] = DEFAULT_COLUMN_RULES):
        self.rules = tuple(rules)

    def normalize_manual(
        self,
        start_point: StopInput,
        waypoints: Sequence[StopInput],
        end_point: StopInput,
    ) -> List[NormalizedStop]:
        """Start gets sequence 0, waypoints 1..n in listed order, end n+1."""
        entries = [start_point, *waypoints, end_point]
        last = len(entries) - 1
        stops = []
        for index, entry in enumerate(entries):
            address = (entry.address or "").strip()
            if not address:
                raise ValidationError(f"Address #{index + 1} is empty")
            stops.append(
                NormalizedStop(
                    address=address,
                    note=(entry.note or "").strip(),
                    is_start_point=index == 0,
                    is_end_point=index == last,
                    sequence=index,
                )
            )
        return stops

    def resolve_columns(self, columns: Iterable[str]) -> Dict[str, ColumnRule]:
        """Pick the rule for each column name; unmatched columns are left out."""
        resolved = {}
        for column in columns:
            if column is None:
                continue
            for rule in self.rules:
                if rule.matches(column):
                    resolved[column] = rule
                    break
        return resolved

    def normalize_records(self, records: Iterable[Mapping[str, Any]]) -> List[NormalizedStop]:
        """Map sniffed columns onto stop fields and settle start/end roles.

        Explicit role tags win over position. Without any start tag the first
        usable row starts the route; without any end tag the last row ends it,
        and a lone row plays both roles. Among several rows, one tagged both
        start and end keeps only the start.
        """
        column_cache: Dict[Tuple[str, ...], Dict[str, ColumnRule]] = {}
        rows: List[Dict[str, Any]] = []
        discarded = 0

        for record in records:
            key = tuple(record.keys())
            if key not in column_cache:
                column_cache[key] = self.resolve_columns(key)

            row: Dict[str, Any] = {"address": "", "note": "", "is_start_point": False, "is_end_point": False}
            claimed = set()
            for column, rule in column_cache[key].items():
                value = rule.convert(record.get(column))
                # First column claiming a field wins unless it was blank
                if rule.field in claimed and (rule.truthy is not None or row[rule.field]):
                    continue
                row[rule.field] = value
                claimed.add(rule.field)

            if not row["address"]:
                discarded += 1
                continue
            rows.append(row)

        if discarded:
            logger.info(f"Discarded {discarded} rows without an address")
        if not rows:
            raise ValidationError("no usable address rows")

        if len(rows) == 1:
            rows[0]["is_start_point"] = rows[0]["is_end_point"] = True
        else:
            self._split_double_role(rows)
            self._drop_duplicate_role(rows, "is_start_point")
            self._drop_duplicate_role(rows, "is_end_point")
            self._default_role(rows, "is_start_point", other="is_end_point", candidates=range(len(rows)))
            self._default_role(rows, "is_end_point", other="is_start_point", candidates=range(len(rows) - 1, -1, -1))

        return [NormalizedStop(sequence=index, **row) for index, row in enumerate(rows)]

    @staticmethod
    def _split_double_role(rows: List[Dict[str, Any]]) -> None:
        for index, row in enumerate(rows):
            if row["is_start_point"] and row["is_end_point"]:
                logger.warning(f"Row {index + 1} is tagged both start and end; keeping it as the start")
                row["is_end_point"] = False

    @staticmethod
    def _drop_duplicate_role(rows: List[Dict[str, Any]], field: str) -> None:
        tagged = [i for i, row in enumerate(rows) if row[field]]
        for index in tagged[1:]:
            logger.warning(f"Row {index + 1} repeats {field}; treating it as an interior stop")
            rows[index][field] = False

    @staticmethod
    def _default_role(rows: List[Dict[str, Any]], field: str, other: str, candidates: Iterable[int]) -> None:
        """Give ``field`` to the first candidate not holding ``other``, unless a row already has it."""
        if any(row[field] for row in rows):
            return
        for index in candidates:
            if not rows[index][other]:
                rows[index][field] = True
                return


def read_csv_records(content: bytes) -> List[Dict[str, str]]:
    """Parse CSV bytes with a header row into trimmed records, skipping blank lines."""
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ValidationError("CSV file must be UTF-8 encoded") from e

    reader = csv.DictReader(io.StringIO(text), skipinitialspace=True)
    if not reader.fieldnames:
        raise ValidationError("CSV file does not contain any addresses")

    records = []
    for raw in reader:
        record = {
            (name or "").strip(): (value or "").strip() if isinstance(value, str) else ""
            for name, value in raw.items()
            if name is not None
        }
        if any(record.values()):
            records.append(record)

    if not records:
        raise ValidationError("CSV file does not contain any addresses")
    return records
