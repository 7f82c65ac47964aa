"""Key-based record matching.

Records on each side are identified by a composite key string built from the
key columns. Keys are compared exactly and case-sensitively. Keys that occur
more than once on either side are reported and left out of the join, then
both sides are sorted by key and merge-joined.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from rapidfuzz import process

from ..entities.findings import PresenceKind, RecordPresenceDifference, Severity, Side
from ..entities.snapshot import normalize_name
from ..entities.typed_value import describe
from ..errors import ConfigurationError, DuplicateKeyError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from ..entities.snapshot import DatasetSnapshot, Record
    from ..entities.typed_value import TypedValue

KEY_SEPARATOR = "\x1f"
SUGGESTION_CUTOFF = 70


@dataclass(frozen=True, slots=True)
class KeyedRecord:
    key: str
    label: str
    key_values: Mapping[str, TypedValue]
    record: Record
    position: int


@dataclass(frozen=True, slots=True)
class RecordPair:
    key: str
    label: str
    key_values: Mapping[str, TypedValue]
    left: Record
    right: Record


def _empty_pairs() -> tuple[RecordPair, ...]:
    return ()


def _empty_findings() -> tuple[RecordPresenceDifference, ...]:
    return ()


@dataclass(frozen=True, slots=True)
class MatchResult:
    pairs: tuple[RecordPair, ...] = field(default_factory=_empty_pairs)
    findings: tuple[RecordPresenceDifference, ...] = field(
        default_factory=_empty_findings
    )
    duplicate_keys: frozenset[str] = frozenset()

    @property
    def left_only(self) -> list[RecordPresenceDifference]:
        return [f for f in self.findings if f.kind is PresenceKind.LEFT_ONLY]

    @property
    def right_only(self) -> list[RecordPresenceDifference]:
        return [f for f in self.findings if f.kind is PresenceKind.RIGHT_ONLY]

    @property
    def duplicates(self) -> list[RecordPresenceDifference]:
        return [f for f in self.findings if f.kind is PresenceKind.DUPLICATE_KEY]


def validate_key(
    left: DatasetSnapshot, right: DatasetSnapshot, key: Sequence[str]
) -> None:
    if not key:
        raise ConfigurationError("Key tuple must name at least one column")
    seen: set[str] = set()
    for name in key:
        if not name or not name.strip():
            raise ConfigurationError("Key tuple contains an empty column name")
        normalized = normalize_name(name)
        if normalized in seen:
            raise ConfigurationError(f"Key tuple repeats column {name}")
        seen.add(normalized)
        for snapshot in (left, right):
            if not snapshot.has_column(name):
                raise ConfigurationError(
                    f"Key column {name} is absent from {snapshot.name}"
                    + _suggestion(name, snapshot.column_names)
                )


def _suggestion(name: str, candidates: list[str]) -> str:
    if not candidates:
        return ""
    match = process.extractOne(
        name.upper(),
        {c: c.upper() for c in candidates},
        score_cutoff=SUGGESTION_CUTOFF,
    )
    if match is None:
        return ""
    return f" (did you mean {match[2]}?)"


def encode_component(value: TypedValue) -> str:
    text = value.render()
    return f"{value.tag}{len(text)}:{text}"


def composite_key(
    snapshot: DatasetSnapshot, record: Record, key: Sequence[str]
) -> str:
    return KEY_SEPARATOR.join(
        encode_component(snapshot.value(record, name)) for name in key
    )


def key_label(key_values: Mapping[str, TypedValue]) -> str:
    return ", ".join(f"{name}={describe(value)}" for name, value in key_values.items())


def index_records(
    snapshot: DatasetSnapshot, key: Sequence[str], *, strict: bool = False
) -> tuple[dict[str, KeyedRecord], dict[str, list[KeyedRecord]]]:
    groups: dict[str, list[KeyedRecord]] = {}
    for position, record in enumerate(snapshot.records):
        key_values = MappingProxyType(
            {name: snapshot.value(record, name) for name in key}
        )
        keyed = KeyedRecord(
            key=composite_key(snapshot, record, key),
            label=key_label(key_values),
            key_values=key_values,
            record=record,
            position=position,
        )
        groups.setdefault(keyed.key, []).append(keyed)
    unique = {k: members[0] for k, members in groups.items() if len(members) == 1}
    duplicates = {k: members for k, members in groups.items() if len(members) > 1}
    if strict and duplicates:
        labels = sorted(members[0].label for members in duplicates.values())
        raise DuplicateKeyError(
            f"{snapshot.name} has {len(duplicates)} non-unique key(s): {'; '.join(labels)}"
        )
    return unique, duplicates


def _duplicate_findings(
    duplicates: dict[str, list[KeyedRecord]], side: Side, object_name: str
) -> list[RecordPresenceDifference]:
    findings: list[RecordPresenceDifference] = []
    for key in sorted(duplicates):
        members = duplicates[key]
        for occurrence, keyed in enumerate(members, start=1):
            findings.append(
                RecordPresenceDifference(
                    object_name=object_name,
                    key=keyed.label,
                    kind=PresenceKind.DUPLICATE_KEY,
                    side=side,
                    severity=Severity.FAIL,
                    reason=f"non-unique key ({len(members)} {side} records share it)",
                    key_values=keyed.key_values,
                    occurrence=occurrence,
                )
            )
    return findings


def _displaced_findings(
    duplicates: dict[str, list[KeyedRecord]],
    unique: dict[str, KeyedRecord],
    side: Side,
    object_name: str,
) -> list[RecordPresenceDifference]:
    """Report unique records whose key is duplicated on the other side."""
    return [
        RecordPresenceDifference(
            object_name=object_name,
            key=unique[key].label,
            kind=PresenceKind.DUPLICATE_KEY,
            side=side,
            severity=Severity.FAIL,
            reason="key is non-unique on the other side",
            key_values=unique[key].key_values,
        )
        for key in sorted(duplicates)
        if key in unique
    ]


def _presence_finding(
    keyed: KeyedRecord, side: Side, object_name: str
) -> RecordPresenceDifference:
    kind = PresenceKind.LEFT_ONLY if side is Side.LEFT else PresenceKind.RIGHT_ONLY
    return RecordPresenceDifference(
        object_name=object_name,
        key=keyed.label,
        kind=kind,
        side=side,
        severity=Severity.FAIL,
        reason=f"record present only on the {side} side",
        key_values=keyed.key_values,
    )


def match_records(
    left: DatasetSnapshot,
    right: DatasetSnapshot,
    key: Sequence[str],
    *,
    object_name: str,
) -> MatchResult:
    validate_key(left, right, key)
    left_unique, left_duplicates = index_records(left, key)
    right_unique, right_duplicates = index_records(right, key)

    findings: list[RecordPresenceDifference] = []
    findings.extend(_duplicate_findings(left_duplicates, Side.LEFT, object_name))
    findings.extend(_duplicate_findings(right_duplicates, Side.RIGHT, object_name))
    findings.extend(
        _displaced_findings(right_duplicates, left_unique, Side.LEFT, object_name)
    )
    findings.extend(
        _displaced_findings(left_duplicates, right_unique, Side.RIGHT, object_name)
    )

    # Keys duplicated on either side take no part in the join on both sides.
    excluded = set(left_duplicates) | set(right_duplicates)
    left_keys = sorted(k for k in left_unique if k not in excluded)
    right_keys = sorted(k for k in right_unique if k not in excluded)

    pairs: list[RecordPair] = []
    i = j = 0
    while i < len(left_keys) and j < len(right_keys):
        left_key = left_keys[i]
        right_key = right_keys[j]
        if left_key == right_key:
            left_rec = left_unique[left_key]
            pairs.append(
                RecordPair(
                    key=left_key,
                    label=left_rec.label,
                    key_values=left_rec.key_values,
                    left=left_rec.record,
                    right=right_unique[right_key].record,
                )
            )
            i += 1
            j += 1
        elif left_key < right_key:
            findings.append(_presence_finding(left_unique[left_key], Side.LEFT, object_name))
            i += 1
        else:
            findings.append(
                _presence_finding(right_unique[right_key], Side.RIGHT, object_name)
            )
            j += 1
    for left_key in left_keys[i:]:
        findings.append(_presence_finding(left_unique[left_key], Side.LEFT, object_name))
    for right_key in right_keys[j:]:
        findings.append(_presence_finding(right_unique[right_key], Side.RIGHT, object_name))

    return MatchResult(
        pairs=tuple(pairs),
        findings=tuple(findings),
        duplicate_keys=frozenset(excluded),
    )
