"""Structural comparison of expected and actual pipeline output.

The comparator walks mappings, ordered sequences and scalars and reports
every path where the two values disagree. Mapping key order is irrelevant;
sequence order is significant. DeepDiff does the walk; this module turns its
tree view into flat ``DiffEntry`` records keyed by path, which is what the
assertion report prints.
"""

import pprint
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from deepdiff import DeepDiff
from deepdiff.helper import notpresent
from deepdiff.model import DictRelationship, SetRelationship

from .errors import StructuralMismatch
from .logging_config import configure_logging

logger = configure_logging("export-isolation:comparator")

DEFAULT_FAILURE_MESSAGE = "Actual response doesn't equal expected data"


class _Missing:
    """Marks the side of a diff entry that has no value at the path."""

    def __repr__(self) -> str:
        return "<missing>"


MISSING = _Missing()


class DiffKind(str, Enum):
    MISSING = "missing"
    EXTRA = "extra"
    TYPE_MISMATCH = "type_mismatch"
    VALUE_MISMATCH = "value_mismatch"


# DeepDiff report type -> kind; expected is t1, actual is t2
_REPORT_KINDS: Dict[str, DiffKind] = {
    "values_changed": DiffKind.VALUE_MISMATCH,
    "type_changes": DiffKind.TYPE_MISMATCH,
    "dictionary_item_removed": DiffKind.MISSING,
    "iterable_item_removed": DiffKind.MISSING,
    "set_item_removed": DiffKind.MISSING,
    "attribute_removed": DiffKind.MISSING,
    "dictionary_item_added": DiffKind.EXTRA,
    "iterable_item_added": DiffKind.EXTRA,
    "set_item_added": DiffKind.EXTRA,
    "attribute_added": DiffKind.EXTRA,
}

Path = Tuple[Any, ...]


@dataclass(frozen=True)
class MappingKey:
    """A non-string mapping key in a path, kept apart from sequence indexes."""

    key: Any


def format_path(path: Path) -> str:
    """Render ``("items", 0, "sku")`` as ``items[0].sku``.

    Non-string mapping keys render in braces, so ``{1: "a"}`` reads ``{1}``
    and never collides with the sequence index ``[1]``.
    """
    if not path:
        return "<root>"
    rendered = ""
    for part in path:
        if isinstance(part, MappingKey):
            rendered += f"{{{part.key!r}}}"
        elif isinstance(part, int):
            rendered += f"[{part}]"
        elif rendered:
            rendered += f".{part}"
        else:
            rendered = str(part)
    return rendered


@dataclass(frozen=True)
class DiffEntry:
    path: Path
    kind: DiffKind
    expected: Any
    actual: Any

    def format(self) -> str:
        return f"{format_path(self.path)} ({self.kind.value}): expected {self.expected!r}, actual {self.actual!r}"


@dataclass
class ComparisonDiff:
    entries: List[DiffEntry] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[DiffEntry]:
        return iter(self.entries)

    @property
    def paths(self) -> List[Path]:
        return [entry.path for entry in self.entries]

    def get(self, path: Path) -> Optional[DiffEntry]:
        for entry in self.entries:
            if entry.path == path:
                return entry
        return None

    def format(self) -> str:
        return "\n".join(f"  {entry.format()}" for entry in self.entries)


def _side(value: Any) -> Any:
    return MISSING if value is notpresent else value


def _level_path(level) -> Path:
    """Path from the root to ``level``; set members stop at the set itself."""
    parts: List[Any] = []
    current = level.all_up
    while current is not None and current is not level:
        relationship = current.t1_child_rel or current.t2_child_rel
        if relationship is None or isinstance(relationship, SetRelationship):
            break
        part = relationship.param
        if isinstance(relationship, DictRelationship) and not isinstance(part, str):
            part = MappingKey(part)
        parts.append(part)
        current = current.down
    return tuple(parts)


class StructuralComparator:
    def compare(self, expected: Any, actual: Any) -> ComparisonDiff:
        tree = DeepDiff(
            expected,
            actual,
            ignore_order=False,
            threshold_to_diff_deeper=0,
            view="tree",
        )
        entries = []
        for report_type, levels in tree.items():
            kind = _REPORT_KINDS.get(report_type, DiffKind.VALUE_MISMATCH)
            for level in levels:
                entries.append(
                    DiffEntry(
                        path=_level_path(level),
                        kind=kind,
                        expected=_side(level.t1),
                        actual=_side(level.t2),
                    )
                )
        entries.sort(key=lambda entry: format_path(entry.path))
        return ComparisonDiff(entries)

    def assert_equal(self, expected: Any, actual: Any, message: Optional[str] = None) -> None:
        """Fail with the diff and the full actual value when the two values differ."""
        diff = self.compare(expected, actual)
        if not diff:
            return

        report = message or DEFAULT_FAILURE_MESSAGE
        report += "\n Diff:\n" + diff.format()
        report += "\n Actual:\n" + pprint.pformat(actual, width=100, sort_dicts=False)
        logger.debug("Structural mismatch", differences=len(diff))
        raise StructuralMismatch(report, diff=diff, actual=actual)
