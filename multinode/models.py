"""
Data classes and type definitions for the multi-node SQL consistency harness
"""

from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional, Tuple, Iterator

@dataclass(frozen=True)
class SyntheticDocument:
    """Test document derived from its row index"""
    doc_id: int
    a: int
    b: int
    c: int

    @classmethod
    def for_row(cls, i: int) -> "SyntheticDocument":
        a = 3 * i
        b = a + 1
        c = b + 1
        return cls(doc_id=i, a=a, b=b, c=c)

    def to_source(self) -> Dict[str, int]:
        return {"a": self.a, "b": self.b, "c": self.c}

@dataclass(frozen=True)
class NodeInfo:
    """One node of the cluster topology"""
    node_id: str
    name: str
    bound_addresses: Tuple[str, ...] = ()

@dataclass(frozen=True)
class TopologySnapshot:
    """Nodes in the order the cluster reported them"""
    nodes: Tuple[NodeInfo, ...]

    def __iter__(self) -> Iterator[NodeInfo]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def addresses(self) -> Dict[str, List[str]]:
        return {node.node_id: list(node.bound_addresses) for node in self.nodes}

class _Absent:
    """Marks a column field the response did not carry at all"""

    def __repr__(self) -> str:
        return "ABSENT"

ABSENT: Any = _Absent()

@dataclass(frozen=True)
class ColumnInfo:
    """SQL column descriptor; JDBC fields are only present in jdbc mode.

    A field left at ABSENT is omitted from to_dict(), while an explicit None
    is kept, so a response carrying "jdbc_type": null never passes for one
    without the key.
    """
    name: str
    type: str
    jdbc_type: Any = ABSENT
    display_size: Any = ABSENT

    def to_dict(self) -> Dict[str, Any]:
        column = {"name": self.name, "type": self.type}
        if self.jdbc_type is not ABSENT:
            column["jdbc_type"] = self.jdbc_type
        if self.display_size is not ABSENT:
            column["display_size"] = self.display_size
        return column

@dataclass(frozen=True)
class SqlResult:
    """Columns and rows of a SQL response"""
    columns: Tuple[ColumnInfo, ...]
    rows: Tuple[Tuple[Any, ...], ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "columns": [column.to_dict() for column in self.columns],
            "rows": [list(row) for row in self.rows]
        }

@dataclass
class VerificationResult:
    """Outcome of one scenario run"""
    scenario: str
    entry_points: List[str]
    mode: Optional[str]
    document_count: int
    expected: Optional[Dict[str, Any]] = None
    actual: Optional[Dict[str, Any]] = None
    mismatch: Optional[str] = None
    error: Optional[str] = None
    execution_time: float = 0.0
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return self.mismatch is None and self.error is None
