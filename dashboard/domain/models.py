from typing import Any, List, Optional, Tuple, Union
from enum import Enum
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from dashboard.core.constants import STATE_DOWN


NodeId = Union[int, str]


class InvalidNodeId(ValueError):
    """Raised when a value cannot be read as a node id."""
    pass


def normalize_node_id(value: Any) -> int:
    """
    Normalize a node id to its integer form.

    Accepts ints and decimal strings ("3", " 3 "). Booleans, floats and
    anything else are rejected rather than coerced.
    """
    if isinstance(value, bool):
        raise InvalidNodeId(f"Node id must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip(), 10)
        except ValueError:
            raise InvalidNodeId(f"Node id must be an integer, got {value!r}") from None
    raise InvalidNodeId(f"Node id must be an integer, got {value!r}")


class NodeStatus(str, Enum):
    """Per-node sync state as seen by the dashboard."""
    UNKNOWN = "unknown"
    SYNCING = "syncing"
    KNOWN = "known"
    UNREACHABLE = "unreachable"


class ClusterNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int

    @field_validator("id", mode="before")
    @classmethod
    def _normalize_id(cls, v: Any) -> int:
        return normalize_node_id(v)


class ClusterInfo(BaseModel):
    """Cluster topology. Resolved once per process."""
    model_config = ConfigDict(frozen=True)

    nodes: List[ClusterNode] = Field(default_factory=list)

    @field_validator("nodes", mode="before")
    @classmethod
    def _null_nodes(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def node_ids(self) -> List[int]:
        return [node.id for node in self.nodes]


class EventData(BaseModel):
    """A term-numbered, timestamped event emitted by one node."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    node: int = Field(validation_alias=AliasChoices("node", "nodeId"))
    event: str
    term: int
    time: str

    @field_validator("node", mode="before")
    @classmethod
    def _normalize_node(cls, v: Any) -> int:
        return normalize_node_id(v)


class NodeData(BaseModel):
    """
    State report of one node.

    Only `state == "down"` and `blacklist` carry meaning for the store;
    the other reported fields are kept for display. Unknown keys are kept
    as extras so equality reflects the whole payload. Reports are frozen;
    a changed report is a new object committed through the store.
    """
    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    id: int
    state: str = ""
    blacklist: Tuple[int, ...] = ()
    events: Tuple[EventData, ...] = ()

    leader: Optional[int] = None
    voted_for: Optional[int] = Field(default=None, validation_alias=AliasChoices("votedFor", "voted_for"))
    current_term: Optional[int] = Field(default=None, validation_alias=AliasChoices("currentTerm", "current_term"))
    process: Optional[str] = None

    @field_validator("id", "leader", "voted_for", mode="before")
    @classmethod
    def _normalize_ids(cls, v: Any) -> Optional[int]:
        if v is None:
            return None
        return normalize_node_id(v)

    @field_validator("blacklist", mode="before")
    @classmethod
    def _normalize_blacklist(cls, v: Any) -> Tuple[int, ...]:
        if v is None:
            return ()
        return tuple(normalize_node_id(item) for item in v)

    @field_validator("events", mode="before")
    @classmethod
    def _null_events(cls, v: Any) -> Any:
        return () if v is None else v

    @property
    def is_down(self) -> bool:
        return self.state == STATE_DOWN


class Signature(BaseModel):
    """Opaque record from the signature feed."""
    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    instance_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("InstanceId", "instance_id"))
    node_id: Optional[Union[int, str]] = Field(default=None, validation_alias=AliasChoices("nodeId", "node_id"))
    signature_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("signatureId", "signature_id"))
    signed_at: Optional[str] = Field(default=None, validation_alias=AliasChoices("signedAt", "signed_at"))
