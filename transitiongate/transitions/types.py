from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Transition(BaseModel):
    """
    A workflow transition Jira advertises as legal for an issue.
    """
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    name: Optional[str] = None
    destination_status_name: Optional[str] = None
    is_global: bool = False

    @classmethod
    def from_jira(cls, raw: Dict[str, Any]) -> "Transition":
        destination = raw.get("to") or {}
        return cls(
            id=str(raw["id"]) if raw.get("id") is not None else None,
            name=raw.get("name"),
            destination_status_name=destination.get("name") if isinstance(destination, dict) else None,
            is_global=bool(raw.get("isGlobal", False)),
        )

    def describe(self) -> str:
        destination = self.destination_status_name or "unknown"
        return f"{{ id: {self.id}, name: {self.name} }} transitions issue to '{destination}' status."


class Outcome(BaseModel):
    """
    Result record for one successfully processed issue.
    Serialized with the keys downstream workflow steps already consume.
    """
    model_config = ConfigDict(populate_by_name=True)

    item_key: str = Field(alias="issue")
    available_transition_names: List[str] = Field(default_factory=list, alias="names")
    available_transition_ids: List[str] = Field(default_factory=list, alias="ids")
    status_after: Optional[str] = Field(default=None, alias="status")
    status_before: Optional[str] = Field(default=None, alias="beforestatus")


class BatchReport(BaseModel):
    succeeded: int = 0
    failed: int = 0
    # Completion order, not input order.
    outcomes: List[Outcome] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        # One success is enough; partial failures are reported via `failed`.
        return self.succeeded > 0

    def outcomes_json(self) -> List[Dict[str, Any]]:
        return [outcome.model_dump(mode="json", by_alias=True) for outcome in self.outcomes]
