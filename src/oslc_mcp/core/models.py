from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ServiceProviderRef(BaseModel):
    title: Optional[str] = None
    url: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


# --- Query ---


class QuerySpec(BaseModel):
    """
    Declarative OSLC query parameters.
    page_size == 0 requests the unpaged result; empty clauses are omitted.
    """

    capability_uri: str
    page_size: int = Field(default=0, ge=0)
    select: Optional[str] = None
    where: Optional[str] = None
    order_by: Optional[str] = None
    search_terms: Optional[str] = None
    prefix: Optional[str] = None

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("page_size", mode="before")
    @classmethod
    def _none_page_size(cls, value: Any) -> Any:
        return 0 if value is None else value


# --- Dialogs ---


class DialogDescriptor(BaseModel):
    """Where and how large to render a provider dialog."""

    url: str
    width: Optional[int] = None
    height: Optional[int] = None
    title: Optional[str] = None
    label: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("width", "height", mode="before")
    @classmethod
    def _strip_px(cls, value: Any) -> Any:
        # oslc:hintWidth / hintHeight are CSS lengths such as "600px"
        if isinstance(value, str):
            value = value.strip().lower().removesuffix("px").strip()
            if not value:
                return None
            try:
                return int(float(value))
            except ValueError:
                return None
        return value


class DialogResponse(BaseModel):
    """
    JSON body of an `oslc-response:` message.
    Core 2.0 dialogs post `oslc:results`; some providers use bare `results`.
    """

    results: List[Any] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def from_payload(cls, payload: Any) -> "DialogResponse":
        if not isinstance(payload, dict):
            return cls()
        if "oslc:results" in payload:
            results = payload["oslc:results"]
        else:
            results = payload.get("results")
        return cls.model_validate({"results": results or []})


__all__ = [
    "ServiceProviderRef",
    "QuerySpec",
    "DialogDescriptor",
    "DialogResponse",
]
