# Search Models
"""Pydantic models for the water / landing-site search."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SearchSource(str, Enum):
    """Table a search hit came from."""

    WATER = "vass_vann"
    LANDING_SITE = "vass_lasteplass"

    @property
    def type_tag(self) -> str:
        return "water" if self is SearchSource.WATER else "landingsplass"

    @property
    def color(self) -> str:
        return "red" if self is SearchSource.WATER else "blue"


class SearchResult(BaseModel):
    """A matched row tagged with its source; the row's own columns ride along."""

    model_config = ConfigDict(extra="allow")

    id: Optional[int] = Field(default=None, description="Row id in its source table")
    source: SearchSource = Field(..., description="Source table")
    type: str = Field(..., description="water | landingsplass")
    displayName: str = Field(default="", description="Name shown in the result list")
    color: str = Field(..., description="Marker color for the source")

    @classmethod
    def from_row(cls, row: Dict[str, Any], source: SearchSource) -> "SearchResult":
        if source is SearchSource.WATER:
            display_name = row.get("name") or row.get("vannavn")
        else:
            display_name = row.get("kode") or row.get("lp")

        return cls(
            **{
                **row,
                "source": source,
                "type": source.type_tag,
                "displayName": str(display_name or ""),
                "color": source.color,
            }
        )


class SearchResponse(BaseModel):
    """Search response: first page of hits plus the untruncated count."""

    results: List[SearchResult] = Field(default_factory=list)
    total: int = Field(default=0, description="Number of hits before truncation")
