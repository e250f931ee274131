# -*- coding: utf-8 -*-
"""Analysis result data model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ComponentStat:
    """Number of detected components in one category."""

    category: str
    count: int

    def to_dict(self) -> dict[str, Any]:
        return {"category": self.category, "count": self.count}


@dataclass
class AnalysisResult:
    """Structured result returned by the PCB analysis service."""

    markdown_report: str
    component_stats: list[ComponentStat] = field(default_factory=list)
    raw_response: str = ""
    model_used: str = ""

    @property
    def total_components(self) -> int:
        return sum(stat.count for stat in self.component_stats)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the wire shape used by the service."""
        return {
            "markdownReport": self.markdown_report,
            "componentStats": [stat.to_dict() for stat in self.component_stats],
        }
