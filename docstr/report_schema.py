"""
JSON-отчёт `docstr expand --format json`.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .diagnostics import Diagnostic


class DiagnosticM(BaseModel):
    model_config = ConfigDict(extra="forbid")

    message: str
    # 0 - место вызова макроса
    line: int
    column: int

    @classmethod
    def from_diagnostic(cls, diagnostic: Diagnostic) -> "DiagnosticM":
        return cls(message=diagnostic.message, line=diagnostic.span.line, column=diagnostic.span.column)


class ExpansionReport(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ok: bool
    output: Optional[str] = Field(
        None, description="Текст после раскрытия; null, если есть диагностики."
    )
    diagnostics: List[DiagnosticM] = Field(default_factory=list)
    version: str


__all__ = ["DiagnosticM", "ExpansionReport"]
