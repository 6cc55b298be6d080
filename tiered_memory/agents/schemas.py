"""
Tool argument and result models.
"""

from pydantic import BaseModel, field_validator
from typing import Any, Optional


class SearchPastIssuesRequest(BaseModel):
    error_description: str

    @field_validator('error_description')
    @classmethod
    def description_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('error_description cannot be empty')
        return v


class SaveExperienceRequest(BaseModel):
    error_pattern: str
    root_cause: str
    solution: str

    @field_validator('error_pattern', 'root_cause', 'solution')
    @classmethod
    def field_must_not_be_empty(cls, v, info):
        if not v.strip():
            raise ValueError(f'{info.field_name} cannot be empty')
        return v


class PastIssue(BaseModel):
    id: Optional[int] = None
    pattern: str
    cause: str
    solution: str
    # Percentage string, e.g. "87.50%"
    similarity: str


class ToolResult(BaseModel):
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
