"""
Pydantic schemas for request/response validation.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Problem Schemas
# =============================================================================

class ProblemSchema(BaseModel):
    name: str
    link: str = ""
    topic: str = "Uncategorized"
    difficulty: str = "Medium"
    source: str = ""

    model_config = ConfigDict(from_attributes=True)


class ProblemListResponse(BaseModel):
    problems: List[ProblemSchema]
    summary: Dict[str, Dict[str, int]]
    skipped_rows: int = 0
    errors: List[str] = []


class SheetUrl(BaseModel):
    url: str = Field(..., min_length=1)
    name: Optional[str] = None


class ImportUrlsRequest(BaseModel):
    urls: List[SheetUrl] = Field(..., min_length=1)


# =============================================================================
# Classification Schemas
# =============================================================================

class AnalyzeBatchRequest(BaseModel):
    problems: List[ProblemSchema] = Field(..., max_length=25)
    api_key: Optional[str] = Field(default=None, alias="apiKey")

    model_config = ConfigDict(populate_by_name=True)


class AnalyzeBatchResponse(BaseModel):
    problems: List[ProblemSchema]


class AnalyzeRequest(BaseModel):
    problems: List[ProblemSchema]
    batch_size: Optional[int] = Field(default=None, ge=1, le=25, alias="batchSize")
    api_key: Optional[str] = Field(default=None, alias="apiKey")

    model_config = ConfigDict(populate_by_name=True)


class BatchFailureResponse(BaseModel):
    batch_number: int
    start: int
    size: int
    error: str

    model_config = ConfigDict(from_attributes=True)


class AnalyzeResponse(BaseModel):
    problems: List[ProblemSchema]
    summary: Dict[str, Dict[str, int]]
    failed_batches: List[BatchFailureResponse]
    total_batches: int
    partial: bool


# =============================================================================
# Schedule Schemas
# =============================================================================

class ScheduledProblemSchema(BaseModel):
    name: str
    link: str = ""
    topic: str
    difficulty: str
    source: str = ""
    completed: bool = False

    model_config = ConfigDict(from_attributes=True)


class ScheduleDaySchema(BaseModel):
    day: int = Field(..., ge=1)
    topic: str
    problems: List[ScheduledProblemSchema]

    model_config = ConfigDict(from_attributes=True)


class GenerateScheduleRequest(BaseModel):
    topic_days: Dict[str, Any] = Field(default_factory=dict, alias="topicDays")
    topic_order: Dict[str, Any] = Field(default_factory=dict, alias="topicOrder")
    problems: List[ProblemSchema]
    user_id: str = Field(..., min_length=1, alias="userId")

    model_config = ConfigDict(populate_by_name=True)


class GenerateScheduleResponse(BaseModel):
    message: str
    schedule: List[ScheduleDaySchema]
    record_id: Optional[int] = None
    saved: bool
    error: Optional[str] = None


class ScheduleResponse(BaseModel):
    schedule: Optional[List[ScheduleDaySchema]]


# =============================================================================
# Progress Schemas
# =============================================================================

class ProgressUpdate(BaseModel):
    user_id: str = Field(..., min_length=1, alias="userId")
    day_index: int = Field(..., alias="dayIndex")
    problem_index: int = Field(..., alias="problemIndex")
    completed: bool

    model_config = ConfigDict(populate_by_name=True)


class ProgressResponse(BaseModel):
    success: bool
