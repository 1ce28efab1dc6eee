"""
Test Run Models

Defines Pydantic models for load-test runs and the filters used to look
them up.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Test(BaseModel):
    """
    A single load-test run.

    ``id`` alone is not unique: runs replayed after retention cleanup reuse
    identifiers, so a run is addressed by ``(id, ts)``.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(0, alias="Id", description="Test run identifier")
    ts: datetime = Field(..., alias="Ts", description="Test start time")
    name: str = Field("", alias="Name", description="Test name")
    params: str = Field("", alias="Params", description="Test parameters")


class TestFilter(BaseModel):
    """Filter for listing tests (epoch seconds, 0 = unbounded)."""

    model_config = ConfigDict(populate_by_name=True)

    from_: int = Field(0, alias="from", description="Tests started at or after")
    until: int = Field(0, description="Tests started before")
    name: str = Field("", alias="name_prefix", description="Name filter (LIKE format)")


class TestIdFilter(BaseModel):
    """Exact test lookup by identifier and start time."""

    id: int = Field(..., description="Test run identifier")
    time: int = Field(..., description="Test start time (epoch nanoseconds)")
