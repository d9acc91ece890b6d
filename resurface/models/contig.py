"""Contiguous range of comment creation times that is downloaded or being downloaded."""

from pydantic import BaseModel, Field


class Contig(BaseModel):
    """Claimed range ``[first_created, last_created]`` of comment timestamps."""

    first_created: int = Field(..., description="Inclusive lower bound (EARLIEST for the start of the thread)")
    last_created: int | None = Field(
        default=None,
        description="Inclusive upper bound downloaded so far; None until the first page arrives",
    )
    loaded_all_comments: bool = False
