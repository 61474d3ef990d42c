"""Segment models produced by the content segmenter."""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class ProseSegment(BaseModel):
    """A run of free-form text, to be shown as plain text."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["prose"] = "prose"
    text: str


class TableSegment(BaseModel):
    """A parsed pipe table.

    Body rows are kept exactly as parsed and may be shorter or longer
    than the header.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["table"] = "table"
    header: list[str]
    rows: list[list[str]] = Field(default_factory=list)

    @property
    def column_count(self) -> int:
        return len(self.header)


Segment = Annotated[ProseSegment | TableSegment, Field(discriminator="kind")]
