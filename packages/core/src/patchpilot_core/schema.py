"""Strict schema for the completion service's review output."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr

# Hard ceiling enforced at validation time. The configured review.maxComments
# is applied afterwards by truncation; exceeding this one is a schema failure.
SCHEMA_MAX_COMMENTS = 100


class _ReviewModel(BaseModel):
    # Unknown keys are dropped; field types are strict (no "2" -> 2 coercion).
    model_config = ConfigDict(extra="ignore", frozen=True)


class ProposedComment(_ReviewModel):
    path: StrictStr
    # Any JSON number; a non-integral ordinal is simply not anchorable.
    line: StrictInt | StrictFloat | None = None  # 1-based index among *added* lines in the file's diff
    start_line: StrictInt | StrictFloat | None = None  # accepted but unused
    body: StrictStr
    suggestion: StrictStr | None = None  # plain replacement code, no fences


class GeneratedTest(_ReviewModel):
    path: StrictStr
    content: StrictStr


class GeneratedDoc(_ReviewModel):
    path: StrictStr
    content: StrictStr
    append: StrictBool | None = None


class ReviewOutput(_ReviewModel):
    comments: list[ProposedComment] = Field(max_length=SCHEMA_MAX_COMMENTS)
    tests: list[GeneratedTest]
    docs: list[GeneratedDoc]


SCHEMA_HINT = (
    '{ "comments":[{"path":string,"line"?:number,"start_line"?:number,"body":string,"suggestion"?:string}], '
    '"tests":[{"path":string,"content":string}], '
    '"docs":[{"path":string,"content":string,"append"?:boolean}] }'
)
