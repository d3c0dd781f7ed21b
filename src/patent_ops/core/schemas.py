"""
Declared shapes for caller input and for the records returned by the client.

All models are strict (no type coercion), reject unknown fields and are
frozen, so a record that reaches the caller is exactly the declared shape.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

PatentKind = Literal["application", "priority", "publication"]
NumberFormat = Literal["docdb", "epodoc"]
Constituent = Literal["biblio", "full-cycle", "abstract"]
ClassificationDepth = Literal["0", "1", "2", "3", "all"]


class StrictRecord(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid", frozen=True, populate_by_name=True)


# === Caller input ===


class PatentReferenceSchema(StrictRecord):
    kind: PatentKind
    format: NumberFormat
    number: str = Field(min_length=1)


class SearchOptionsSchema(StrictRecord):
    range: Optional[str] = None
    constituent: Optional[Constituent] = None


class ClassificationOptionsSchema(StrictRecord):
    ancestors: Optional[bool] = None
    navigation: Optional[bool] = None
    depth: Optional[ClassificationDepth] = None


class SearchQuerySchema(StrictRecord):
    query: str = Field(min_length=1)


class ClassificationSymbolSchema(StrictRecord):
    symbol: str = Field(min_length=1)


class NumberConversionRequestSchema(StrictRecord):
    kind: PatentKind
    source_format: NumberFormat
    number: str = Field(min_length=1)
    target_format: NumberFormat


# === Domain records ===


class BibliographicData(StrictRecord):
    title: str
    abstract: str
    inventors: List[str]
    applicants: List[str]
    publication_date: str
    application_date: str
    priority_date: str
    classification: List[str]


class Claims(StrictRecord):
    independent: List[str]
    dependent: List[str]


class FamilyMember(StrictRecord):
    publication_number: str
    publication_date: str
    title: str
    abstract: str
    country: str
    kind: str


class LegalStatus(StrictRecord):
    status: str
    date: str
    description: str
    country: str


class SearchResult(StrictRecord):
    id: str
    title: str
    abstract: str
    publication_date: str


class SearchData(StrictRecord):
    query: str
    total: int = Field(ge=0)
    results: List[SearchResult]


class SearchResponse(StrictRecord):
    status: int
    data: SearchData


class ClassificationNode(StrictRecord):
    code: str
    title: str
    description: str


class ClassificationData(StrictRecord):
    class_: str = Field(alias="class")
    title: str
    description: str
    subclasses: List[ClassificationNode]


class ClassificationResponse(StrictRecord):
    status: int
    data: ClassificationData


class NumberInput(StrictRecord):
    type: str
    format: str
    number: str


class NumberOutput(StrictRecord):
    format: str
    number: str


class NumberConversion(StrictRecord):
    input: NumberInput
    output: NumberOutput


class NumberConversionResponse(StrictRecord):
    status: int
    data: NumberConversion


FamilyMemberList = TypeAdapter(List[FamilyMember])
LegalStatusList = TypeAdapter(List[LegalStatus])
