from __future__ import annotations

from typing import List, Optional, Literal

from pydantic import BaseModel, ConfigDict, Field


SearchType = Literal["investor", "startup"]


class SearchRequest(BaseModel):
    query: Optional[str] = None
    type: SearchType = "startup"
    industry: Optional[str] = None
    location: Optional[str] = None


class SearchResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    company: str
    title: Optional[str] = None
    location: Optional[str] = None
    industry: Optional[str] = None
    bio: Optional[str] = None
    website: Optional[str] = None
    linkedin: Optional[str] = None
    source: str
    type: SearchType
    investment_range: Optional[str] = Field(default=None, alias="investmentRange")
    portfolio_size: Optional[int] = Field(default=None, alias="portfolioSize")
    funding_stage: Optional[str] = Field(default=None, alias="fundingStage")
    funding_amount: Optional[str] = Field(default=None, alias="fundingAmount")
    employees: Optional[str] = None
    founded: Optional[str] = None


class SearchResponse(BaseModel):
    success: bool = True
    results: List[SearchResult] = Field(default_factory=list)
    query: str
    source: str
