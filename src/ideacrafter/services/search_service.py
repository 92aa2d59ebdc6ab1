"""Investor/startup web search with pluggable results providers.

``GoogleSearchProvider`` queries Google Custom Search when credentials are
configured; ``SyntheticSearchProvider`` produces plausible demo records and
is also the fallback whenever the real provider fails.
"""

from __future__ import annotations

from typing import List, Optional, Protocol
from urllib.parse import urlparse
import logging
import random

import requests

from ..config import Settings
from ..domain.search_models import SearchRequest, SearchResponse, SearchResult


logger = logging.getLogger("ideacrafter.search")

GOOGLE_CSE_URL = "https://www.googleapis.com/customsearch/v1"


def _specified(value: Optional[str]) -> Optional[str]:
    if value and value != "all":
        return value
    return None


def build_search_query(req: SearchRequest) -> str:
    if req.query and req.query.strip():
        return req.query.strip()
    industry = _specified(req.industry)
    location = _specified(req.location)
    if req.type == "investor":
        parts = ["venture capital investors"]
        suffix = "portfolio companies funding"
    else:
        parts = ["tech startups"]
        suffix = "funding series seed"
    if industry:
        parts.append(industry.replace("-", " "))
    if location:
        parts.append(location)
    parts.append(suffix)
    return " ".join(parts)


class ResultsProvider(Protocol):
    name: str

    def search(self, query: str, req: SearchRequest) -> List[SearchResult]: ...


class GoogleSearchProvider:
    name = "google"

    def __init__(self, api_key: str, cse_id: str, session: Optional[requests.Session] = None, timeout: float = 10.0) -> None:
        self.api_key = api_key
        self.cse_id = cse_id
        self._session = session or requests.Session()
        self._timeout = timeout

    def search(self, query: str, req: SearchRequest) -> List[SearchResult]:
        resp = self._session.get(
            GOOGLE_CSE_URL,
            params={"q": query, "cx": self.cse_id, "key": self.api_key, "num": "10"},
            timeout=self._timeout,
        )
        resp.raise_for_status()
        data = resp.json() or {}
        items = data.get("items") if isinstance(data.get("items"), list) else []
        industry = _specified(req.industry)
        location = _specified(req.location)
        results: List[SearchResult] = []
        for idx, item in enumerate(items):
            link = item.get("link") or ""
            domain = (urlparse(link).hostname or "").removeprefix("www.")
            results.append(
                SearchResult(
                    id=f"google-{idx}-{domain or 'result'}",
                    name=item.get("title") or "",
                    company=domain or item.get("displayLink") or "",
                    location=location,
                    industry=industry,
                    bio=item.get("snippet"),
                    website=link or None,
                    source="Google",
                    type="investor" if req.type == "investor" else "startup",
                )
            )
        return results


_INVESTOR_COMPANIES = [
    "Sequoia Capital", "Andreessen Horowitz", "First Round Capital", "Accel Partners",
    "Lightspeed Venture Partners", "Bessemer Venture Partners", "Index Ventures", "GGV Capital",
    "Kaszek Ventures", "Nordic Capital", "Balderton Capital", "General Catalyst",
    "Greylock Partners", "Kleiner Perkins", "NEA", "Insight Partners",
]
_STARTUP_NAMES = [
    "NeuralFlow AI", "HealthTech Solutions", "GreenEnergy Innovations", "FinTech Berlin",
    "EdTech India", "CleanTech Nordic", "RoboTech Japan", "AgriTech MENA",
    "RetailTech Solutions", "CyberSec Pro", "DataFlow Systems", "CloudOps Platform",
    "MedTech Innovations", "EcoSmart Solutions", "QuantumCompute", "BioAnalytics Pro",
]
_NAMES = [
    "Sarah Chen", "Michael Rodriguez", "Emily Watson", "James Thompson", "Priya Sharma",
    "Lars Andersen", "Chen Wei", "Maria Santos", "Robert Kim", "Sophie Laurent",
    "Alex Thompson", "Maria Garcia", "David Kim", "Sophie Mueller", "Raj Patel",
    "Emma Johnson", "Yuki Tanaka", "Ahmed Hassan", "Isabella Rodriguez", "Thomas Anderson",
]
_LOCATIONS = [
    "San Francisco, United States", "New York, United States", "London, United Kingdom",
    "Berlin, Germany", "Paris, France", "Stockholm, Sweden", "Amsterdam, Netherlands",
    "Singapore", "Hong Kong", "Tokyo, Japan", "Seoul, South Korea", "Sydney, Australia",
    "Toronto, Canada", "Tel Aviv, Israel", "Bangalore, India", "São Paulo, Brazil",
]
_INDUSTRIES = ["technology", "healthcare", "finance", "energy", "education", "retail"]
_SOURCES = ["Crunchbase", "PitchBook", "CB Insights", "TechCrunch", "AngelList", "LinkedIn"]

_INVESTOR_TITLES = ["Partner", "General Partner", "Principal", "Managing Partner", "Investment Director"]
_FOUNDER_TITLES = ["CEO & Founder", "Co-Founder & CTO", "Founder", "CEO", "Co-Founder & CEO"]
_INVESTOR_BACKGROUNDS = [
    "Former entrepreneur with two successful exits",
    "Ex-McKinsey consultant with 10+ years in venture capital",
    "Former Goldman Sachs MD with deep industry expertise",
    "PhD from Stanford with technical background",
    "Former Google executive with product expertise",
]
_FOUNDER_BACKGROUNDS = [
    "Former VP of Engineering at Salesforce",
    "Ex-Google product manager with deep technical expertise",
    "MIT PhD with research background",
    "Former Microsoft engineer",
    "Stanford MBA with consulting background",
]
_INVESTOR_FOCUS = {
    "technology": "AI and enterprise software",
    "healthcare": "digital health and biotech",
    "finance": "fintech and crypto",
    "energy": "cleantech and sustainability",
}
_STARTUP_FOCUS = {
    "technology": "AI-powered automation solutions",
    "healthcare": "digital health and diagnostics",
    "finance": "next-gen payment infrastructure",
    "energy": "sustainable energy solutions",
}


def _slug(text: str) -> str:
    return "".join(text.lower().split())


class SyntheticSearchProvider:
    """Pseudo-random demo records; pass a seeded ``random.Random`` for repeatable output."""

    name = "synthetic"

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    def search(self, query: str, req: SearchRequest) -> List[SearchResult]:
        rng = self._rng
        industry = _specified(req.industry)
        location = _specified(req.location)
        industries = [industry] if industry else _INDUSTRIES
        locations = [location] if location else _LOCATIONS
        logger.debug("generating synthetic results query=%s type=%s", query, req.type)

        results: List[SearchResult] = []
        for i in range(rng.randint(8, 15)):
            ind = rng.choice(industries)
            name = rng.choice(_NAMES)
            common = dict(
                name=name,
                location=rng.choice(locations),
                industry=ind,
                linkedin=f"https://linkedin.com/in/{_slug(name)}",
                source=rng.choice(_SOURCES),
            )
            if req.type == "investor":
                company = rng.choice(_INVESTOR_COMPANIES)
                title = rng.choice(_INVESTOR_TITLES)
                focus = _INVESTOR_FOCUS.get(ind, "early-stage companies")
                results.append(
                    SearchResult(
                        id=f"web-inv-{i + 1}",
                        company=company,
                        title=title,
                        bio=(
                            f"{title} at {company} focusing on {focus}. {rng.choice(_INVESTOR_BACKGROUNDS)}. "
                            "Active investor with strong track record of successful exits and portfolio company support."
                        ),
                        website=f"https://{_slug(company)}.com",
                        type="investor",
                        investment_range=rng.choice(["$500K - $5M", "$1M - $10M", "$2M - $20M", "$5M - $50M", "$10M - $100M"]),
                        portfolio_size=rng.randint(10, 89),
                        funding_stage=rng.choice(
                            ["Seed to Series A", "Series A to Series C", "Seed to Series B", "Pre-seed to Series A", "Series B to IPO"]
                        ),
                        funding_amount=rng.choice(["$50M", "$100M", "$250M", "$500M", "$1B", "$2B"]),
                        **common,
                    )
                )
            else:
                company = rng.choice(_STARTUP_NAMES)
                focus = _STARTUP_FOCUS.get(ind, "innovative technology solutions")
                results.append(
                    SearchResult(
                        id=f"web-start-{i + 1}",
                        company=company,
                        title=rng.choice(_FOUNDER_TITLES),
                        bio=(
                            f"Building {focus} at {company}. {rng.choice(_FOUNDER_BACKGROUNDS)}. "
                            "Backed by top-tier VCs with strong traction and growing customer base."
                        ),
                        website=f"https://{_slug(company)}.com",
                        type="startup",
                        funding_stage=rng.choice(["Pre-seed", "Seed", "Series A", "Series B", "Series C"]),
                        funding_amount=rng.choice(["$500K", "$1M", "$3M", "$5M", "$10M", "$15M", "$25M", "$50M"]),
                        employees=rng.choice(["5-10", "10-25", "25-50", "50-100", "100-250"]),
                        founded=rng.choice(["2020", "2021", "2022", "2023", "2024"]),
                        **common,
                    )
                )
        return results


class SearchService:
    def __init__(self, provider: ResultsProvider, fallback: Optional[ResultsProvider] = None) -> None:
        self.provider = provider
        self.fallback = fallback or SyntheticSearchProvider()

    def search(self, req: SearchRequest) -> SearchResponse:
        query = build_search_query(req)
        logger.info("web search query=%r provider=%s", query, self.provider.name)
        try:
            results = self.provider.search(query, req)
        except Exception as exc:
            if self.provider is self.fallback:
                raise
            logger.warning("search provider %s failed, using fallback results: %s", self.provider.name, exc)
            results = self.fallback.search(query, req)
        source = results[0].source if results else "web_search"
        return SearchResponse(success=True, results=results, query=query, source=source)


def build_search_service(settings: Settings) -> SearchService:
    synthetic = SyntheticSearchProvider()
    if settings.web_search_configured:
        return SearchService(GoogleSearchProvider(settings.google_api_key, settings.google_cse_id), fallback=synthetic)
    return SearchService(synthetic, fallback=synthetic)
