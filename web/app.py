"""
FastAPI application exposing the match engine.

Endpoints take already-fetched rows in the request body and return counts,
matched ids and notification audiences. No datastore access happens here.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Union

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from core import (
    CriteriaMatcher,
    InvalidInput,
    ListingRecord,
    MatchCounter,
    MatchResult,
    Perspective,
    SOURCE_AGENT,
    SOURCE_CLIENT_NEED,
    SOURCE_HOT_SHEET,
    collect_recipients,
    match_agents,
    parse_agent_preference,
    parse_criteria,
    parse_listing,
)
from core.forms import parse_many
from utils.config import Config
from utils.formatting import format_currency, format_match_count, format_remainder

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


# =============================================================================
# Request Models
# =============================================================================


class HotSheetMatchRequest(BaseModel):
    """Saved search criteria plus the candidate listings to test."""
    criteria: Dict[str, Any]
    listings: List[Dict[str, Any]] = Field(default_factory=list)
    sent_listing_ids: List[Union[str, int]] = Field(default_factory=list)


class ReverseProspectRequest(BaseModel):
    """A listing plus the buyer needs to test it against."""
    listing: Dict[str, Any]
    needs: List[Dict[str, Any]] = Field(default_factory=list)


class MatchingBuyersRequest(BaseModel):
    """A new listing plus buyer needs and active hot sheets."""
    listing: Dict[str, Any]
    needs: List[Dict[str, Any]] = Field(default_factory=list)
    hot_sheets: List[Dict[str, Any]] = Field(default_factory=list)


class MatchingAgentsRequest(BaseModel):
    """A buyer need plus the agents' notification preferences."""
    need: Dict[str, Any]
    agents: List[Dict[str, Any]] = Field(default_factory=list)


class ExplainRequest(BaseModel):
    """One listing and one criteria record to compare."""
    listing: Dict[str, Any]
    criteria: Dict[str, Any]
    perspective: Perspective = Perspective.HOT_SHEET


# =============================================================================
# Helpers
# =============================================================================


def _parse_rows(rows: List[Dict[str, Any]], parser: Callable, policy: str):
    """
    Parse candidate rows under the configured invalid-record policy.

    Returns:
        (records, rejected) where rejected holds JSON-ready failures

    Raises:
        InvalidInput: for the first bad row when the policy is "raise"
    """
    records, failures = parse_many(rows, parser)
    if failures and policy == "raise":
        raise failures[0]
    for failure in failures:
        logger.warning("Rejected row %s: %s", failure.record_id, failure)
    rejected = [{"id": failure.record_id, "errors": failure.errors} for failure in failures]
    return records, rejected


def _listing_summary(listing: ListingRecord) -> dict:
    return {
        "id": listing.id,
        "address": listing.address,
        "location": listing.location,
        "price": format_currency(listing.price),
        "bedrooms": listing.bedrooms,
        "bathrooms": listing.bathrooms,
        "square_feet": listing.square_feet,
    }


def _result_payload(result: MatchResult, rejected: List[dict]) -> dict:
    payload = result.to_dict()
    payload["skipped"] = rejected + payload["skipped"]
    payload["badge"] = format_match_count(result.count)
    return payload


# =============================================================================
# Application
# =============================================================================


def create_app(config: Optional[Config] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or Config.load()

    app = FastAPI(
        title="Listing Match Engine",
        description="Hot sheet and reverse prospecting match counts",
        version=VERSION,
        debug=config.debug,
    )

    @app.get("/", include_in_schema=False)
    def root():
        """Root healthcheck. No dependencies, no IO."""
        return {"status": "ok"}

    @app.get("/api/health")
    def health():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": VERSION,
            "invalid_record_policy": config.invalid_record_policy,
        }

    if config.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.allowed_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    @app.exception_handler(InvalidInput)
    async def invalid_input_handler(request: Request, exc: InvalidInput):
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=422, content={"detail": exc.to_dict()})

    policy = config.invalid_record_policy

    @app.post("/api/hot-sheets/matches")
    def hot_sheet_matches(body: HotSheetMatchRequest):
        """
        Listings matching a saved search, minus those already sent.

        Returns the count, matched listing ids and a short preview.
        """
        criteria = parse_criteria(body.criteria)
        listings, rejected = _parse_rows(body.listings, parse_listing, policy)

        counter = MatchCounter(Perspective.HOT_SHEET, on_invalid=policy)
        sent_ids = [str(listing_id) for listing_id in body.sent_listing_ids]
        result = counter.count_listings(criteria, listings).excluding(sent_ids)

        preview = result.first(config.preview_limit)
        payload = _result_payload(result, rejected)
        payload["preview"] = [_listing_summary(listing) for listing in preview]
        payload["more"] = format_remainder(result.count, len(preview))
        return payload

    @app.post("/api/listings/reverse-prospect")
    def reverse_prospect(body: ReverseProspectRequest):
        """Buyer needs this listing satisfies, with their contacts."""
        listing = parse_listing(body.listing)
        needs, rejected = _parse_rows(body.needs, parse_criteria, policy)

        counter = MatchCounter(Perspective.REVERSE_PROSPECT, on_invalid=policy)
        result = counter.count_criteria(listing, needs)

        payload = _result_payload(result, rejected)
        payload["recipients"] = [
            recipient.to_dict()
            for recipient in collect_recipients((SOURCE_CLIENT_NEED, result.matches))
        ]
        return payload

    @app.post("/api/listings/matching-buyers")
    def matching_buyers(body: MatchingBuyersRequest):
        """
        Everyone to notify about a new listing.

        Buyer needs are matched from the listing's side, hot sheets from the
        search's side; contacts are merged by email.
        """
        listing = parse_listing(body.listing)
        needs, rejected_needs = _parse_rows(body.needs, parse_criteria, policy)
        sheets, rejected_sheets = _parse_rows(body.hot_sheets, parse_criteria, policy)

        need_result = MatchCounter(Perspective.REVERSE_PROSPECT, on_invalid=policy).count_criteria(listing, needs)
        sheet_result = MatchCounter(Perspective.HOT_SHEET, on_invalid=policy).count_criteria(listing, sheets)

        recipients = collect_recipients(
            (SOURCE_CLIENT_NEED, need_result.matches),
            (SOURCE_HOT_SHEET, sheet_result.matches),
        )
        logger.info(
            "Listing %s: %d needs, %d hot sheets, %d recipients",
            listing.id,
            need_result.count,
            sheet_result.count,
            len(recipients),
        )
        return {
            "needs": _result_payload(need_result, rejected_needs),
            "hot_sheets": _result_payload(sheet_result, rejected_sheets),
            "recipients": [recipient.to_dict() for recipient in recipients],
        }

    @app.post("/api/needs/matching-agents")
    def matching_agents(body: MatchingAgentsRequest):
        """Buyer agents whose coverage and price range fit a buyer need."""
        need = parse_criteria(body.need)
        agents, rejected = _parse_rows(body.agents, parse_agent_preference, policy)

        result = match_agents(need, agents, on_invalid=policy)

        payload = _result_payload(result, rejected)
        payload["recipients"] = [
            recipient.to_dict()
            for recipient in collect_recipients((SOURCE_AGENT, result.matches))
        ]
        return payload

    @app.post("/api/matches/explain")
    def explain(body: ExplainRequest):
        """Which constraints a listing fails for one criteria record."""
        listing = parse_listing(body.listing)
        criteria = parse_criteria(body.criteria)
        failed = CriteriaMatcher(body.perspective).check(listing, criteria)
        return {"matched": not failed, "failed": failed}

    return app


# Create app instance for uvicorn
app = create_app()
