"""Aggregation pipelines for the tour reports."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List

from natours.commons.exceptions import TourValidationError

TOP_RATED_THRESHOLD = 4.5
MONTHS_IN_PLAN = 12
MIN_PLAN_YEAR = 1
MAX_PLAN_YEAR = 9998


def tour_stats_pipeline() -> List[Dict[str, Any]]:
    """Group top-rated tours by difficulty with count, rating and price statistics."""
    return [
        {"$match": {"ratingsAverage": {"$gte": TOP_RATED_THRESHOLD}}},
        {
            "$group": {
                "_id": {"$toUpper": "$difficulty"},
                "numTours": {"$sum": 1},
                "numRatings": {"$sum": "$ratingsQuantity"},
                "avgRating": {"$avg": "$ratingsAverage"},
                "avgPrice": {"$avg": "$price"},
                "minPrice": {"$min": "$price"},
                "maxPrice": {"$max": "$price"},
            }
        },
        {"$sort": {"avgPrice": 1}},
    ]


def monthly_plan_pipeline(year: int) -> List[Dict[str, Any]]:
    """Count tour starts per month of ``year`` and list the tour names.

    Start dates are unwound so a tour with three dates counts once per date.
    """
    if not MIN_PLAN_YEAR <= year <= MAX_PLAN_YEAR:
        raise TourValidationError(f"Year must be between {MIN_PLAN_YEAR} and {MAX_PLAN_YEAR}, got {year}.")
    start = datetime(year, 1, 1, tzinfo=timezone.utc)
    end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    return [
        {"$unwind": "$startDates"},
        {"$match": {"startDates": {"$gte": start, "$lt": end}}},
        {
            "$group": {
                "_id": {"$month": "$startDates"},
                "numTourStarts": {"$sum": 1},
                "tours": {"$push": "$name"},
            }
        },
        {"$sort": {"_id": 1}},
        {"$addFields": {"month": "$_id"}},
        {"$project": {"_id": 0}},
        {"$limit": MONTHS_IN_PLAN},
    ]
