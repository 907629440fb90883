"""
Interaction aggregation for property and portfolio analytics.

The functions here only do arithmetic over a snapshot of counts gathered by
``accommodation.analytics.collect``; they never touch the database.
"""
import logging
from dataclasses import dataclass, field, asdict
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class PropertySnapshot:
    """Raw interaction counts for one property"""
    property_id: int
    title: str = ''
    views: int = 0
    favorites: int = 0
    enquiries: int = 0
    bookings: int = 0
    review_count: int = 0
    rating_sum: float = 0
    token_amount_sum: float = 0


@dataclass
class PropertyStats:
    property_id: int
    title: str
    views: int
    favorites: int
    enquiries: int
    bookings: int
    review_count: int
    average_rating: float
    conversion_rate: float
    revenue: float

    def to_dict(self):
        return {
            'property_id': self.property_id,
            'title': self.title,
            'views': self.views,
            'favorites': self.favorites,
            'enquiries': self.enquiries,
            'bookings': self.bookings,
            'review_count': self.review_count,
            'averageRating': self.average_rating,
            'conversionRate': self.conversion_rate,
            'revenue': self.revenue,
        }


@dataclass
class PortfolioStats:
    properties: List[PropertyStats] = field(default_factory=list)
    omitted: List[int] = field(default_factory=list)
    total_views: int = 0
    total_favorites: int = 0
    total_enquiries: int = 0
    total_bookings: int = 0
    total_reviews: int = 0
    total_revenue: float = 0
    average_rating: float = 0
    conversion_rate: float = 0

    def to_dict(self):
        data = asdict(self)
        data['properties'] = [p.to_dict() for p in self.properties]
        return data


def average_rating(rating_sum, review_count):
    """Mean rating rounded to one decimal, 0 when there are no reviews"""
    if not review_count:
        return 0
    return round(rating_sum / review_count, 1)


def conversion_rate(bookings, views):
    """Bookings per hundred views rounded to two decimals, 0 without views"""
    if not views:
        return 0
    return round(bookings / views * 100, 2)


def compute_property_stats(snapshot: PropertySnapshot) -> PropertyStats:
    return PropertyStats(
        property_id=snapshot.property_id,
        title=snapshot.title,
        views=snapshot.views,
        favorites=snapshot.favorites,
        enquiries=snapshot.enquiries,
        bookings=snapshot.bookings,
        review_count=snapshot.review_count,
        average_rating=average_rating(snapshot.rating_sum, snapshot.review_count),
        conversion_rate=conversion_rate(snapshot.bookings, snapshot.views),
        revenue=float(snapshot.token_amount_sum or 0),
    )


def aggregate_portfolio(snapshots: Iterable[Optional[PropertySnapshot]],
                        omitted: Optional[List[int]] = None) -> PortfolioStats:
    """
    Combine per-property snapshots into portfolio totals.

    Totals are plain sums, so the result does not depend on the order the
    snapshots arrive in. Portfolio-level rating and conversion are derived
    from the summed raw counts rather than averaging the per-property ratios.
    """
    portfolio = PortfolioStats(omitted=list(omitted or []))
    rating_sum = 0

    for snapshot in snapshots:
        if snapshot is None:
            continue
        stats = compute_property_stats(snapshot)
        portfolio.properties.append(stats)
        portfolio.total_views += stats.views
        portfolio.total_favorites += stats.favorites
        portfolio.total_enquiries += stats.enquiries
        portfolio.total_bookings += stats.bookings
        portfolio.total_reviews += stats.review_count
        portfolio.total_revenue += stats.revenue
        rating_sum += snapshot.rating_sum

    portfolio.properties.sort(key=lambda s: s.property_id)
    portfolio.average_rating = average_rating(rating_sum, portfolio.total_reviews)
    portfolio.conversion_rate = conversion_rate(portfolio.total_bookings, portfolio.total_views)

    if portfolio.omitted:
        logger.warning('Portfolio aggregated without properties %s', portfolio.omitted)

    return portfolio
