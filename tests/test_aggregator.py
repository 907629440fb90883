import logging
import random

from accommodation.analytics.aggregator import (
    PropertySnapshot,
    aggregate_portfolio,
    average_rating,
    compute_property_stats,
    conversion_rate,
)


def test_average_rating_without_reviews_is_zero():
    assert average_rating(0, 0) == 0


def test_average_rating_rounds_to_one_decimal():
    assert average_rating(14, 3) == 4.7


def test_conversion_rate_without_views_is_zero():
    assert conversion_rate(5, 0) == 0


def test_conversion_rate_ten_views_two_bookings():
    assert conversion_rate(2, 10) == 20.0


def test_conversion_rate_rounds_to_two_decimals():
    assert conversion_rate(1, 3) == 33.33


def test_property_stats_revenue_and_keys():
    stats = compute_property_stats(PropertySnapshot(
        property_id=1, title='Flat', views=10, bookings=2, review_count=2, rating_sum=9,
        token_amount_sum=5000,
    ))
    data = stats.to_dict()
    assert data['conversionRate'] == 20.0
    assert data['averageRating'] == 4.5
    assert data['revenue'] == 5000.0


def _snapshots():
    return [
        PropertySnapshot(property_id=1, views=10, favorites=2, enquiries=1, bookings=2,
                         review_count=1, rating_sum=5, token_amount_sum=1000),
        PropertySnapshot(property_id=2, views=30, favorites=1, enquiries=4, bookings=1,
                         review_count=2, rating_sum=6, token_amount_sum=500),
        PropertySnapshot(property_id=3),
    ]


def test_portfolio_totals():
    portfolio = aggregate_portfolio(_snapshots())
    assert portfolio.total_views == 40
    assert portfolio.total_bookings == 3
    assert portfolio.total_favorites == 3
    assert portfolio.total_enquiries == 5
    assert portfolio.total_revenue == 1500
    assert portfolio.average_rating == 3.7
    assert portfolio.conversion_rate == 7.5


def test_portfolio_is_order_independent():
    shuffled = _snapshots()
    random.Random(4).shuffle(shuffled)
    assert aggregate_portfolio(shuffled).to_dict() == aggregate_portfolio(_snapshots()).to_dict()


def test_omitted_properties_are_reported_and_logged(caplog):
    with caplog.at_level(logging.WARNING, logger='accommodation.analytics.aggregator'):
        portfolio = aggregate_portfolio([_snapshots()[0], None], omitted=[9])

    assert portfolio.omitted == [9]
    assert [p.property_id for p in portfolio.properties] == [1]
    assert 'without properties [9]' in caplog.text


def test_empty_portfolio_is_all_zero():
    data = aggregate_portfolio([]).to_dict()
    assert data['total_views'] == 0
    assert data['average_rating'] == 0
    assert data['conversion_rate'] == 0
    assert data['properties'] == []
