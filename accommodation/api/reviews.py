import logging
from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required
from accommodation import db
from accommodation.analytics.aggregator import average_rating
from accommodation.models.lifecycle import ReviewState
from accommodation.models.property import Property
from accommodation.models.review import Review
from accommodation.schemas.review import ReviewCreate, ReviewUpdate
from accommodation.utils.decorators import capability_required, get_current_user
from accommodation.utils.errors import ApiError, Forbidden, NotFound, ServerFault, ValidationError
from accommodation.utils.permissions import Capability
from accommodation.utils.queries import get_or_404
from accommodation.utils.validators import parse_request

logger = logging.getLogger(__name__)

reviews_bp = Blueprint('reviews', __name__)


def _own_active_review(review_id, user):
    review = get_or_404(Review, review_id, 'Review not found')
    if not review.is_active():
        raise NotFound('Review not found')
    if review.tenant_id != user.id:
        raise Forbidden('Not authorized to change this review')
    return review


@reviews_bp.route('/', methods=['POST'], strict_slashes=False)
@jwt_required()
@capability_required(Capability.WRITE_REVIEW)
def create_review():
    """Review a property, once per tenant"""
    user = get_current_user()
    data = parse_request(ReviewCreate)

    property = db.session.get(Property, data.property_id)
    if property is None or property.is_archived():
        raise NotFound('Property not found')

    try:
        review = Review.query.filter_by(tenant_id=user.id, property_id=property.id).first()
        if review is not None and review.is_active():
            raise ValidationError.for_field('property_id', 'You have already reviewed this property')

        if review is None:
            review = Review(tenant_id=user.id, property_id=property.id, owner_id=property.owner_id)
            db.session.add(review)
        # A previously deleted review is brought back with the new content
        review.rating = data.rating
        review.comment = data.comment
        review.state = ReviewState.ACTIVE
        db.session.commit()

    except ApiError:
        raise
    except Exception:
        db.session.rollback()
        logger.exception('Failed to create review of property %s', data.property_id)
        raise ServerFault()

    return jsonify({'message': 'Review created successfully', 'review': review.to_dict()}), 201


@reviews_bp.route('/<int:review_id>', methods=['PUT'])
@jwt_required()
def update_review(review_id):
    user = get_current_user()
    review = _own_active_review(review_id, user)
    data = parse_request(ReviewUpdate)

    for field, value in data.provided().items():
        if value is not None:
            setattr(review, field, value)
    db.session.commit()

    return jsonify({'message': 'Review updated successfully', 'review': review.to_dict()}), 200


@reviews_bp.route('/<int:review_id>', methods=['DELETE'])
@jwt_required()
def delete_review(review_id):
    """Archive the review; it stops counting towards the property rating"""
    user = get_current_user()
    review = _own_active_review(review_id, user)
    review.archive()
    db.session.commit()
    return jsonify({'message': 'Review deleted successfully'}), 200


@reviews_bp.route('/tenant/my-reviews', methods=['GET'])
@jwt_required()
@capability_required(Capability.WRITE_REVIEW)
def get_my_reviews():
    user = get_current_user()
    reviews = Review.query.filter_by(tenant_id=user.id, state=ReviewState.ACTIVE) \
        .order_by(Review.created_at.desc()).all()
    return jsonify({'reviews': [r.to_dict(include_property=True) for r in reviews]}), 200


@reviews_bp.route('/owner/my-property-reviews', methods=['GET'])
@jwt_required()
@capability_required(Capability.LIST_PROPERTY)
def get_owner_reviews():
    user = get_current_user()
    reviews = Review.query.filter_by(owner_id=user.id, state=ReviewState.ACTIVE) \
        .order_by(Review.created_at.desc()).all()
    return jsonify({'reviews': [r.to_dict(include_property=True) for r in reviews]}), 200


@reviews_bp.route('/property/<int:property_id>', methods=['GET'])
def get_property_reviews(property_id):
    """Public list of a property's reviews with its average rating"""
    reviews = Review.query.filter_by(property_id=property_id, state=ReviewState.ACTIVE) \
        .order_by(Review.created_at.desc()).all()
    return jsonify({
        'reviews': [r.to_dict() for r in reviews],
        'averageRating': average_rating(sum(r.rating for r in reviews), len(reviews)),
        'count': len(reviews),
    }), 200
