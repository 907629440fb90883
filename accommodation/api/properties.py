import logging
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from sqlalchemy import or_
from accommodation import db
from accommodation.analytics.aggregator import average_rating
from accommodation.analytics.views import record_view
from accommodation.models.lifecycle import ListingState, ReviewState
from accommodation.models.property import Property
from accommodation.models.review import Review
from accommodation.schemas.property import PropertyCreate, PropertyFilters, PropertyUpdate
from accommodation.services.cloudinary_service import CloudinaryService
from accommodation.utils.decorators import capability_required, get_current_user
from accommodation.utils.errors import ApiError, Forbidden, NotFound, ServerFault
from accommodation.utils.permissions import Capability
from accommodation.utils.queries import get_or_404
from accommodation.utils.sanitizers import sanitize_search_query
from accommodation.utils.validators import parse_request

logger = logging.getLogger(__name__)

properties_bp = Blueprint('properties', __name__)


def _has_all(values, wanted):
    return set(wanted).issubset(set(values or []))


@properties_bp.route('/', methods=['GET'], strict_slashes=False)
def get_properties():
    """Get listed properties with filters"""
    filters = parse_request(PropertyFilters, data={
        **request.args.to_dict(),
        'features': request.args.get('features', ''),
        'facilities': request.args.get('facilities', ''),
    })

    query = Property.query.filter(Property.listing_state == ListingState.ACTIVE)

    location = sanitize_search_query(filters.location)
    if location:
        query = query.filter(or_(
            Property.city.ilike(f'%{location}%'),
            Property.address.ilike(f'%{location}%'),
            Property.state.ilike(f'%{location}%'),
        ))

    if filters.min_price is not None:
        query = query.filter(Property.price >= filters.min_price)

    if filters.max_price is not None:
        query = query.filter(Property.price <= filters.max_price)

    if filters.property_type:
        query = query.filter_by(property_type=filters.property_type)

    if filters.availability:
        query = query.filter_by(availability=filters.availability)

    # Order by newest first
    properties = query.order_by(Property.created_at.desc(), Property.id.desc()).all()

    # JSON list filters are applied here to stay portable across databases
    if filters.features:
        properties = [p for p in properties if _has_all(p.features, filters.features)]
    if filters.facilities:
        properties = [p for p in properties if _has_all(p.facilities, filters.facilities)]

    total = len(properties)
    start = (filters.page - 1) * filters.per_page
    page_items = properties[start:start + filters.per_page]

    return jsonify({
        'properties': [p.to_dict(include_owner=True) for p in page_items],
        'pagination': {
            'page': filters.page,
            'per_page': filters.per_page,
            'total': total,
            'pages': (total + filters.per_page - 1) // filters.per_page,
        }
    }), 200


@properties_bp.route('/<int:property_id>', methods=['GET'])
def get_property(property_id):
    """Get a single property; counts a unique view for anyone but the owner"""
    viewer = get_current_user(optional=True)
    property = get_or_404(Property, property_id, 'Property not found')

    if not property.is_listed() and not property.can_be_managed_by(viewer):
        raise NotFound('Property not found')

    try:
        if property.is_listed():
            record_view(property, viewer=viewer, ip_address=request.remote_addr)
        db.session.commit()
    except ApiError:
        raise
    except Exception:
        db.session.rollback()
        logger.exception('Failed to record view of property %s', property_id)
        raise ServerFault()

    reviews = property.reviews.filter(Review.state == ReviewState.ACTIVE) \
        .order_by(Review.created_at.desc()).all()

    data = property.to_dict(include_owner=True)
    data['reviews'] = [r.to_dict() for r in reviews]
    data['averageRating'] = average_rating(sum(r.rating for r in reviews), len(reviews))
    data['review_count'] = len(reviews)

    return jsonify({'property': data}), 200


@properties_bp.route('/', methods=['POST'], strict_slashes=False)
@jwt_required()
@capability_required(Capability.LIST_PROPERTY)
def create_property():
    """Create a new property listing"""
    user = get_current_user()
    data = parse_request(PropertyCreate)
    try:
        fields = data.model_dump()
        fields['images'] = CloudinaryService().store_images(fields['images'])
        fields['faq'] = [dict(entry) for entry in fields['faq']]

        property = Property(owner_id=user.id, listing_state=ListingState.ACTIVE, **fields)
        db.session.add(property)
        db.session.commit()

        logger.info('Owner %s listed property %s', user.id, property.id)
        return jsonify({
            'message': 'Property created successfully',
            'property': property.to_dict()
        }), 201

    except ApiError:
        raise
    except Exception:
        db.session.rollback()
        logger.exception('Failed to create property for owner %s', user.id)
        raise ServerFault()


@properties_bp.route('/<int:property_id>', methods=['PUT'])
@jwt_required()
def update_property(property_id):
    """Update a property listing"""
    user = get_current_user()
    property = get_or_404(Property, property_id, 'Property not found')

    # Check permissions
    if not property.can_be_managed_by(user) or property.is_archived():
        raise Forbidden('Permission denied')

    data = parse_request(PropertyUpdate)
    try:
        changes = {k: v for k, v in data.provided().items() if v is not None or k in ('deposit', 'zip_code', 'availability_date')}
        if 'images' in changes:
            changes['images'] = CloudinaryService().store_images(changes['images'])
        for field, value in changes.items():
            setattr(property, field, value)

        db.session.commit()

        return jsonify({
            'message': 'Property updated successfully',
            'property': property.to_dict()
        }), 200

    except ApiError:
        raise
    except Exception:
        db.session.rollback()
        logger.exception('Failed to update property %s', property_id)
        raise ServerFault()


@properties_bp.route('/<int:property_id>', methods=['DELETE'])
@jwt_required()
def delete_property(property_id):
    """Archive a property listing; history stays attached to it"""
    user = get_current_user()
    property = get_or_404(Property, property_id, 'Property not found')

    if not property.can_be_managed_by(user):
        raise Forbidden('Permission denied')

    property.archive()
    db.session.commit()
    logger.info('Property %s archived by user %s', property_id, user.id)

    return jsonify({'message': 'Property deleted successfully'}), 200


@properties_bp.route('/owner/my-properties', methods=['GET'])
@jwt_required()
@capability_required(Capability.LIST_PROPERTY)
def get_my_properties():
    """Get the signed-in owner's properties (archived ones excluded)"""
    user = get_current_user()
    properties = Property.query.filter(
        Property.owner_id == user.id,
        Property.listing_state != ListingState.ARCHIVED,
    ).order_by(Property.created_at.desc()).all()

    return jsonify({'properties': [p.to_dict() for p in properties]}), 200
