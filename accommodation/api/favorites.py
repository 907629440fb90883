import logging
from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required
from sqlalchemy.exc import IntegrityError
from accommodation import db
from accommodation.models.favorite import Favorite
from accommodation.models.property import Property
from accommodation.utils.decorators import capability_required, get_current_user
from accommodation.utils.errors import NotFound
from accommodation.utils.permissions import Capability

logger = logging.getLogger(__name__)

favorites_bp = Blueprint('favorites', __name__)


@favorites_bp.route('/<int:property_id>', methods=['POST'])
@jwt_required()
@capability_required(Capability.MANAGE_FAVORITES)
def add_favorite(property_id):
    """Add a property to the user's favorites; adding twice is a no-op"""
    user = get_current_user()
    property = db.session.get(Property, property_id)
    if property is None or not property.is_listed():
        raise NotFound('Property not found')

    if Favorite.query.filter_by(user_id=user.id, property_id=property_id).first():
        return jsonify({'message': 'Property already in favorites', 'is_favorite': True}), 200

    db.session.add(Favorite(user_id=user.id, property_id=property_id))
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        return jsonify({'message': 'Property already in favorites', 'is_favorite': True}), 200

    property.increment('favorite_count')
    db.session.commit()
    return jsonify({'message': 'Property added to favorites', 'is_favorite': True}), 201


@favorites_bp.route('/<int:property_id>', methods=['DELETE'])
@jwt_required()
@capability_required(Capability.MANAGE_FAVORITES)
def remove_favorite(property_id):
    """Remove a property from the user's favorites"""
    user = get_current_user()
    favorite = Favorite.query.filter_by(user_id=user.id, property_id=property_id).first()
    if favorite is None:
        raise NotFound('Property is not in your favorites')

    db.session.delete(favorite)
    Property.query.filter_by(id=property_id).update(
        {Property.favorite_count: Property.favorite_count - 1}, synchronize_session=False
    )
    db.session.commit()
    return jsonify({'message': 'Property removed from favorites', 'is_favorite': False}), 200


@favorites_bp.route('/', methods=['GET'], strict_slashes=False)
@jwt_required()
def get_favorites():
    """The user's favorite properties (hidden and archived listings left out)"""
    user = get_current_user()
    favorites = Favorite.query.filter_by(user_id=user.id).order_by(Favorite.created_at.desc()).all()
    return jsonify({
        'favorites': [f.to_dict(include_property=True) for f in favorites if f.property.is_listed()]
    }), 200


@favorites_bp.route('/check/<int:property_id>', methods=['GET'])
@jwt_required()
def check_favorite(property_id):
    user = get_current_user()
    exists = Favorite.query.filter_by(user_id=user.id, property_id=property_id).first() is not None
    return jsonify({'is_favorite': exists}), 200
