from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from accommodation import db
from accommodation.models.faq import FAQ, FAQ_CATEGORIES
from accommodation.schemas.support import FAQCreate, FAQRate, FAQUpdate
from accommodation.utils.decorators import capability_required, get_current_user
from accommodation.utils.errors import NotFound
from accommodation.utils.permissions import Capability
from accommodation.utils.queries import get_or_404
from accommodation.utils.sanitizers import sanitize_search_query
from accommodation.utils.validators import parse_request

faq_bp = Blueprint('faq', __name__)


def _active_faq(faq_id):
    faq = get_or_404(FAQ, faq_id, 'FAQ not found')
    if not faq.is_active:
        raise NotFound('FAQ not found')
    return faq


@faq_bp.route('/', methods=['GET'], strict_slashes=False)
def list_faqs():
    """Active FAQs, most viewed first; ``category`` and ``search`` narrow the list"""
    query = FAQ.query.filter_by(is_active=True)
    category = request.args.get('category')
    if category:
        query = query.filter_by(category=category)

    faqs = query.order_by(FAQ.views.desc(), FAQ.id).all()
    search = sanitize_search_query(request.args.get('search', ''))
    if search:
        faqs = [f for f in faqs if f.matches(search)]

    return jsonify({'faqs': [f.to_dict() for f in faqs]}), 200


@faq_bp.route('/categories', methods=['GET'])
def list_categories():
    counts = dict(
        db.session.query(FAQ.category, db.func.count(FAQ.id)).filter(FAQ.is_active.is_(True))
        .group_by(FAQ.category).all()
    )
    return jsonify({'categories': [{'name': c, 'count': counts.get(c, 0)} for c in FAQ_CATEGORIES]}), 200


@faq_bp.route('/<int:faq_id>', methods=['GET'])
def get_faq(faq_id):
    faq = _active_faq(faq_id)
    FAQ.query.filter_by(id=faq.id).update({FAQ.views: FAQ.views + 1}, synchronize_session=False)
    db.session.commit()
    return jsonify({'faq': faq.to_dict()}), 200


@faq_bp.route('/<int:faq_id>/rate', methods=['POST'])
def rate_faq(faq_id):
    faq = _active_faq(faq_id)
    data = parse_request(FAQRate)
    column = FAQ.helpful if data.helpful else FAQ.not_helpful
    FAQ.query.filter_by(id=faq.id).update({column: column + 1}, synchronize_session=False)
    db.session.commit()
    return jsonify({'message': 'Thanks for your feedback', 'faq': faq.to_dict()}), 200


@faq_bp.route('/', methods=['POST'], strict_slashes=False)
@jwt_required()
@capability_required(Capability.MANAGE_FAQ)
def create_faq():
    user = get_current_user()
    data = parse_request(FAQCreate)
    faq = FAQ(created_by=user.id, **data.model_dump())
    db.session.add(faq)
    db.session.commit()
    return jsonify({'faq': faq.to_dict()}), 201


@faq_bp.route('/<int:faq_id>', methods=['PUT'])
@jwt_required()
@capability_required(Capability.MANAGE_FAQ)
def update_faq(faq_id):
    faq = get_or_404(FAQ, faq_id, 'FAQ not found')
    data = parse_request(FAQUpdate)
    for field, value in data.provided().items():
        if value is not None:
            setattr(faq, field, value)
    db.session.commit()
    return jsonify({'faq': faq.to_dict()}), 200


@faq_bp.route('/<int:faq_id>', methods=['DELETE'])
@jwt_required()
@capability_required(Capability.MANAGE_FAQ)
def delete_faq(faq_id):
    """FAQs are deactivated rather than removed"""
    faq = get_or_404(FAQ, faq_id, 'FAQ not found')
    faq.is_active = False
    db.session.commit()
    return jsonify({'message': 'FAQ removed'}), 200
