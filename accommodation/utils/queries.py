from accommodation import db
from accommodation.utils.errors import NotFound


def get_or_404(model, ident, message=None):
    """Fetch a row by primary key or raise ``NotFound``"""
    obj = db.session.get(model, ident)
    if obj is None:
        raise NotFound(message or f'{model.__name__} not found')
    return obj


def paginate(query, page, per_page):
    page_obj = query.paginate(page=page, per_page=per_page, error_out=False)
    return page_obj.items, {
        'page': page_obj.page,
        'per_page': page_obj.per_page,
        'total': page_obj.total,
        'pages': page_obj.pages,
    }
