import bleach
import re

def sanitize_string(text, allowed_tags=None):
    """Sanitize a string by removing HTML tags and stripping whitespace"""
    if text is None:
        return ''

    if allowed_tags:
        # Allow specific HTML tags
        text = bleach.clean(text, tags=allowed_tags, strip=True)
    else:
        # Remove all HTML tags
        text = bleach.clean(text, tags=[], strip=True)

    return text.strip()

def sanitize_search_query(query):
    """Sanitize search query by removing special characters"""
    if not query:
        return ''

    # LIKE wildcards and quoting characters
    query = re.sub(r'[;%_\'"\\]', '', query)

    # Limit length
    query = query[:200]

    return query.strip()
