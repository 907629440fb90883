"""
Logging configuration for the API.

Every module logs through ``logging.getLogger(__name__)``; this module only
decides where records go and how they look.
"""
import logging
import sys


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(debug=False):
    """Configure the root logger to write to stdout.

    Safe to call more than once (the app factory runs per test); the stdout
    handler is only attached the first time.
    """
    log_level = logging.DEBUG if debug else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if not any(getattr(h, '_accommodation_handler', False) for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        handler._accommodation_handler = True
        root_logger.addHandler(handler)

    logging.getLogger(__name__).debug('Logging initialized at %s level', logging.getLevelName(log_level))


def with_context(logger, **context):
    """
    Return a LoggerAdapter that prefixes messages with correlation context.

    Usage:
        log = with_context(logging.getLogger(__name__), expert_id=4, user_id=9)
        log.info('Consultation booked')
    """
    class ContextAdapter(logging.LoggerAdapter):
        def process(self, msg, kwargs):
            extra = kwargs.get('extra', {})
            merged = {**context, **extra}
            kwargs['extra'] = merged
            tags = ' '.join(f'{k}={v}' for k, v in merged.items() if v is not None)
            return (f'[{tags}] {msg}' if tags else msg, kwargs)

    return ContextAdapter(logger, {})
