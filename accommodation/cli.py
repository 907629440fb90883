"""Maintenance commands, run with ``flask --app app <command>``"""
import logging

import click

from accommodation import db

logger = logging.getLogger(__name__)


def register_commands(app):

    @app.cli.command('prune-views')
    def prune_views():
        """Drop anonymous view records older than the dedup window."""
        from accommodation.analytics.views import prune_anonymous_views

        removed = prune_anonymous_views()
        db.session.commit()
        click.echo(f'Removed {removed} anonymous view records')

    @app.cli.command('recount-analytics')
    @click.option('--property-id', type=int, default=None, help='Only recount this property.')
    def recount_analytics(property_id):
        """Recompute cached property counters from the interaction tables."""
        from accommodation.analytics.collect import recount_property
        from accommodation.models.property import Property

        query = Property.query
        if property_id is not None:
            query = query.filter_by(id=property_id)

        count = 0
        for prop in query.all():
            recount_property(prop)
            count += 1
        db.session.commit()
        logger.info('Recounted analytics for %s properties', count)
        click.echo(f'Recounted {count} properties')
