"""
Flask application serving the birthday calendar feed
"""

import logging

from flask import Flask, Response, jsonify, request
from werkzeug.http import http_date

from bdayfeed.errors import FeedError
from bdayfeed.feed import FeedService, is_not_modified
from bdayfeed.models import ReminderConfig

logger = logging.getLogger(__name__)

FEED_FILENAME = 'birthdays.ics'
CONTENT_TYPE_ICAL = 'text/calendar; charset=utf-8'
CONTENT_TYPE_PLAIN = 'text/plain; charset=utf-8'
CACHE_CONTROL_FORMAT = 'private, max-age={}, must-revalidate'
NO_CACHE = 'no-cache, no-store, must-revalidate'


def create_app(service: FeedService, source_config: dict, reminder: ReminderConfig,
               cache_ttl: int) -> Flask:
    """Build the Flask app around a configured FeedService"""
    app = Flask(__name__)

    @app.after_request
    def add_security_headers(response):
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        return response

    @app.route('/feed.ics', methods=['GET'])
    @app.route('/feed.php', methods=['GET'])
    def feed():
        try:
            result = service.produce_feed(
                source_config['source'],
                source_config['username'],
                source_config['password'],
                source_config['language'],
                reminder,
                cache_ttl,
                use_carddav_query=source_config['use_carddav_query'],
            )
        except FeedError as e:
            return Response(str(e), status=500, content_type=CONTENT_TYPE_PLAIN)

        headers = {
            'Last-Modified': http_date(result.generated_at),
            'ETag': result.etag,
        }

        if is_not_modified(result, request.if_modified_since, request.headers.get('If-None-Match')):
            logger.debug("Client copy is current, answering 304")
            return Response(status=304, headers=headers)

        headers['Content-Disposition'] = f'attachment; filename="{FEED_FILENAME}"'
        headers['Cache-Control'] = CACHE_CONTROL_FORMAT.format(cache_ttl) if cache_ttl > 0 else NO_CACHE
        return Response(result.content, status=200, content_type=CONTENT_TYPE_ICAL, headers=headers)

    @app.route('/refresh', methods=['POST'])
    def refresh():
        service.cache.clear()
        return Response(service.translator.get('notif_sync_success'), content_type=CONTENT_TYPE_PLAIN)

    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok'})

    return app
