"""
Memory Match Statistics Server

A small Flask server that exposes a player's statistics, per-level records
and recent games from the local game database. It is read-only.
"""
import logging
import os
import sys

from flask import Flask, jsonify, request

# Add parent directory to path to allow importing the game modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from database import GameDatabase
from scoreboard import summarize
from settings import configure_logging, load_settings

logger = logging.getLogger(__name__)


def create_app(db_file="memory_game.db"):
    """
    Build the Flask application.

    Args:
        db_file: Path of the game database to read from

    Returns:
        The Flask app
    """
    app = Flask(__name__)
    app.config["DB_FILE"] = db_file

    def open_db():
        return GameDatabase(app.config["DB_FILE"], read_only=True)

    @app.errorhandler(FileNotFoundError)
    def database_missing(error):
        logger.error(f"Cannot serve statistics: {error}")
        return jsonify({"error": "No game database available"}), 503

    @app.route('/')
    def index():
        """Serve a short description of the API."""
        return """
        <html>
            <head><title>Memory Match Statistics Server</title></head>
            <body>
                <h1>Memory Match Statistics Server</h1>
                <ul>
                    <li>/api/stats/&lt;username&gt; - GET: stats, records and recent games</li>
                    <li>/api/records/&lt;username&gt; - GET: best time and moves per level</li>
                </ul>
            </body>
        </html>
        """

    @app.route('/api/stats/<username>', methods=['GET'])
    def get_player_stats(username):
        """Get the statistics summary of a player."""
        limit = request.args.get('limit', 10, type=int)
        db = open_db()
        try:
            user = db.get_user_by_username(username)
            if user is None:
                return jsonify({"error": f"Unknown player: {username}"}), 404
            summary = summarize(db, user.id, history_limit=limit)
            summary["player"] = user.username
            return jsonify(summary)
        finally:
            db.close()

    @app.route('/api/records/<username>', methods=['GET'])
    def get_player_records(username):
        """Get a player's records, with the average of all wins on each level."""
        db = open_db()
        try:
            user = db.get_user_by_username(username)
            if user is None:
                return jsonify({"error": f"Unknown player: {username}"}), 404
            records = []
            for record in db.get_all_records(user.id):
                entry = record.to_dict()
                entry.update(db.level_summary(user.id, record.level))
                records.append(entry)
            return jsonify({"player": user.username, "records": records})
        finally:
            db.close()

    return app


if __name__ == '__main__':
    settings = load_settings()
    configure_logging(settings)

    # Get port from environment or use default
    port = int(os.environ.get('PORT', 5000))
    logger.info(f"Server running on http://localhost:{port}")
    create_app(settings["db_file"]).run(host='0.0.0.0', port=port)
