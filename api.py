"""
Flask REST API for the PocketCal Web Portal
Drives calculator sessions through JSON events
"""
import logging

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

import config
from input_surface import InvalidEventError, events_from_request
from session_manager import SessionLimitError, SessionManager, SessionNotFoundError

logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)  # Enable CORS for all routes

sessions = SessionManager()


@app.errorhandler(SessionNotFoundError)
def session_not_found(e):
    return jsonify({'success': False, 'error': f"unknown session: {e.args[0]}"}), 404


@app.errorhandler(InvalidEventError)
def invalid_event(e):
    return jsonify({'success': False, 'error': str(e)}), 400


@app.errorhandler(SessionLimitError)
def session_limit(e):
    return jsonify({'success': False, 'error': str(e)}), 503


@app.route('/api')
def api_info():
    """API information page"""
    return """
    <html>
    <head><title>PocketCal API</title></head>
    <body style="font-family: Arial; padding: 40px; background: #1a1a2e; color: white;">
        <h1>PocketCal API Server</h1>
        <h2>Available Endpoints:</h2>
        <ul>
            <li>POST /api/sessions - Start a calculator session</li>
            <li>GET /api/sessions/&lt;id&gt; - Current display and memory</li>
            <li>POST /api/sessions/&lt;id&gt;/events - Send one event or {"events": [...]}</li>
            <li>GET /api/sessions/&lt;id&gt;/history - Completed calculations</li>
            <li>DELETE /api/sessions/&lt;id&gt; - End a session</li>
        </ul>
    </body>
    </html>
    """


@app.route('/api/sessions', methods=['POST'])
def create_session():
    """Start a new calculator session"""
    session = sessions.create_session()
    return jsonify({'success': True, 'data': session.to_dict()}), 201


@app.route('/api/sessions/<session_id>')
def get_session(session_id):
    """Get the display projection of a session"""
    session = sessions.get_session(session_id)
    return jsonify({'success': True, 'data': session.to_dict()})


@app.route('/api/sessions/<session_id>', methods=['DELETE'])
def delete_session(session_id):
    """End a session"""
    sessions.remove_session(session_id)
    return jsonify({'success': True})


@app.route('/api/sessions/<session_id>/events', methods=['POST'])
def post_events(session_id):
    """Apply one or more events to a session"""
    session = sessions.get_session(session_id)
    body = request.get_json(silent=True)
    if body is None:
        raise InvalidEventError("request body must be JSON")

    events = events_from_request(body)
    session.apply(events)
    return jsonify({'success': True, 'data': session.to_dict()})


@app.route('/api/sessions/<session_id>/history')
def get_history(session_id):
    """Get calculation history of a session"""
    session = sessions.get_session(session_id)
    try:
        limit = int(request.args.get('limit', 50))
    except ValueError:
        return jsonify({'success': False, 'error': "limit must be an integer"}), 400
    if limit < 0:
        return jsonify({'success': False, 'error': "limit must not be negative"}), 400

    formatted = []
    for expression, result, timestamp in session.history.get_calculation_history(limit):
        formatted.append({
            'expression': expression,
            'result': result,
            'timestamp': timestamp
        })

    return jsonify({
        'success': True,
        'data': formatted,
        'count': len(formatted)
    })


@app.errorhandler(Exception)
def unexpected_error(e):
    if isinstance(e, HTTPException):
        return jsonify({'success': False, 'error': e.description}), e.code
    logger.exception("unhandled error on %s", request.path)
    return jsonify({'success': False, 'error': str(e)}), 500


def main():
    from logging_config import setup_logging
    setup_logging(config.LOG_LEVEL, json_format=config.LOG_JSON)

    print("\n" + "="*60)
    print("PocketCal Web Portal API Server")
    print("="*60)
    print(f"Server starting on http://{config.WEB_HOST}:{config.WEB_PORT}")
    print(f"Access from this device: http://localhost:{config.WEB_PORT}/api")
    if config.WEB_HOST == '0.0.0.0':
        print(f"Access from network: http://<your-ip>:{config.WEB_PORT}/api")
    print("="*60 + "\n")

    app.run(host=config.WEB_HOST, port=config.WEB_PORT, debug=False)


if __name__ == '__main__':
    main()
