#!/usr/bin/env python3
"""
LevelHub server - Flask backend for the LevelHub front page.

Logs users in with Roblox OAuth2, lists the configured Roblox experience and
keeps each user's hearted levels, play queue and profile in a JSON file.
"""

import argparse
import logging
import os
import secrets
import sys
from functools import wraps
from typing import Dict, Optional

from colorama import Fore, Style, init as colorama_init
from flask import Flask, g, jsonify, redirect, request, send_from_directory, session

import levelhub_config
from identity_provider import IdentityProvider, ProviderError
from levelhub.repositories import DocumentStore, JsonFileDocumentStore, StoreError
from levelhub.services import LevelService, SessionService, UserService
from roblox_client import RobloxGamesClient, RobloxIdentityProvider

server_logger = logging.getLogger('levelhub.server')

app = Flask(__name__, static_folder=None)
app.secret_key = os.urandom(24)

# Wired by init_services(); route handlers only use these.
_provider: Optional[IdentityProvider] = None
_user_service: Optional[UserService] = None
_level_service: Optional[LevelService] = None
_session_service: SessionService = SessionService()
_static_dir: str = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'static')

_SESSION_KEY = 'sid'
_STATE_KEY = 'oauth_state'


def init_services(config: Optional[Dict] = None,
                  store: Optional[DocumentStore] = None,
                  provider: Optional[IdentityProvider] = None,
                  games_client=None,
                  session_service: Optional[SessionService] = None) -> None:
    """Build the store, provider and services the routes use.

    Anything passed explicitly wins over what *config* would build, so tests
    can inject an in-memory store and a fake provider.
    """
    global _provider, _user_service, _level_service, _session_service, _static_dir
    if config is None:
        config = dict(levelhub_config.DEFAULTS)

    if config.get('session_secret'):
        app.secret_key = config['session_secret']
    else:
        server_logger.warning('SESSION_SECRET not set; sessions will not survive a restart')

    timeout = int(config.get('http_timeout', 10))
    if store is None:
        store = JsonFileDocumentStore(str(config.get('data_file', 'data.json')))
    if provider is None and config.get('client_id') and config.get('client_secret'):
        provider = RobloxIdentityProvider(
            str(config['client_id']),
            str(config['client_secret']),
            str(config.get('redirect_uri', '')),
            timeout=timeout,
        )
    if games_client is None:
        games_client = RobloxGamesClient(timeout=timeout)
    if session_service is None:
        session_service = SessionService(int(config.get('session_ttl_seconds', 24 * 60 * 60)))

    _provider = provider
    _user_service = UserService(store)
    _level_service = LevelService(games_client, str(config.get('universe_id', '6742973974')))
    _session_service = session_service

    static_dir = str(config.get('static_dir', 'static'))
    if not os.path.isabs(static_dir) and not os.path.isdir(static_dir):
        static_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), static_dir)
    _static_dir = os.path.abspath(static_dir)

    if _provider is None:
        server_logger.warning('OAuth client not configured; /auth/login is disabled')
    server_logger.info('Services initialised (store=%s)', type(store).__name__)


def current_identity() -> Optional[Dict[str, str]]:
    """Return the identity attached to this request's session, if any."""
    return _session_service.get(session.get(_SESSION_KEY))


def require_login(f):
    """Decorator to require an authenticated Roblox identity"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        identity = current_identity()
        if not identity:
            return jsonify({'error': 'Login required'}), 401
        g.identity = identity
        return f(*args, **kwargs)
    return decorated_function


def _storage_unavailable():
    return jsonify({'error': 'Storage unavailable'}), 500


# ---------------------------------------------------------------------------
# OAuth routes
# ---------------------------------------------------------------------------

@app.route('/auth/login')
def auth_login():
    """Redirect the browser to the provider's authorize page."""
    if not _provider:
        return jsonify({'error': 'Login not configured'}), 503
    state = secrets.token_urlsafe(16)
    session[_STATE_KEY] = state
    return redirect(_provider.build_auth_url(state))


@app.route('/auth/callback')
def auth_callback():
    """Finish the OAuth2 code exchange and start a server-side session.

    Every failure lands back on ``/`` without detail; the reason is logged.
    """
    expected_state = session.pop(_STATE_KEY, None)
    if not _provider:
        return redirect('/')
    if request.args.get('error'):
        server_logger.warning('Login denied by provider: %s', request.args.get('error'))
        return redirect('/')
    code = request.args.get('code')
    if not code:
        server_logger.warning('OAuth callback without code')
        return redirect('/')
    if not expected_state or request.args.get('state') != expected_state:
        server_logger.warning('OAuth callback state mismatch')
        return redirect('/')

    try:
        identity = _provider.authenticate(code)
    except ProviderError as e:
        server_logger.warning('Login failed: %s', e)
        return redirect('/')

    _session_service.destroy(session.get(_SESSION_KEY))
    session[_SESSION_KEY] = _session_service.create(identity)
    server_logger.info('User %s (%s) logged in', identity['roblox_id'], identity.get('username'))
    return redirect('/')


@app.route('/auth/logout')
def auth_logout():
    _session_service.destroy(session.get(_SESSION_KEY))
    session.clear()
    return redirect('/')


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------

@app.route('/')
def index():
    """Serve the single-page front end."""
    return send_from_directory(_static_dir, 'index.html')


@app.route('/static/<path:filename>')
def static_files(filename: str):
    return send_from_directory(_static_dir, filename)


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------

@app.route('/api/user')
@require_login
def api_user():
    """Return the caller's record, creating it on first use."""
    if not _user_service:
        return jsonify({'error': 'Not initialized'}), 503
    try:
        record = _user_service.get_or_create(g.identity)
    except StoreError:
        return _storage_unavailable()
    return jsonify(record)


@app.route('/api/levels')
def api_levels():
    """List the configured experience's places.

    Returns a JSON list of ``{id, name, visits, playing, hearts}``; an empty
    list when Roblox has nothing for the universe.
    """
    if not _level_service:
        return jsonify({'error': 'Not initialized'}), 503
    try:
        levels = _level_service.list_levels()
    except ProviderError as e:
        server_logger.error('Failed to fetch levels: %s', e)
        return jsonify({'error': 'Failed to fetch levels'}), 500
    return jsonify(levels)


@app.route('/api/heart/<level_id>', methods=['POST', 'DELETE'])
@require_login
def api_heart(level_id: str):
    """Heart (POST) or un-heart (DELETE) a level."""
    if not _user_service:
        return jsonify({'error': 'Not initialized'}), 503
    try:
        if request.method == 'POST':
            _user_service.heart(g.identity, level_id)
        else:
            _user_service.unheart(g.identity, level_id)
    except StoreError:
        return _storage_unavailable()
    return jsonify({'success': True})


@app.route('/api/queue/<level_id>', methods=['POST', 'DELETE'])
@require_login
def api_queue(level_id: str):
    """Add (POST) or remove (DELETE) a level from the play queue."""
    if not _user_service:
        return jsonify({'error': 'Not initialized'}), 503
    try:
        if request.method == 'POST':
            _user_service.enqueue(g.identity, level_id)
        else:
            _user_service.dequeue(g.identity, level_id)
    except StoreError:
        return _storage_unavailable()
    return jsonify({'success': True})


@app.route('/api/profile', methods=['POST'])
@require_login
def api_profile():
    """Replace the caller's profile with the JSON body.

    Expected JSON body (any object; it replaces the old profile wholesale)::

        {"name": "builder", "avatar": "https://...", "bio": "..."}
    """
    if not _user_service:
        return jsonify({'error': 'Not initialized'}), 503
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Profile must be a JSON object'}), 400
    try:
        _user_service.update_profile(g.identity, data)
    except StoreError:
        return _storage_unavailable()
    return jsonify({'success': True})


def main():
    """Main entry point for the server"""
    colorama_init(autoreset=True)
    parser = argparse.ArgumentParser(description='LevelHub web server')
    parser.add_argument('--host', help='Interface to bind (overrides HOST)')
    parser.add_argument('--port', type=int, help='Port to listen on (overrides PORT)')
    parser.add_argument('--data-file', help='Path of the JSON store (overrides DATA_FILE)')
    parser.add_argument('--debug', action='store_true', help='Run Flask in debug mode')
    args = parser.parse_args()

    try:
        config = levelhub_config.load_config()
    except levelhub_config.ConfigError as e:
        print(f"{Fore.RED}Error: {e}")
        sys.exit(1)
    if args.host:
        config['host'] = args.host
    if args.port:
        config['port'] = args.port
    if args.data_file:
        config['data_file'] = args.data_file

    levelhub_config.setup_logging(str(config['log_level']))
    try:
        os.makedirs('logs', exist_ok=True)
        fh = logging.FileHandler('logs/levelhub.log')
        fh.setFormatter(logging.Formatter('[%(asctime)s] %(levelname)s %(name)s: %(message)s'))
        logging.getLogger('levelhub').addHandler(fh)
    except OSError:
        server_logger.warning('Could not create log file handler')

    errors = levelhub_config.validate_config(config)
    if errors:
        for err in errors:
            print(f"{Fore.RED}Error: {err}")
        print(f"{Fore.YELLOW}Set them in the environment or in a .env file next to the server.")
        sys.exit(1)

    init_services(config)

    print(f"{Style.BRIGHT}LevelHub running on http://{config['host']}:{config['port']}")
    app.run(host=str(config['host']), port=int(config['port']), debug=args.debug)


if __name__ == "__main__":
    main()
