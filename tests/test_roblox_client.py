#!/usr/bin/env python3
"""
Tests for roblox_client.py (no real HTTP).

Run with:
    python -m pytest tests/test_roblox_client.py
"""
import os
import sys
import unittest
from unittest.mock import MagicMock, patch

import requests

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from identity_provider import IdentityProvider, ProviderError
from roblox_client import (
    RobloxAPIError,
    RobloxAuthError,
    RobloxGamesClient,
    RobloxIdentityProvider,
)


# ===========================================================================
# Helpers
# ===========================================================================

def _ok_resp(body):
    resp = MagicMock()
    resp.status_code = 200
    resp.json.return_value = body
    resp.raise_for_status.return_value = None
    return resp


def _err_resp(status=500):
    resp = MagicMock()
    resp.status_code = status
    resp.raise_for_status.side_effect = requests.HTTPError(response=resp)
    return resp


def _bad_json_resp():
    resp = MagicMock()
    resp.status_code = 200
    resp.raise_for_status.return_value = None
    resp.json.side_effect = ValueError('Expecting value')
    return resp


def _provider():
    return RobloxIdentityProvider('rbx_id', 'rbx_secret', 'http://localhost:3000/auth/callback')


# ===========================================================================
# RobloxIdentityProvider
# ===========================================================================

class TestRobloxIdentityProviderInit(unittest.TestCase):

    def test_requires_client_id(self):
        with self.assertRaises(ValueError):
            RobloxIdentityProvider('', 'secret', 'http://localhost/cb')

    def test_requires_client_secret(self):
        with self.assertRaises(ValueError):
            RobloxIdentityProvider('id', '', 'http://localhost/cb')

    def test_is_identity_provider(self):
        p = _provider()
        self.assertIsInstance(p, IdentityProvider)
        self.assertEqual(p.get_provider_name(), 'roblox')

    def test_errors_share_provider_base(self):
        self.assertTrue(issubclass(RobloxAuthError, ProviderError))
        self.assertTrue(issubclass(RobloxAPIError, ProviderError))


class TestBuildAuthUrl(unittest.TestCase):

    def test_points_at_roblox_authorize(self):
        url = _provider().build_auth_url('csrf123')
        self.assertTrue(url.startswith('https://apis.roblox.com/oauth/v1/authorize?'))

    def test_contains_client_state_and_code_type(self):
        url = _provider().build_auth_url('csrf123')
        self.assertIn('client_id=rbx_id', url)
        self.assertIn('state=csrf123', url)
        self.assertIn('response_type=code', url)

    def test_requests_openid_profile_scopes(self):
        url = _provider().build_auth_url()
        self.assertIn('scope=openid+profile', url)
        self.assertNotIn('state=', url)

    def test_redirect_uri_is_encoded(self):
        url = _provider().build_auth_url()
        self.assertIn('redirect_uri=http%3A%2F%2Flocalhost%3A3000%2Fauth%2Fcallback', url)


class TestExchangeCode(unittest.TestCase):

    @patch('roblox_client.requests.Session')
    def test_returns_access_token(self, mock_session_cls):
        mock_session = MagicMock()
        mock_session.post.return_value = _ok_resp({'access_token': 'tok', 'expires_in': 900})
        mock_session_cls.return_value = mock_session
        self.assertEqual(_provider().exchange_code('abc'), 'tok')

    @patch('roblox_client.requests.Session')
    def test_posts_authorization_code_grant(self, mock_session_cls):
        mock_session = MagicMock()
        mock_session.post.return_value = _ok_resp({'access_token': 'tok'})
        mock_session_cls.return_value = mock_session
        _provider().exchange_code('abc')
        args, kwargs = mock_session.post.call_args
        self.assertEqual(args[0], 'https://apis.roblox.com/oauth/v1/token')
        self.assertEqual(kwargs['data']['grant_type'], 'authorization_code')
        self.assertEqual(kwargs['data']['code'], 'abc')
        self.assertEqual(kwargs['data']['client_secret'], 'rbx_secret')

    @patch('roblox_client.requests.Session')
    def test_network_error_raises(self, mock_session_cls):
        mock_session = MagicMock()
        mock_session.post.side_effect = requests.ConnectionError('down')
        mock_session_cls.return_value = mock_session
        with self.assertRaises(RobloxAuthError):
            _provider().exchange_code('abc')

    @patch('roblox_client.requests.Session')
    def test_non_2xx_raises(self, mock_session_cls):
        mock_session = MagicMock()
        mock_session.post.return_value = _err_resp(400)
        mock_session_cls.return_value = mock_session
        with self.assertRaises(RobloxAuthError):
            _provider().exchange_code('bad')

    @patch('roblox_client.requests.Session')
    def test_missing_token_raises(self, mock_session_cls):
        mock_session = MagicMock()
        mock_session.post.return_value = _ok_resp({'token_type': 'Bearer'})
        mock_session_cls.return_value = mock_session
        with self.assertRaises(RobloxAuthError):
            _provider().exchange_code('abc')

    @patch('roblox_client.requests.Session')
    def test_malformed_json_raises(self, mock_session_cls):
        mock_session = MagicMock()
        mock_session.post.return_value = _bad_json_resp()
        mock_session_cls.return_value = mock_session
        with self.assertRaises(RobloxAuthError):
            _provider().exchange_code('abc')


class TestFetchIdentity(unittest.TestCase):

    @patch('roblox_client.requests.Session')
    def test_returns_identity_with_string_id(self, mock_session_cls):
        mock_session = MagicMock()
        mock_session.get.return_value = _ok_resp({'id': 42, 'name': 'builderman'})
        mock_session_cls.return_value = mock_session
        identity = _provider().fetch_identity('tok')
        self.assertEqual(identity, {
            'access_token': 'tok', 'roblox_id': '42', 'username': 'builderman',
        })

    @patch('roblox_client.requests.Session')
    def test_sends_bearer_token(self, mock_session_cls):
        mock_session = MagicMock()
        mock_session.get.return_value = _ok_resp({'id': 1, 'name': 'x'})
        mock_session_cls.return_value = mock_session
        _provider().fetch_identity('tok')
        _, kwargs = mock_session.get.call_args
        self.assertEqual(kwargs['headers']['Authorization'], 'Bearer tok')

    @patch('roblox_client.requests.Session')
    def test_missing_id_raises(self, mock_session_cls):
        mock_session = MagicMock()
        mock_session.get.return_value = _ok_resp({'name': 'nobody'})
        mock_session_cls.return_value = mock_session
        with self.assertRaises(RobloxAuthError):
            _provider().fetch_identity('tok')

    @patch('roblox_client.requests.Session')
    def test_unauthorized_raises(self, mock_session_cls):
        mock_session = MagicMock()
        mock_session.get.return_value = _err_resp(401)
        mock_session_cls.return_value = mock_session
        with self.assertRaises(RobloxAuthError):
            _provider().fetch_identity('expired')

    @patch('roblox_client.requests.Session')
    def test_authenticate_chains_exchange_and_lookup(self, mock_session_cls):
        mock_session = MagicMock()
        mock_session.post.return_value = _ok_resp({'access_token': 'tok'})
        mock_session.get.return_value = _ok_resp({'id': 7, 'name': 'seven'})
        mock_session_cls.return_value = mock_session
        identity = _provider().authenticate('code')
        self.assertEqual(identity['roblox_id'], '7')
        self.assertEqual(identity['access_token'], 'tok')


# ===========================================================================
# RobloxGamesClient
# ===========================================================================

class TestRobloxGamesClient(unittest.TestCase):

    @patch('roblox_client.requests.Session')
    def test_returns_data_list(self, mock_session_cls):
        mock_session = MagicMock()
        mock_session.get.return_value = _ok_resp({'data': [{'id': 1, 'name': 'Obby'}]})
        mock_session_cls.return_value = mock_session
        games = RobloxGamesClient().get_games(['1'])
        self.assertEqual(games, [{'id': 1, 'name': 'Obby'}])

    @patch('roblox_client.requests.Session')
    def test_passes_universe_ids(self, mock_session_cls):
        mock_session = MagicMock()
        mock_session.get.return_value = _ok_resp({'data': []})
        mock_session_cls.return_value = mock_session
        RobloxGamesClient().get_games(['1', '2'])
        _, kwargs = mock_session.get.call_args
        self.assertEqual(kwargs['params'], {'universeIds': '1,2'})

    @patch('roblox_client.requests.Session')
    def test_missing_data_is_empty(self, mock_session_cls):
        mock_session = MagicMock()
        mock_session.get.return_value = _ok_resp({})
        mock_session_cls.return_value = mock_session
        self.assertEqual(RobloxGamesClient().get_games(['1']), [])

    @patch('roblox_client.requests.Session')
    def test_http_error_raises(self, mock_session_cls):
        mock_session = MagicMock()
        mock_session.get.return_value = _err_resp(503)
        mock_session_cls.return_value = mock_session
        with self.assertRaises(RobloxAPIError):
            RobloxGamesClient().get_games(['1'])

    @patch('roblox_client.requests.Session')
    def test_network_error_raises(self, mock_session_cls):
        mock_session = MagicMock()
        mock_session.get.side_effect = requests.Timeout('slow')
        mock_session_cls.return_value = mock_session
        with self.assertRaises(RobloxAPIError):
            RobloxGamesClient().get_games(['1'])

    @patch('roblox_client.requests.Session')
    def test_malformed_json_raises(self, mock_session_cls):
        mock_session = MagicMock()
        mock_session.get.return_value = _bad_json_resp()
        mock_session_cls.return_value = mock_session
        with self.assertRaises(RobloxAPIError):
            RobloxGamesClient().get_games(['1'])

    @patch('roblox_client.requests.Session')
    def test_non_list_data_raises(self, mock_session_cls):
        mock_session = MagicMock()
        mock_session.get.return_value = _ok_resp({'data': {'id': 1}})
        mock_session_cls.return_value = mock_session
        with self.assertRaises(RobloxAPIError):
            RobloxGamesClient().get_games(['1'])


if __name__ == '__main__':
    unittest.main()
