"""
Tests for the live API data source.
"""
import itertools
import logging
import threading
import time
import unittest
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import Mock, patch

import requests
import urllib3

from .live_api import LiveAPIDataSource
from ..core.config import PureFAConfig
from ..core.errors import AuthError, UnexpectedStatusError, TransportError, DecodeError


def make_response(status_code=200, body=b'[]'):
    response = Mock()
    response.status_code = status_code
    chunks = itertools.cycle([body, b''])
    response.raw.read1.side_effect = lambda *args, **kwargs: next(chunks)
    return response


class DripHandler(BaseHTTPRequestHandler):
    """Sends the headers at once, then the body one byte at a time."""

    body = b'[{"name":"vol1","serial":"S1","size":1,"created":"c"}]'
    delay = 0.0

    def do_GET(self):
        self.send_response(200)
        self.send_header('Content-Type', 'application/json')
        self.send_header('Content-Length', str(len(self.body)))
        self.end_headers()
        self.wfile.flush()
        try:
            for i in range(len(self.body)):
                self.wfile.write(self.body[i:i + 1])
                self.wfile.flush()
                time.sleep(self.delay)
        except (BrokenPipeError, ConnectionResetError):
            pass

    def log_message(self, format, *args):
        pass


class TestLiveAPIDataSource(unittest.TestCase):
    """Test cases for request building and response classification."""

    def setUp(self):
        self.config = PureFAConfig(array='purefa1.example.com', api_token='55b0bf09', http_timeout=4)
        self.session = Mock()
        self.datasource = LiveAPIDataSource(self.config, session=self.session)

    def test_session_carries_token_header(self):
        datasource = LiveAPIDataSource(self.config)
        try:
            self.assertEqual(datasource.session.headers['Authorization'], 'Token 55b0bf09')
            self.assertTrue(datasource.session.verify)
        finally:
            datasource.cleanup()

    def test_session_uses_ca_bundle(self):
        config = PureFAConfig(array='a', api_token='t', tls_ca='/etc/ssl/purefa-ca.pem')
        datasource = LiveAPIDataSource(config)
        self.assertEqual(datasource.session.verify, '/etc/ssl/purefa-ca.pem')
        datasource.cleanup()

    def test_tls_validation_disabled(self):
        config = PureFAConfig(array='a', api_token='t', tls_validation='none')
        with patch('urllib3.disable_warnings') as disable_warnings:
            datasource = LiveAPIDataSource(config)
        self.assertFalse(datasource.session.verify)
        disable_warnings.assert_called_once()
        datasource.cleanup()

    def test_timeouts(self):
        self.assertIsInstance(self.datasource.timeout, urllib3.Timeout)
        self.assertEqual(self.datasource.timeout.total, 4)
        self.assertEqual(self.datasource.timeout.read_timeout, 3.0)

    def test_list_volumes_request(self):
        self.session.get.return_value = make_response(200, b'[{"name":"vol1","serial":"S1","size":1024,"created":"c"}]')
        volumes = self.datasource.list_volumes()

        self.assertEqual([v.name for v in volumes], ['vol1'])
        args, kwargs = self.session.get.call_args
        self.assertEqual(args[0], 'https://purefa1.example.com/api/1.15/volume')
        self.assertIsNone(kwargs['params'])
        self.assertIs(kwargs['timeout'], self.datasource.timeout)
        self.assertTrue(kwargs['stream'])

    def test_response_closed_on_success(self):
        response = make_response(200, b'[]')
        self.session.get.return_value = response
        self.datasource.list_volumes()
        response.close.assert_called_once()

    def test_response_closed_on_decode_failure(self):
        response = make_response(200, b'not-json')
        self.session.get.return_value = response
        with self.assertRaises(DecodeError):
            self.datasource.list_volumes()
        response.close.assert_called_once()

    def test_forbidden(self):
        response = make_response(403)
        self.session.get.return_value = response
        with self.assertRaises(AuthError):
            self.datasource.list_volumes()
        response.close.assert_called_once()

    def test_unexpected_status(self):
        self.session.get.return_value = make_response(404)
        with self.assertRaises(UnexpectedStatusError) as ctx:
            self.datasource.list_volumes()
        self.assertEqual(ctx.exception.status_code, 404)

    def test_transport_errors_are_wrapped(self):
        for cause in (requests.ConnectionError("refused"), requests.Timeout("slow"),
                      requests.exceptions.SSLError("bad cert")):
            self.session.get.side_effect = cause
            with self.assertRaises(TransportError) as ctx:
                self.datasource.list_volumes()
            self.assertIs(ctx.exception.__cause__, cause)

    def test_volume_performance_request(self):
        self.session.get.return_value = make_response(
            200, b'[{"name":"db/vol 1","reads_per_sec":7,"usec_per_read_op":150}]')
        sample = self.datasource.volume_performance('db/vol 1')

        self.assertEqual(sample.reads_per_sec, 7)
        args, kwargs = self.session.get.call_args
        self.assertEqual(args[0], 'https://purefa1.example.com/api/1.15/volume/db/vol%201')
        self.assertEqual(kwargs['params'], {'action': 'monitor'})

    def test_pod_volume_name_kept_in_path(self):
        self.session.get.return_value = make_response(200, b'[{"name":"pod1::vol1","reads_per_sec":1}]')
        self.datasource.volume_performance('pod1::vol1')
        self.assertEqual(self.session.get.call_args[0][0], 'https://purefa1.example.com/api/1.15/volume/pod1::vol1')

    def test_body_read_errors_are_wrapped(self):
        response = make_response(200)
        response.raw.read1.side_effect = urllib3.exceptions.ReadTimeoutError(None, None, "read timed out")
        self.session.get.return_value = response
        with self.assertRaises(TransportError):
            self.datasource.list_volumes()
        response.close.assert_called_once()

    def test_volume_performance_forbidden(self):
        self.session.get.return_value = make_response(403)
        with self.assertRaises(AuthError):
            self.datasource.volume_performance('vol1')


class TestRequestDeadline(unittest.TestCase):
    """Test cases against a local HTTP server that controls the body pace."""

    def start_server(self, delay):
        handler = type('Handler', (DripHandler,), {'delay': delay})
        self.server = ThreadingHTTPServer(('127.0.0.1', 0), handler)
        thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        thread.start()
        self.addCleanup(self.server.server_close)
        self.addCleanup(self.server.shutdown)

        host, port = self.server.server_address
        config = PureFAConfig(api_token='t', base_url=f"http://{host}:{port}/api/1.15", http_timeout=1)
        datasource = LiveAPIDataSource(config)
        datasource.session.trust_env = False
        self.addCleanup(datasource.cleanup)
        return datasource

    def test_complete_body_within_deadline(self):
        datasource = self.start_server(delay=0)
        volumes = datasource.list_volumes()
        self.assertEqual([v.name for v in volumes], ['vol1'])

    def test_slow_body_exceeds_deadline(self):
        datasource = self.start_server(delay=0.3)
        start = time.monotonic()
        with self.assertRaises(TransportError):
            datasource.list_volumes()
        self.assertLess(time.monotonic() - start, 2.5)


if __name__ == '__main__':
    logging.basicConfig(level=logging.ERROR)
    unittest.main()
