#!/usr/bin/env python3
"""
Tests for the HTTP endpoints using Flask's test client.
"""

import importlib.util
import io
import json
import os
import shutil
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import patch

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from multibucket.app import create_app  # noqa: E402
from multibucket.services.storage import MultiBucketSession, UrlService  # noqa: E402
from multibucket.services.storage.s3 import S3SigningBackend  # noqa: E402

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

PROVIDERS = [
    {
        'id': 's3-main', 'type': 's3', 'bucket': 'my-main-bucket', 'region': 'us-east-1',
        'accessKeyId': 'AKIAEXAMPLE', 'secretAccessKey': 'secret-key-example',
    },
    {
        'id': 'r2-cloudflare', 'type': 'r2', 'bucket': 'my-r2-bucket',
        'endpoint': 'https://account-id.r2.cloudflarestorage.com',
        'accessKeyId': 'R2-ACCESS-KEY', 'secretAccessKey': 'r2-secret-key-example',
    },
]


class TestUrlEndpoints(unittest.TestCase):

    def setUp(self):
        self.session = MultiBucketSession(providers=PROVIDERS)
        self.app = create_app(url_service=UrlService(self.session), start_watcher=False)
        self.client = self.app.test_client()

    def test_upload_url(self):
        response = self.client.post('/generate-upload-url', json={
            'filename': 'example.jpg', 'contentType': 'image/jpeg', 'path': 'uploads/images', 'expiry': 1800,
        })
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['provider'], 's3-main')
        self.assertTrue(data['key'].startswith('uploads/images/'))
        self.assertTrue(data['key'].endswith('-example.jpg'))
        self.assertIn('X-Amz-Expires=1800', data['uploadUrl'])
        self.assertTrue(data['publicUrl'].endswith(data['key']))

    def test_upload_url_requires_filename_and_content_type(self):
        response = self.client.post('/generate-upload-url', json={'filename': 'a.jpg'})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['error'], 'filename and contentType are required')

    def test_upload_url_with_unknown_provider(self):
        response = self.client.post('/generate-upload-url', json={
            'filename': 'a.jpg', 'contentType': 'image/jpeg', 'providerId': 'missing',
        })
        self.assertEqual(response.status_code, 404)
        self.assertIn('missing', response.get_json()['error'])

    def test_upload_url_without_providers(self):
        app = create_app(url_service=UrlService(MultiBucketSession()), start_watcher=False)
        response = app.test_client().post('/generate-upload-url', json={
            'filename': 'a.jpg', 'contentType': 'image/jpeg',
        })
        self.assertEqual(response.status_code, 503)

    def test_signing_failure_counts_an_error_for_the_provider(self):
        with patch.object(S3SigningBackend, 'sign', side_effect=RuntimeError('credentials rejected')):
            response = self.client.post('/generate-upload-url', json={
                'filename': 'a.jpg', 'contentType': 'image/jpeg',
            })

        self.assertEqual(response.status_code, 500)
        self.assertIn('credentials rejected', response.get_json()['error'])
        stats = {s['id']: s for s in self.client.get('/stats').get_json()['providerStats']}
        self.assertEqual(stats['s3-main']['errorCount'], 1)
        self.assertEqual(stats['s3-main']['errorRate'], '1.0000')
        self.assertEqual(stats['r2-cloudflare']['errorCount'], 0)

    def test_invalid_expiry_is_a_client_error(self):
        for expiry in ('abc', -5):
            response = self.client.post('/generate-upload-url', json={
                'filename': 'a.jpg', 'contentType': 'image/jpeg', 'expiry': expiry,
            })
            self.assertEqual(response.status_code, 400)
            self.assertIn('expiry', response.get_json()['error'])

        response = self.client.post('/generate-read-url', json={
            'key': 'a.jpg', 'bucket': 'my-main-bucket', 'expiry': 'soon',
        })
        self.assertEqual(response.status_code, 400)

        stats = self.client.get('/stats').get_json()
        self.assertEqual(stats['totalRequests'], 0)
        for provider_stats in stats['providerStats']:
            self.assertEqual(provider_stats['errorCount'], 0)

    def test_non_object_body_is_rejected(self):
        for url in ('/generate-upload-url', '/generate-read-url'):
            response = self.client.post(url, json=[1])
            self.assertEqual(response.status_code, 400)
            self.assertEqual(response.get_json()['error'], 'Request body must be a JSON object')

    def test_read_url(self):
        response = self.client.post('/generate-read-url', json={
            'key': 'uploads/images/123-example.jpg', 'bucket': 'my-r2-bucket',
        })
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['provider'], 'r2-cloudflare')
        self.assertIn('/my-r2-bucket/uploads/images/123-example.jpg', data['readUrl'])
        self.assertNotIn('publicUrl', data)

    def test_read_url_requires_key(self):
        response = self.client.post('/generate-read-url', json={'bucket': 'my-r2-bucket'})
        self.assertEqual(response.status_code, 400)

    def test_read_url_without_provider_or_bucket(self):
        response = self.client.post('/generate-read-url', json={'key': 'k'})
        self.assertEqual(response.status_code, 404)

    def test_stats(self):
        self.client.post('/generate-upload-url', json={'filename': 'a', 'contentType': 'text/plain'})
        data = self.client.get('/stats').get_json()
        self.assertEqual(data['providerCount'], 2)
        self.assertEqual(data['totalRequests'], 1)

    def test_health(self):
        data = self.client.get('/health').get_json()
        self.assertEqual(data['status'], 'ok')
        self.assertEqual(data['providers'], 2)
        self.assertIn('timestamp', data)
        self.assertIn('version', data)


class TestGenerateUrlScript(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        spec = importlib.util.spec_from_file_location(
            'generate_url', os.path.join(PROJECT_ROOT, 'scripts', 'generate_url.py'))
        cls.script = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(cls.script)

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp(prefix='multibucket_cli_')
        self.config_path = os.path.join(self.tmpdir, 'config.json')
        with open(self.config_path, 'w', encoding='utf-8') as f:
            json.dump({'providers': PROVIDERS, 'loadBalanceStrategy': 'round-robin'}, f)

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def _run(self, *argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = self.script.main(['--config', self.config_path, *argv])
        return code, out.getvalue(), err.getvalue()

    def test_upload(self):
        code, out, _ = self._run('upload', '--filename', 'report.pdf', '--content-type', 'application/pdf',
                                 '--provider-id', 'r2-cloudflare')
        self.assertEqual(code, 0)
        data = json.loads(out)
        self.assertEqual(data['provider'], 'r2-cloudflare')
        self.assertIsNone(data['publicUrl'])

    def test_read(self):
        code, out, _ = self._run('read', '--key', 'docs/a.txt', '--bucket', 'my-main-bucket', '--expiry', '60')
        self.assertEqual(code, 0)
        self.assertIn('X-Amz-Expires=60', json.loads(out)['readUrl'])

    def test_failure_exit_code(self):
        code, _, err = self._run('read', '--key', 'docs/a.txt', '--bucket', 'nope')
        self.assertEqual(code, 1)
        self.assertIn('ERROR', err)


if __name__ == '__main__':
    unittest.main()
