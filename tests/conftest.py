"""Shared fixtures for file manager tests."""

import pytest
from fastapi.testclient import TestClient

from minifm_backend import FileManager, FileManagerSettings, create_app


@pytest.fixture
def root(tmp_path):
    """Create a small served tree.

    Layout::

        root/
          a.txt           "alpha"
          docs/
            readme.txt    "hello docs"
            nested/
              deep.txt    "deep"
          empty/
    """
    base = tmp_path / 'root'
    (base / 'docs' / 'nested').mkdir(parents=True)
    (base / 'empty').mkdir()
    (base / 'a.txt').write_text('alpha', encoding='utf-8')
    (base / 'docs' / 'readme.txt').write_text('hello docs', encoding='utf-8')
    (base / 'docs' / 'nested' / 'deep.txt').write_text('deep', encoding='utf-8')
    return base


@pytest.fixture
def zip_dir(tmp_path):
    path = tmp_path / 'zips'
    path.mkdir()
    return path


@pytest.fixture
def manager(root, zip_dir):
    return FileManager(root, zip_dir=zip_dir, max_upload_bytes=1024)


def _settings(root, zip_dir, integration):
    return FileManagerSettings(
        root=root,
        url_prefix='/filemanager',
        zip_dir=zip_dir,
        max_upload_bytes=1024,
        integration=integration,
    )


@pytest.fixture
def client(root, zip_dir):
    """Test client for the endpoint-style integration."""
    app = create_app(_settings(root, zip_dir, 'router'))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def middleware_client(root, zip_dir):
    """Test client for the middleware-style integration."""
    app = create_app(_settings(root, zip_dir, 'middleware'))

    @app.get('/filemanager/fallback')
    async def fallback():
        return {'handled_by': 'next'}

    with TestClient(app) as test_client:
        yield test_client
