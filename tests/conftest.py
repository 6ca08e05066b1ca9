import os
import tempfile

os.environ.pop("DATABASE_URL", None)
os.environ["ADMIN_SECRET"] = "test-admin-secret"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="prompt-gallery-uploads-")
os.environ["APP_ENV"] = "development"

import mongomock
import pytest
from fastapi.testclient import TestClient

from main import app, get_db
from media import get_asset_host

ADMIN_HEADERS = {"x-admin-key": "test-admin-secret"}
PNG = ("cover.png", b"\x89PNG\r\n\x1a\nfake-image-bytes", "image/png")


class FakeAssetHost:
    """Stands in for the remote host; records what it was sent."""

    def __init__(self):
        self.uploaded = []
        self.fail = False

    def upload(self, path):
        if self.fail:
            raise RuntimeError("asset host unavailable")
        name = os.path.basename(path)
        self.uploaded.append(name)
        return f"https://cdn.example.com/prompt-app/{name}"


@pytest.fixture
def db():
    return mongomock.MongoClient()["prompt_gallery_test"]


@pytest.fixture
def asset_host():
    return FakeAssetHost()


@pytest.fixture
def client(db, asset_host):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_asset_host] = lambda: asset_host
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def prompt_form():
    return {
        "title": "Neon city at dusk",
        "description": "Cyberpunk street scene",
        "promptText": "a neon-lit city street at dusk, rain, reflections",
        "aiModel": "Midjourney",
        "industry": "Gaming",
        "topic": "Cityscapes",
        "mediaType": "image",
    }


@pytest.fixture
def create_prompt(client, prompt_form):
    def _create(**overrides):
        form = {**prompt_form, **overrides}
        response = client.post("/api/prompts", data=form, files={"media": PNG}, headers=ADMIN_HEADERS)
        assert response.status_code == 201, response.text
        return response.json()["prompt"]
    return _create
