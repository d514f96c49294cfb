import os
import subprocess
import sys
from pathlib import Path


def test_root(client):
    """Test health check endpoint."""
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {"message": "Admin Posts API is running"}


def test_health_check(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_cors_preflight_allowed_origin(client):
    """Test the configured frontend origin passes preflight."""
    response = client.options(
        "/admin/posts",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "GET"
        }
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert response.headers["access-control-allow-credentials"] == "true"
    assert response.headers["access-control-max-age"] == "43200"


def test_cors_preflight_other_origin(client):
    """Test any other origin is refused."""
    response = client.options(
        "/admin/posts",
        headers={
            "Origin": "http://evil.example.com",
            "Access-Control-Request-Method": "GET"
        }
    )

    assert response.status_code == 400
    assert "access-control-allow-origin" not in response.headers


def test_startup_exits_when_setting_missing(tmp_path):
    """Test the server refuses to start without a required setting."""
    env = dict(os.environ)
    env.pop("AWS_BUCKET", None)
    env["PYTHONPATH"] = str(Path(__file__).resolve().parent.parent)

    # tmp_path keeps any local .env out of the way
    result = subprocess.run(
        [sys.executable, "-c", "import app.main"],
        cwd=tmp_path,
        env=env,
        capture_output=True,
        text=True,
        timeout=60
    )

    assert result.returncode == 1
    assert "AWS_BUCKET" in result.stdout
