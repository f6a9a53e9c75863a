import httpx
import pytest

pytestmark = pytest.mark.integration


def test_ping(client: httpx.Client) -> None:
    response = client.get("/ping")
    assert response.status_code == 200
    assert response.text == "."


def test_upload_then_follow_link(client: httpx.Client) -> None:
    response = client.post("/", files={"file": ("notes.txt", b"integration notes", "text/plain")})
    assert response.status_code == 200
    token = response.json()["url"]
    assert token.startswith("/")
    assert len(token) == 6

    page = client.get(token)
    assert page.status_code == 200
    assert "notes.txt" in page.text

    redirect = client.get(f"{token}.txt")
    assert redirect.status_code == 301
    assert redirect.headers["location"].startswith("https://cdn.example.com/")
    assert redirect.headers["location"].endswith("%2Fnotes.txt")


def test_repeat_upload_is_deduplicated(client: httpx.Client, shared_store) -> None:
    files = {"file": ("again.bin", b"uploaded twice", "application/octet-stream")}
    before = shared_store.calls["put"]
    first = client.post("/", files=files)
    second = client.post("/", files=files)
    assert first.json() == second.json()
    assert shared_store.calls["put"] == before + 1


def test_unknown_token(client: httpx.Client) -> None:
    response = client.get("/zzzzzzzz")
    assert response.status_code == 404
    assert "No file found!" in response.text
