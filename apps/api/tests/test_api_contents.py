import pytest
from sqlalchemy.orm import Session

from skillforge.ai.errors import ModelInvocationError
from skillforge.core.config import settings
from skillforge.utils.messages import REVIEW_SKIPPED_DESCRIPTIONS

API = "/api/v1"
LESSON = (
    "Big-O notation describes how the running time of an algorithm grows with its input. "
    "Linear search is O(n) while binary search on sorted data is O(log n)."
)


def _upload_text(client, headers, model, title="Intro to Big-O", tags="algorithms, cs", description=None):
    model.queue({"is_valid": True, "description": description or f"{title}: " + "explains complexity. " * 20})
    response = client.post(
        f"{API}/contents",
        headers=headers,
        data={"title": title, "content_type": "text", "tags": tags, "text_body": LESSON},
    )
    assert response.status_code == 200, response.text
    return response.json()


def test_upload_text_body_uses_ai_description(client, auth_headers, model):
    content = _upload_text(client, auth_headers, model)

    assert content["tags"] == ["algorithms", "cs"]
    assert content["is_valid"] is True
    assert content["text_body"] == LESSON
    assert content["ai_description"].startswith("Intro to Big-O: explains complexity.")
    assert content["brief_summary"] == content["ai_description"][:200]
    assert content["download_url"] is None
    assert LESSON in model.calls[0]["prompt"]


def test_upload_video_is_stored_and_reviewed(client, auth_headers, model, platform, monkeypatch):
    monkeypatch.setattr(settings, "ai_review_media_types", ["video/"])
    model.queue({"is_valid": True, "description": "A short video on sorting."})

    response = client.post(
        f"{API}/contents",
        headers=auth_headers,
        data={"title": "Sorting in 60 seconds", "content_type": "video", "tags": "sorting"},
        files={"file": ("sorting clip.mp4", b"\x00\x00\x00\x18ftypmp42", "video/mp4")},
    )

    assert response.status_code == 200, response.text
    content = response.json()
    me = client.get(f"{API}/auth/me", headers=auth_headers).json()
    prefix = f"{settings.public_storage_url}/content/video/{me['id']}/"
    assert content["download_url"].startswith(prefix)
    assert content["download_url"].endswith("_sorting_clip.mp4")
    assert platform.storage.exists(content["download_url"][len(settings.public_storage_url) + 1 :])
    assert model.calls[0]["media"][0].startswith("data:video/mp4;base64,")


def test_upload_video_skips_review_when_model_lacks_video_input(client, auth_headers, model):
    response = client.post(
        f"{API}/contents",
        headers=auth_headers,
        data={"title": "Sorting in 60 seconds", "content_type": "video", "tags": "sorting"},
        files={"file": ("clip.mp4", b"\x00\x00\x00\x18ftypmp42", "video/mp4")},
    )

    assert response.status_code == 200
    assert response.json()["ai_description"] == REVIEW_SKIPPED_DESCRIPTIONS["unsupported"]
    assert model.calls == []


def test_upload_text_file_with_charset_is_reviewed(client, auth_headers, model):
    model.queue({"is_valid": True, "description": "Notes on search."})

    response = client.post(
        f"{API}/contents",
        headers=auth_headers,
        data={"title": "Search notes", "content_type": "text", "tags": "search"},
        files={"file": ("notes.txt", LESSON.encode(), "text/plain; charset=utf-8")},
    )

    assert response.status_code == 200
    assert response.json()["ai_description"] == "Notes on search."
    assert response.json()["text_body"] == LESSON
    assert len(model.calls) == 1
    assert LESSON in model.calls[0]["prompt"]


def test_failed_save_removes_stored_file(client, auth_headers, model, monkeypatch, tmp_path):
    model.queue({"is_valid": True, "description": "Notes."})

    def fail_commit(self):
        raise RuntimeError("database is gone")

    monkeypatch.setattr(Session, "commit", fail_commit)

    with pytest.raises(RuntimeError):
        client.post(
            f"{API}/contents",
            headers=auth_headers,
            data={"title": "Search notes", "content_type": "text", "tags": "search"},
            files={"file": ("notes.txt", LESSON.encode(), "text/plain")},
        )

    assert [path for path in (tmp_path / "storage").rglob("*") if path.is_file()] == []


def test_upload_falls_back_to_manual_description_when_ai_fails(client, auth_headers, model):
    model.queue(ModelInvocationError("quota"))

    response = client.post(
        f"{API}/contents",
        headers=auth_headers,
        data={
            "title": "Binary search notes",
            "content_type": "text",
            "tags": "search",
            "text_body": LESSON,
            "manual_description": "My notes on binary search.",
        },
    )

    assert response.status_code == 200
    assert response.json()["ai_description"] == "My notes on binary search."
    assert response.json()["is_valid"] is True


def test_upload_skips_ai_for_large_files(client, auth_headers, model, monkeypatch):
    monkeypatch.setattr(settings, "max_ai_file_bytes", 4)

    response = client.post(
        f"{API}/contents",
        headers=auth_headers,
        data={"title": "Long podcast", "content_type": "audio", "tags": "podcast"},
        files={"file": ("episode.mp3", b"\xff\xfb" * 10, "audio/mpeg")},
    )

    assert response.status_code == 200
    assert response.json()["ai_description"] == REVIEW_SKIPPED_DESCRIPTIONS["oversize"]
    assert model.calls == []


@pytest.mark.parametrize(
    "form, files",
    [
        ({"title": "Tiny", "content_type": "text", "tags": "x", "text_body": LESSON}, None),
        ({"title": "No file video", "content_type": "video", "tags": "x"}, None),
        ({"title": "Short text", "content_type": "text", "tags": "x", "text_body": "too short"}, None),
        ({"title": "Wrong type", "content_type": "image", "tags": "x", "text_body": LESSON}, None),
        ({"title": "No tags here", "content_type": "text", "tags": " , ", "text_body": LESSON}, None),
        (
            {"title": "Both inputs", "content_type": "text", "tags": "x", "text_body": LESSON},
            {"file": ("notes.txt", b"hello", "text/plain")},
        ),
    ],
)
def test_upload_validation(client, auth_headers, model, form, files):
    response = client.post(f"{API}/contents", headers=auth_headers, data=form, files=files)

    assert response.status_code == 400
    assert model.calls == []


def test_upload_rejects_oversized_text_file(client, auth_headers, monkeypatch):
    monkeypatch.setattr(settings, "max_text_file_bytes", 3)

    response = client.post(
        f"{API}/contents",
        headers=auth_headers,
        data={"title": "Big notes", "content_type": "text", "tags": "notes"},
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )

    assert response.status_code == 413


def test_text_file_becomes_text_body(client, auth_headers, model):
    model.queue({"is_valid": True, "description": "Notes."})

    response = client.post(
        f"{API}/contents",
        headers=auth_headers,
        data={"title": "Markdown notes", "content_type": "text", "tags": "notes"},
        files={"file": ("notes.md", LESSON.encode(), "text/markdown")},
    )

    assert response.json()["text_body"] == LESSON
    assert model.calls[0]["media"] is None


def test_search_filters(client, auth_headers, other_headers, model):
    first = _upload_text(client, auth_headers, model, title="Intro to Big-O", tags="algorithms")
    second = _upload_text(client, other_headers, model, title="Graph traversal", tags="graphs, Algorithms")
    alan = client.get(f"{API}/auth/me", headers=other_headers).json()

    def ids(**params):
        return {item["id"] for item in client.get(f"{API}/contents", params=params).json()["items"]}

    assert ids() == {first["id"], second["id"]}
    assert ids(q="graph") == {second["id"]}
    assert ids(q="turing") == {second["id"]}
    assert ids(tag="algorithms") == {first["id"], second["id"]}
    assert ids(tag="graphs") == {second["id"]}
    assert ids(author_id=alan["id"]) == {second["id"]}
    assert ids(type="video") == set()
    assert len(ids(limit=1)) == 1
    assert client.get(f"{API}/contents", params={"type": "image"}).status_code == 400
    assert client.get(f"{API}/contents", params={"limit": 51}).status_code == 422


def test_facets_are_cached_until_upload(client, auth_headers, model):
    _upload_text(client, auth_headers, model, tags="algorithms")
    facets = client.get(f"{API}/contents/facets").json()
    assert facets["tags"] == ["algorithms"]
    assert [a["full_name"] for a in facets["authors"]] == ["Ada Lovelace"]

    _upload_text(client, auth_headers, model, title="Dynamic programming", tags="dp")

    assert client.get(f"{API}/contents/facets").json()["tags"] == ["algorithms", "dp"]


def test_detail_and_profile_uploads(client, auth_headers, model):
    content = _upload_text(client, auth_headers, model)
    me = client.get(f"{API}/auth/me", headers=auth_headers).json()

    detail = client.get(f"{API}/contents/{content['id']}").json()
    profile = client.get(f"{API}/users/{me['id']}").json()

    assert detail["text_body"] == LESSON
    assert detail["uploader"]["full_name"] == "Ada Lovelace"
    assert [item["id"] for item in profile["recent_uploads"]] == [content["id"]]
    assert client.get(f"{API}/contents/missing").status_code == 404


def test_rating_recomputes_average(client, auth_headers, other_headers, model):
    content = _upload_text(client, auth_headers, model)
    url = f"{API}/contents/{content['id']}/rating"

    client.put(url, headers=auth_headers, json={"rating": 4})
    body = client.put(url, headers=other_headers, json={"rating": 5}).json()
    assert body["average_rating"] == 4.5
    assert body["total_ratings"] == 2

    body = client.put(url, headers=auth_headers, json={"rating": 2}).json()
    assert body["average_rating"] == 3.5
    assert body["total_ratings"] == 2
    assert client.get(url, headers=auth_headers).json()["your_rating"] == 2
    assert client.put(url, headers=auth_headers, json={"rating": 6}).status_code == 422


def test_comments(client, auth_headers, other_headers, model):
    content = _upload_text(client, auth_headers, model)
    url = f"{API}/contents/{content['id']}/comments"

    comment = client.post(url, headers=other_headers, json={"body": "Great explanation!"}).json()
    items = client.get(url).json()["items"]
    assert [c["body"] for c in items] == ["Great explanation!"]
    assert items[0]["author"]["full_name"] == "Alan Turing"

    assert client.delete(f"{url}/{comment['id']}", headers=auth_headers).status_code == 403
    assert client.delete(f"{url}/{comment['id']}", headers=other_headers).json() == {"ok": True}
    assert client.get(url).json()["items"] == []


def test_delete_is_owner_only_and_removes_file(client, auth_headers, other_headers, model, platform):
    model.queue({"is_valid": True, "description": "Audio lesson."})
    content = client.post(
        f"{API}/contents",
        headers=auth_headers,
        data={"title": "Audio lesson", "content_type": "audio", "tags": "audio"},
        files={"file": ("lesson.mp3", b"\xff\xfb\x90", "audio/mpeg")},
    ).json()
    key = content["download_url"][len(settings.public_storage_url) + 1 :]

    assert client.delete(f"{API}/contents/{content['id']}", headers=other_headers).status_code == 403
    assert client.delete(f"{API}/contents/{content['id']}", headers=auth_headers).json() == {"ok": True}
    assert not platform.storage.exists(key)
    assert client.get(f"{API}/contents/{content['id']}").status_code == 404


def test_chat_about_content(client, auth_headers, model):
    content = _upload_text(client, auth_headers, model)
    model.queue({"answer": "Binary search is O(log n)."})

    response = client.post(
        f"{API}/contents/{content['id']}/chat",
        headers=auth_headers,
        json={"question": "How fast is binary search?"},
    )

    assert response.json() == {"answer": "Binary search is O(log n)."}
    assert LESSON in model.calls[-1]["prompt"]


def test_quiz_for_content(client, auth_headers, model, sample_questions):
    content = _upload_text(client, auth_headers, model)
    model.queue({"questions": sample_questions})

    response = client.post(f"{API}/contents/{content['id']}/quiz", headers=auth_headers, json={"num_questions": 2})

    assert response.status_code == 200
    assert len(response.json()["questions"]) == 2
    assert response.json()["content_text"] == LESSON


def test_quiz_for_content_maps_model_failure(client, auth_headers, model):
    content = _upload_text(client, auth_headers, model)
    model.queue(ModelInvocationError("down"))

    response = client.post(f"{API}/contents/{content['id']}/quiz", headers=auth_headers, json={})

    assert response.status_code == 502
    assert response.json()["detail"] == "AI service unavailable"
