from datetime import datetime, timedelta, timezone

from conftest import ADMIN_HEADERS, PNG

BASE_TIME = datetime(2024, 5, 1, tzinfo=timezone.utc)


def insert_prompt(db, minutes=0, **fields):
    doc = {
        "title": fields.pop("title", f"prompt {minutes}"),
        "promptText": "text",
        "aiModel": "Midjourney",
        "industry": "Gaming",
        "topic": "Cityscapes",
        "mediaType": "image",
        "isTrending": False,
        "isPromptOfDay": False,
        "copyCount": 0,
        "mediaUrl": "https://cdn.example.com/x.png",
        "createdAt": BASE_TIME + timedelta(minutes=minutes),
    }
    doc.update(fields)
    return str(db["prompt"].insert_one(doc).inserted_id)


class TestCreatePrompt:
    def test_create_applies_defaults_and_trims(self, client, prompt_form):
        form = {**prompt_form, "title": "  Neon city  ", "isTrending": "true"}
        response = client.post("/api/prompts", data=form, files={"media": PNG}, headers=ADMIN_HEADERS)
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Prompt created successfully!"
        prompt = body["prompt"]
        assert prompt["title"] == "Neon city"
        assert prompt["negativePrompt"] == ""
        assert prompt["isTrending"] is True
        assert prompt["isPromptOfDay"] is False
        assert prompt["copyCount"] == 0
        assert prompt["mediaUrl"].startswith("https://cdn.example.com/")
        assert "id" in prompt and "_id" not in prompt

    def test_missing_fields_are_all_reported(self, client, db):
        form = {"title": "Only a title", "aiModel": "   "}
        response = client.post("/api/prompts", data=form, files={"media": PNG}, headers=ADMIN_HEADERS)
        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Validation failed"
        assert set(body["errors"]) == {"description", "promptText", "aiModel", "industry", "topic"}
        assert db["prompt"].count_documents({}) == 0

    def test_description_is_required(self, client, db, asset_host, prompt_form):
        form = {k: v for k, v in prompt_form.items() if k != "description"}
        response = client.post("/api/prompts", data=form, files={"media": PNG}, headers=ADMIN_HEADERS)
        assert response.status_code == 400
        assert response.json()["errors"] == ["description"]
        assert asset_host.uploaded == []
        assert db["prompt"].count_documents({}) == 0

    def test_unknown_media_type_rejected(self, client, prompt_form):
        form = {**prompt_form, "mediaType": "audio"}
        response = client.post("/api/prompts", data=form, files={"media": PNG}, headers=ADMIN_HEADERS)
        assert response.status_code == 400
        assert response.json()["errors"] == ["mediaType"]

    def test_missing_media_file(self, client, prompt_form):
        response = client.post("/api/prompts", data=prompt_form, headers=ADMIN_HEADERS)
        assert response.status_code == 400
        assert response.json() == {"message": "Media file required"}

    def test_new_prompt_of_day_takes_the_flag(self, client, db, create_prompt):
        first = create_prompt(title="First", isPromptOfDay="true")
        second = create_prompt(title="Second", isPromptOfDay="true")

        flagged = list(db["prompt"].find({"isPromptOfDay": True}))
        assert len(flagged) == 1
        assert str(flagged[0]["_id"]) == second["id"]
        assert client.get(f"/api/prompts/{first['id']}").json()["isPromptOfDay"] is False

    def test_regular_prompt_leaves_flag_alone(self, db, create_prompt):
        featured = create_prompt(title="Featured", isPromptOfDay="true")
        create_prompt(title="Plain")
        flagged = list(db["prompt"].find({"isPromptOfDay": True}))
        assert [str(p["_id"]) for p in flagged] == [featured["id"]]


class TestListPrompts:
    def test_newest_first(self, client, db):
        insert_prompt(db, 1, title="old")
        insert_prompt(db, 3, title="new")
        insert_prompt(db, 2, title="mid")
        titles = [p["title"] for p in client.get("/api/prompts").json()]
        assert titles == ["new", "mid", "old"]

    def test_filters_are_combined(self, client, db):
        insert_prompt(db, 1, title="match", aiModel="DALL-E", industry="Retail", isTrending=True)
        insert_prompt(db, 2, title="not trending", aiModel="DALL-E", industry="Retail")
        insert_prompt(db, 3, title="other model", aiModel="Midjourney", industry="Retail", isTrending=True)
        response = client.get("/api/prompts", params={"model": "DALL-E", "industry": "Retail", "trending": "true"})
        assert [p["title"] for p in response.json()] == ["match"]

    def test_all_means_unfiltered(self, client, db):
        insert_prompt(db, 1, aiModel="DALL-E")
        insert_prompt(db, 2, aiModel="Midjourney")
        response = client.get("/api/prompts", params={"model": "All", "topic": "All"})
        assert len(response.json()) == 2


class TestPromptOfTheDay:
    def test_flagged_prompt_wins(self, client, db):
        insert_prompt(db, 5, title="trending", isTrending=True)
        insert_prompt(db, 1, title="flagged", isPromptOfDay=True)
        assert client.get("/api/prompts/prompt-of-the-day").json()["title"] == "flagged"

    def test_falls_back_to_newest_trending(self, client, db):
        insert_prompt(db, 1, title="old trending", isTrending=True)
        insert_prompt(db, 2, title="new trending", isTrending=True)
        insert_prompt(db, 3, title="newest plain")
        assert client.get("/api/prompts/prompt-of-the-day").json()["title"] == "new trending"

    def test_falls_back_to_newest(self, client, db):
        insert_prompt(db, 1, title="older")
        insert_prompt(db, 2, title="newer")
        assert client.get("/api/prompts/prompt-of-the-day").json()["title"] == "newer"

    def test_none_available(self, client):
        response = client.get("/api/prompts/prompt-of-the-day")
        assert response.status_code == 200
        assert response.json() == {"message": "No prompts available"}


class TestSinglePrompt:
    def test_get_by_id(self, client, db):
        prompt_id = insert_prompt(db, title="single")
        response = client.get(f"/api/prompts/{prompt_id}")
        assert response.status_code == 200
        assert response.json()["id"] == prompt_id

    def test_unknown_and_malformed_ids(self, client):
        assert client.get("/api/prompts/0123456789abcdef01234567").status_code == 404
        response = client.get("/api/prompts/not-an-id")
        assert response.status_code == 404
        assert response.json() == {"message": "Prompt not found"}


class TestCopyCount:
    def test_increments_are_cumulative(self, client, db):
        prompt_id = insert_prompt(db)
        for expected in range(1, 6):
            response = client.post(f"/api/prompts/{prompt_id}/copy")
            assert response.status_code == 200
            assert response.json()["newCount"] == expected
        assert client.get(f"/api/prompts/{prompt_id}").json()["copyCount"] == 5

    def test_unknown_prompt(self, client):
        assert client.post("/api/prompts/0123456789abcdef01234567/copy").status_code == 404


class TestDeletePrompt:
    def test_hard_delete(self, client, db):
        prompt_id = insert_prompt(db)
        response = client.delete(f"/api/prompts/{prompt_id}", headers=ADMIN_HEADERS)
        assert response.status_code == 200
        assert response.json() == {"message": "Deleted successfully"}
        assert db["prompt"].count_documents({}) == 0
        assert client.get(f"/api/prompts/{prompt_id}").status_code == 404

    def test_delete_unknown(self, client):
        response = client.delete("/api/prompts/0123456789abcdef01234567", headers=ADMIN_HEADERS)
        assert response.status_code == 404
