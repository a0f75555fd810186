"""Tests for the /api/quotes/{quote_id} version endpoints."""

from tests.factories import as_decimal, make_item, make_quote_payload

TILING = make_item(job="Tiling", room="Bath", quantity=10, unit_price=50)
PAINTING = make_item(job="Painting", room="Bath", quantity=20, unit_price=10)


def _kitchen(client) -> int:
    """Create "Kitchen" and save one edit: snapshot 1 stored, version 2 live."""
    quote_id = client.post(
        "/api/quotes/save", json=make_quote_payload(name="Kitchen", total="1000", items=[TILING])
    ).json()["quote_id"]
    client.post(
        "/api/quotes/save",
        json=make_quote_payload(id=quote_id, name="Kitchen", total="1200", items=[TILING, PAINTING]),
    )
    return quote_id


class TestVersions:

    def test_update_creates_version(self, client):
        quote_id = _kitchen(client)

        resp = client.get(f"/api/quotes/{quote_id}/versions")
        assert resp.status_code == 200
        versions = resp.json()
        assert [v["version_num"] for v in versions] == [1]
        assert versions[0]["change_summary"] == "Initial version"
        assert versions[0]["item_count"] == 1

    def test_get_version(self, client):
        quote_id = _kitchen(client)

        resp = client.get(f"/api/quotes/{quote_id}/versions/1")
        assert resp.status_code == 200
        version = resp.json()
        assert version["quote_id"] == quote_id
        assert as_decimal(version["total"]) == as_decimal("1000")
        assert [i["job"] for i in version["items"]] == ["Tiling"]
        assert version["is_current"] is False

    def test_get_current_version(self, client):
        quote_id = _kitchen(client)
        version = client.get(f"/api/quotes/{quote_id}/versions/2").json()
        assert version["is_current"] is True
        assert len(version["items"]) == 2

    def test_unknown_version_returns_404(self, client):
        quote_id = _kitchen(client)
        resp = client.get(f"/api/quotes/{quote_id}/versions/99")
        assert resp.status_code == 404
        assert resp.json()["error"] == "VERSION_NOT_FOUND"

    def test_versions_404_for_nonexistent_quote(self, client):
        resp = client.get("/api/quotes/9999/versions")
        assert resp.status_code == 404

    def test_versions_403_for_other_owner(self, client):
        quote_id = _kitchen(client)
        resp = client.get(f"/api/quotes/{quote_id}/versions", headers={"X-Owner-Id": "intruder"})
        assert resp.status_code == 403


class TestCompare:

    def test_compare_reports_added_item(self, client):
        quote_id = _kitchen(client)

        resp = client.get(f"/api/quotes/{quote_id}/compare", params={"v1": 1, "v2": 2})
        assert resp.status_code == 200
        data = resp.json()
        assert [i["job"] for i in data["items"]["added"]] == ["Painting"]
        assert data["items"]["removed"] == []
        assert data["items"]["modified"] == []
        assert as_decimal(data["header"]["total_delta"]) == as_decimal("200")
        assert data["header"]["item_count_delta"] == 1

    def test_compare_job_rename_is_modified(self, client):
        quote_id = client.post(
            "/api/quotes/save", json=make_quote_payload(items=[make_item(job="Tiling")])
        ).json()["quote_id"]
        client.post(
            "/api/quotes/save",
            json=make_quote_payload(id=quote_id, items=[make_item(job="Floor tiling")]),
        )

        data = client.get(f"/api/quotes/{quote_id}/compare", params={"v1": 1, "v2": 2}).json()
        assert data["items"]["added"] == []
        assert data["items"]["removed"] == []
        [pair] = data["items"]["modified"]
        assert pair["old"]["job"] == "Tiling"
        assert pair["new"]["job"] == "Floor tiling"

    def test_compare_requires_both_versions(self, client):
        quote_id = _kitchen(client)
        resp = client.get(f"/api/quotes/{quote_id}/compare", params={"v1": 1})
        assert resp.status_code == 422


class TestRestore:

    def test_restore_scenario(self, client):
        quote_id = _kitchen(client)

        resp = client.post(f"/api/quotes/{quote_id}/versions/1/restore")
        assert resp.status_code == 200
        assert resp.json() == {"quote_id": quote_id, "restored_from": 1, "version_num": 3}

        quote = client.get(f"/api/quotes/{quote_id}").json()
        assert quote["current_version"] == 3
        assert as_decimal(quote["total"]) == as_decimal("1000")
        assert [i["job"] for i in quote["items"]] == ["Tiling"]

        versions = client.get(f"/api/quotes/{quote_id}/versions").json()
        assert [v["version_num"] for v in versions] == [2, 1]

    def test_restore_unknown_version_returns_404(self, client):
        quote_id = _kitchen(client)
        resp = client.post(f"/api/quotes/{quote_id}/versions/50/restore")
        assert resp.status_code == 404

    def test_busy_returns_409_with_retry_after(self, client, monkeypatch):
        from quoteledger.core.config import settings
        from quoteledger.services.locks import quote_locks

        quote_id = _kitchen(client)
        monkeypatch.setattr(settings, "lock_timeout_seconds", 0.05)

        with quote_locks.hold(quote_id):
            resp = client.post(f"/api/quotes/{quote_id}/versions/1/restore")

        assert resp.status_code == 409
        assert resp.json()["error"] == "BUSY"
        assert resp.headers["retry-after"] == "1"
