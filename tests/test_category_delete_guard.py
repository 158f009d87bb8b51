def _create_category(client, name):
    r = client.post("/categories", json={"name": name})
    assert r.status_code == 201, r.text
    return r.json()


def test_delete_category_blocked_when_assets_exist(client):
    cat = _create_category(client, "Cable")

    r = client.post("/assets", json={"name": "HDMI", "category_id": cat["id"]})
    assert r.status_code == 201, r.text
    asset_id = r.json()["id"]

    r = client.delete(f"/categories/{cat['id']}")
    assert r.status_code == 409
    assert "1 associated assets" in r.json()["detail"]

    # still there
    assert client.get(f"/categories/{cat['id']}").status_code == 200

    # once the asset is gone the category can go too
    assert client.delete(f"/assets/{asset_id}").status_code == 204
    assert client.delete(f"/categories/{cat['id']}").status_code == 204
    assert client.get(f"/categories/{cat['id']}").status_code == 404


def test_delete_missing_category_is_404(client):
    r = client.delete("/categories/999999")
    assert r.status_code == 404
    assert r.json()["detail"] == "category not found (id=999999)"


def test_asset_with_unknown_category_is_409(client):
    r = client.post("/assets", json={"name": "Orphan", "category_id": 999999})
    assert r.status_code == 409
    assert client.get("/assets").json() == []
