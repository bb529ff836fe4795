import os

PNG = b"\x89PNG\r\n\x1a\n fake"


def test_gallery_images(client, settings, user_headers):
    resp = client.post("/api/v1/user/gallery", json={"title": "Progress"}, headers=user_headers)
    assert resp.status_code == 201, resp.text
    gallery_id = resp.json()["gallery"]["_id"]

    files = [("images", ("a.png", PNG, "image/png")), ("images", ("b.png", PNG, "image/png"))]
    resp = client.post(f"/api/v1/user/gallery/{gallery_id}/image", files=files, headers=user_headers)
    assert resp.status_code == 200, resp.text
    images = resp.json()["gallery"]["images"]
    assert len(images) == 2
    assert all(url.startswith("http://testserver/files/gallery/") for url in images)
    relative = images[0][len(settings.public_base_url) + 1:]
    assert os.path.exists(os.path.join(settings.upload_dir, relative))

    resp = client.request("DELETE", f"/api/v1/user/gallery/{gallery_id}/image", json={"images": [images[0]]},
                          headers=user_headers)
    assert resp.status_code == 200
    assert resp.json()["gallery"]["images"] == images[1:]

    resp = client.delete(f"/api/v1/user/gallery/{gallery_id}", headers=user_headers)
    assert resp.status_code == 200
    resp = client.get("/api/v1/user/gallery", params={"galleryID": gallery_id}, headers=user_headers)
    assert resp.status_code == 404


def test_bookmarks(client, plan, user_headers):
    day_id = plan["weeks"][0]["days"][0]["_id"]
    resp = client.post(f"/api/v1/user/bookmarks/{day_id}", headers=user_headers)
    assert resp.status_code == 200, resp.text
    # bookmarking twice keeps one entry
    resp = client.post(f"/api/v1/user/bookmarks/{day_id}", headers=user_headers)
    assert [d["_id"] for d in resp.json()["bookmarks"]] == [day_id]

    resp = client.get("/api/v1/user/bookmarks", headers=user_headers)
    assert resp.json()["bookmarks"][0]["day_name"] == "Legs"

    resp = client.delete(f"/api/v1/user/bookmarks/{day_id}", headers=user_headers)
    assert resp.json()["bookmarks"] == []
    resp = client.delete(f"/api/v1/user/bookmarks/{day_id}", headers=user_headers)
    assert resp.status_code == 404

    resp = client.post(f"/api/v1/user/bookmarks/{'0' * 24}", headers=user_headers)
    assert resp.status_code == 404
    assert resp.json()["message"] == "Day not found"


def test_measurements_keep_history(client, user_headers):
    resp = client.post("/api/v1/user/measurements", json={"waist": 82, "chest": 100}, headers=user_headers)
    assert resp.status_code == 200, resp.text
    resp = client.post("/api/v1/user/measurements", json={"waist": 80}, headers=user_headers)
    profile = resp.json()["fitness_profile"]
    assert profile["waist"] == [80, 82]
    assert profile["chest"] == [100]

    resp = client.post("/api/v1/user/measurements", json={"bookmarks": []}, headers=user_headers)
    assert resp.status_code == 400

    resp = client.get("/api/v1/user/fitness-profile", headers=user_headers)
    assert resp.json()["fitness_profile"]["waist"] == [80, 82]


def test_measurement_names_are_checked(client, user_headers):
    for body in ({"$weight": 80}, {"user.x": 1}, {"transformations.before": "x"}, {"waist": 80, "created_at": 1}, {}):
        resp = client.post("/api/v1/user/measurements", json=body, headers=user_headers)
        assert resp.status_code == 400, body
        assert resp.json()["status_code"] == "BAD_REQUEST"

    resp = client.post("/api/v1/user/measurements", json={"$weight": 80, "waist": 80}, headers=user_headers)
    assert resp.json()["fields"] == ["$weight"]
    # nothing was stored by the rejected requests
    resp = client.get("/api/v1/user/fitness-profile", headers=user_headers)
    assert resp.json()["fitness_profile"] is None


def test_transformation_and_profile_pic(client, user_headers):
    files = {"before": ("before.png", PNG, "image/png"), "after": ("after.jpg", PNG, "image/jpeg")}
    resp = client.post("/api/v1/user/image/transformation", files=files, data={"before_date": "2024-01-01"},
                       headers=user_headers)
    assert resp.status_code == 200, resp.text
    transformations = resp.json()["fitness_profile"]["transformations"]
    assert transformations["before"].endswith(".png")
    assert transformations["after"].endswith(".jpg")
    assert transformations["before_date"] == "2024-01-01"

    resp = client.put("/api/v1/user/profile-pic", files={"image": ("me.png", PNG, "image/png")}, headers=user_headers)
    assert resp.status_code == 200
    assert resp.json()["user"]["profile_pic"].startswith("http://testserver/files/profile/")

    resp = client.put("/api/v1/user/profile-pic", files={"image": ("me.txt", b"hi", "text/plain")},
                      headers=user_headers)
    assert resp.status_code == 400
