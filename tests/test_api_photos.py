def test_upload_and_list_gallery(client, storage, png_bytes):
    response = client.post(
        "/photos/",
        files=[
            ("files", ("first.png", png_bytes, "image/png")),
            ("files", ("second.png", png_bytes, "image/png")),
        ],
        data={"captions": ["our first date", "the lake"]},
    )
    assert response.status_code == 201, response.text
    report = response.json()
    assert report["success_count"] == 2
    assert report["failures"] == []

    gallery = client.get("/photos/").json()
    assert [p["file_name"] for p in gallery] == ["second.png", "first.png"]
    assert gallery[1]["caption"] == "our first date"
    assert len(storage.objects) == 2


def test_partial_batch_reports_failures(client, storage, png_bytes):
    storage.fail_on = {"broken"}
    response = client.post(
        "/photos/",
        files=[
            ("files", ("ok.png", png_bytes, "image/png")),
            ("files", ("broken.png", png_bytes, "image/png")),
            ("files", ("readme.txt", b"text", "text/plain")),
        ],
    )
    assert response.status_code == 201
    report = response.json()
    assert report["success_count"] == 1
    assert [f["file_name"] for f in report["failures"]] == ["broken.png", "readme.txt"]


def test_nothing_uploaded_is_an_error(client):
    response = client.post("/photos/", files=[("files", ("a.txt", b"nope", "text/plain"))])
    assert response.status_code == 400
    assert response.json()["detail"]["failures"][0]["file_name"] == "a.txt"


def test_shuffle_keeps_every_photo(client, png_bytes):
    files = [("files", (f"p{i}.png", png_bytes, "image/png")) for i in range(6)]
    client.post("/photos/", files=files)

    ordered = client.get("/photos/").json()
    shuffled = client.get("/photos/", params={"shuffle": "true"}).json()
    assert sorted(p["id"] for p in shuffled) == sorted(p["id"] for p in ordered)


def test_single_photo(client, png_bytes):
    report = client.post("/photos/", files=[("files", ("one.png", png_bytes, "image/png"))]).json()
    photo_id = report["uploaded"][0]["id"]

    assert client.get(f"/photos/{photo_id}").json()["file_name"] == "one.png"
    assert client.get("/photos/1").status_code == 404


def test_gallery_fails_with_502_when_database_is_unavailable(broken_client):
    response = broken_client.get("/photos/")
    assert response.status_code == 502
    assert response.json()["detail"] == "Could not load photos"
