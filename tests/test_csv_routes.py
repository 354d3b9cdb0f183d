import pytest


VEHICLE_CSV = (
    "customer-id,contactPerson-firstName,vehicleProperties-type,startCity\n"
    "1,Ann,tank truck,Bremen\n"
    "2,Bob,grain truck,Kiel\n"
)


def _upload(name: str, content: str, content_type: str = "text/csv"):
    return {"csvFile": (name, content.encode("utf-8"), content_type)}


@pytest.mark.asyncio
async def test_upload_replaces_file_and_keeps_backup(client, hub_settings):
    r = await client.post("/api/csv/upload/vehicle", files=_upload("my_trucks.csv", VEHICLE_CSV))
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["file"]["name"] == "my_trucks.csv"
    assert body["file"]["storedAs"] == "vehicle_offers.csv"
    assert body["file"]["rows"] == 2

    current = hub_settings.data_dir / "vehicle_offers.csv"
    assert current.read_text(encoding="utf-8") == VEHICLE_CSV
    backups = list(hub_settings.data_dir.glob("vehicle_offers_backup_*.csv"))
    assert len(backups) == 1
    assert "Tomasz" in backups[0].read_text(encoding="utf-8")


@pytest.mark.asyncio
async def test_upload_validation(client):
    r = await client.post("/api/csv/upload/trucks", files=_upload("x.csv", VEHICLE_CSV))
    assert r.status_code == 400
    assert "Invalid type" in r.json()["error"]

    r = await client.post("/api/csv/upload/vehicle", files=_upload("x.txt", VEHICLE_CSV, "text/plain"))
    assert r.status_code == 400
    assert r.json()["error"] == "Only CSV files are allowed"

    r = await client.post("/api/csv/upload/vehicle", files=_upload("x.csv", "customer-id\n"))
    assert r.status_code == 400
    assert "at least a header and one data row" in r.json()["error"]

    r = await client.post("/api/csv/upload/freight", files=_upload("x.csv", VEHICLE_CSV))
    assert r.status_code == 400
    assert r.json()["error"] == "Missing required columns: freightDescription"

    r = await client.post("/api/csv/upload/vehicle")
    assert r.status_code == 400
    assert r.json()["error"] == "No file uploaded"


@pytest.mark.asyncio
async def test_upload_size_limit(client, hub_settings, monkeypatch):
    monkeypatch.setattr(hub_settings, "max_upload_bytes", 64)
    r = await client.post("/api/csv/upload/vehicle", files=_upload("x.csv", VEHICLE_CSV))
    assert r.status_code == 400
    assert r.json()["error"].startswith("File too large")


@pytest.mark.asyncio
async def test_info(client, hub_settings):
    r = await client.get("/api/csv/info/freight")
    assert r.status_code == 200
    info = r.json()["file"]
    assert info["name"] == "freight_offers.csv"
    assert info["rows"] == 3
    assert info["columns"] == 54
    assert info["headers"][:2] == ["customer-id", "contactPerson-title"]
    assert len(info["headers"]) == 10

    (hub_settings.data_dir / "vehicle_offers.csv").unlink()
    r = await client.get("/api/csv/info/vehicle")
    assert r.status_code == 404
    assert r.json()["error"] == "Vehicle CSV file not found"


@pytest.mark.asyncio
async def test_backups_and_restore(client, hub_settings):
    await client.post("/api/csv/upload/vehicle", files=_upload("a.csv", VEHICLE_CSV))

    r = await client.get("/api/csv/backups")
    assert r.status_code == 200
    listing = r.json()
    assert listing["total"] == 1
    backup = listing["backups"][0]
    assert backup["type"] == "vehicle"

    r = await client.post(f"/api/csv/restore/{backup['name']}")
    assert r.status_code == 200
    assert r.json()["restored"]["to"] == "vehicle_offers.csv"
    assert "Tomasz" in (hub_settings.data_dir / "vehicle_offers.csv").read_text(encoding="utf-8")

    # the replaced upload was itself backed up before the restore
    r = await client.get("/api/csv/backups")
    assert r.json()["total"] == 2


@pytest.mark.asyncio
async def test_restore_rejects_bad_names(client):
    r = await client.post("/api/csv/restore/vehicle_offers.csv")
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid backup filename"

    r = await client.post("/api/csv/restore/..%5Cvehicle_backup_x.csv")
    assert r.status_code == 400

    r = await client.post("/api/csv/restore/vehicle_offers_backup_missing.csv")
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_restore_requires_a_canonical_prefix(client, hub_settings):
    stray = hub_settings.data_dir / "trucks_backup_2025.csv"
    stray.write_text(VEHICLE_CSV, encoding="utf-8")
    before = (hub_settings.data_dir / "vehicle_offers.csv").read_text(encoding="utf-8")

    r = await client.post(f"/api/csv/restore/{stray.name}")
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid backup filename"
    assert (hub_settings.data_dir / "vehicle_offers.csv").read_text(encoding="utf-8") == before

    r = await client.get("/api/csv/backups")
    assert r.json()["total"] == 0
