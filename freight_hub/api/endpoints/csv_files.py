import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from freight_hub.api.deps import get_csv_store
from freight_hub.core.errors import utc_now_iso
from freight_hub.services.csv_store import CsvDataStore, StoredFile


log = logging.getLogger(__name__)

router = APIRouter(prefix="/csv")


def _file_out(f: StoredFile, *, created: bool = False) -> dict:
    out = {
        "name": f.name,
        "size": f.size,
        "sizeFormatted": f.size_formatted,
        "type": f.type,
    }
    out["created" if created else "modified"] = f.modified
    return out


@router.post("/upload/{csv_type}")
async def upload_csv(
    csv_type: str,
    csv_file: UploadFile | None = File(None, alias="csvFile"),
    store: CsvDataStore = Depends(get_csv_store),
) -> dict:
    if csv_file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")

    # read one byte past the limit so oversized uploads are detected without buffering them fully
    data = await csv_file.read(store.max_bytes + 1)
    try:
        stored = store.upload(
            csv_type,
            filename=csv_file.filename or "",
            content_type=csv_file.content_type,
            data=data,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "success": True,
        "message": f"{csv_type.capitalize()} CSV file uploaded successfully",
        "file": {
            **_file_out(stored),
            "name": csv_file.filename,
            "storedAs": stored.name,
            "uploaded": utc_now_iso(),
            "rows": stored.rows,
        },
    }


@router.get("/info/{csv_type}")
async def csv_info(csv_type: str, store: CsvDataStore = Depends(get_csv_store)) -> dict:
    try:
        info = store.info(csv_type)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return {
        "success": True,
        "file": {
            **_file_out(info),
            "rows": info.rows,
            "columns": info.columns,
            "headers": list(info.headers),
        },
    }


@router.get("/backups")
async def list_backups(store: CsvDataStore = Depends(get_csv_store)) -> dict:
    backups = [_file_out(b, created=True) for b in store.list_backups()]
    return {"success": True, "backups": backups, "total": len(backups)}


@router.post("/restore/{filename}")
async def restore_backup(filename: str, store: CsvDataStore = Depends(get_csv_store)) -> dict:
    try:
        csv_type, target = store.restore(filename)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return {
        "success": True,
        "message": f"Successfully restored {csv_type} CSV from backup",
        "restored": {"from": filename, "to": target, "timestamp": utc_now_iso()},
    }
