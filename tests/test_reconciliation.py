from datetime import datetime, timedelta, timezone

import pytest

from app.modules.maintenance.reconciliation import OrphanReconciler


@pytest.fixture
def layout(db, blobs, alice):
    job = db.seed("jobs", {"name": "Banner", "created_by": alice.id})
    kept = f"{alice.id}/{job['id']}/1-kept.png"
    version = f"{alice.id}/file/versions/file_v1.png"
    orphan = f"{alice.id}/{job['id']}/2-orphan.png"
    for path in (kept, version, orphan):
        blobs.upload_file(b"x", path)
    upload = db.seed("job_files", {
        "job_id": job["id"], "file_name": "kept.png", "file_type": "image/png", "file_size": 1,
        "file_path": kept, "uploaded_by": alice.id,
    })
    db.seed("file_versions", {"file_id": upload["id"], "version_number": 1, "file_size": 1,
                               "file_path": version, "created_by": alice.id})
    return {"kept": kept, "version": version, "orphan": orphan}


def later(hours=2):
    return datetime.now(timezone.utc) + timedelta(hours=hours)


def test_removes_only_unreferenced_blobs(db, object_store, blobs, layout):
    report = OrphanReconciler(db, object_store, 3600).reconcile(now=later())
    assert report.scanned == 3
    assert report.orphaned == [layout["orphan"]]
    assert report.removed == [layout["orphan"]]
    assert report.failed == []
    assert set(blobs.blobs) == {layout["kept"], layout["version"]}


def test_fresh_blobs_are_left_alone(db, object_store, blobs, layout):
    report = OrphanReconciler(db, object_store, 3600).reconcile()
    assert report.orphaned == []
    assert layout["orphan"] in blobs.blobs


def test_dry_run_reports_without_deleting(db, object_store, blobs, layout):
    report = OrphanReconciler(db, object_store, 3600).reconcile(dry_run=True, now=later())
    assert report.dry_run is True
    assert report.orphaned == [layout["orphan"]]
    assert report.removed == []
    assert layout["orphan"] in blobs.blobs


def test_failed_removals_are_reported(db, object_store, blobs, layout):
    blobs.fail_deletes = True
    report = OrphanReconciler(db, object_store, 3600).reconcile(now=later())
    assert report.failed == [layout["orphan"]]
    assert report.removed == []


def test_endpoint_is_admin_only(signup, client, blobs):
    user_headers, user_id = signup("amy@acme-signs.com")
    admin_headers, _ = signup("boss@acme-signs.com")
    stale = f"{user_id}/job/1-stale.png"
    blobs.upload_file(b"x", stale)
    blobs.backdate(stale, 7200)

    assert client.post("/api/v1/maintenance/reconcile-orphans", headers=user_headers).status_code == 403

    dry = client.post("/api/v1/maintenance/reconcile-orphans", params={"dry_run": True}, headers=admin_headers)
    assert dry.status_code == 200
    assert dry.json()["orphaned"] == [stale]
    assert stale in blobs.blobs

    response = client.post("/api/v1/maintenance/reconcile-orphans", headers=admin_headers)
    assert response.json()["removed"] == [stale]
    assert stale not in blobs.blobs


def test_rows_deleted_mid_sweep_do_not_hide_later_rows(db, object_store, blobs, alice):
    job = db.seed("jobs", {"name": "Fleet", "created_by": alice.id})
    paths = []
    for n in range(5):
        path = f"{alice.id}/{job['id']}/{n}-wrap.png"
        blobs.upload_file(b"x", path)
        db.seed("job_files", {
            "job_id": job["id"], "file_name": f"{n}-wrap.png", "file_type": "image/png", "file_size": 1,
            "file_path": path, "uploaded_by": alice.id,
        })
        paths.append(path)

    def delete_first_row_after_first_page(query):
        if query.table == "job_files" and query.op == "select" and query.columns == "id,file_path":
            db.after_execute.remove(delete_first_row_after_first_page)
            first = min(db.tables["job_files"], key=lambda r: r["id"])
            db.remove_rows("job_files", [first])

    db.after_execute.append(delete_first_row_after_first_page)
    reconciler = OrphanReconciler(db, object_store, 3600)
    reconciler._PAGE_SIZE = 2
    report = reconciler.reconcile(now=later())

    still_referenced = {r["file_path"] for r in db.rows("job_files")}
    assert len(still_referenced) == 4
    assert still_referenced <= set(blobs.blobs)
    assert not set(report.removed) & still_referenced
