# -*- coding: utf-8 -*-

from services import recording_service


def _make_recordings(tmp_path):
    cptv_dir = tmp_path / "cptv"
    failed = cptv_dir / "failed-uploads"
    failed.mkdir(parents=True)
    (cptv_dir / "20240301-101500.cptv").write_bytes(b"CPTV")
    (cptv_dir / "20240301-101500.txt").write_text("{}")
    (cptv_dir / "notes.log").write_text("ignored")
    (failed / "20240228-220000.cptv").write_bytes(b"CPTV")
    return cptv_dir


def test_get_cptv_names_includes_failed_uploads(tmp_path):
    cptv_dir = _make_recordings(tmp_path)

    names = recording_service.get_cptv_names(str(cptv_dir))

    assert names == ["20240301-101500.cptv", "20240228-220000.cptv"]


def test_get_recording_path_searches_failed_uploads(tmp_path):
    cptv_dir = _make_recordings(tmp_path)

    path = recording_service.get_recording_path("20240228-220000.cptv", str(cptv_dir))

    assert path == str(cptv_dir / "failed-uploads" / "20240228-220000.cptv")


def test_get_recording_path_rejects_escape(tmp_path):
    cptv_dir = _make_recordings(tmp_path)
    (tmp_path / "secret.cptv").write_bytes(b"nope")

    assert recording_service.get_recording_path("../secret.cptv", str(cptv_dir)) == ""
    assert recording_service.get_recording_path("", str(cptv_dir)) == ""
    assert recording_service.get_recording_path("missing.cptv", str(cptv_dir)) == ""


def test_delete_recording_removes_meta_file(tmp_path):
    cptv_dir = _make_recordings(tmp_path)

    result = recording_service.delete_recording("20240301-101500.cptv", str(cptv_dir))

    assert result == {"success": True, "found": True, "message": "cptv file deleted"}
    assert not (cptv_dir / "20240301-101500.cptv").exists()
    assert not (cptv_dir / "20240301-101500.txt").exists()


def test_delete_missing_recording(tmp_path):
    cptv_dir = _make_recordings(tmp_path)

    result = recording_service.delete_recording("nothing.cptv", str(cptv_dir))

    assert result["success"]
    assert not result["found"]
    assert result["message"] == "cptv file not found"


def test_recording_mimetype():
    assert recording_service.get_recording_mimetype("a.cptv") == "application/x-cptv"
    assert recording_service.get_recording_mimetype("a.txt") == "application/json"


def test_name_with_nul_byte_is_not_found(tmp_path):
    cptv_dir = _make_recordings(tmp_path)

    assert recording_service.get_recording_path("a\x00b.cptv", str(cptv_dir)) == ""
    result = recording_service.delete_recording("a\x00b.cptv", str(cptv_dir))
    assert result["success"]
    assert not result["found"]
