import pytest
import requests

from curseinstall.core.download import ModDownloader
from curseinstall.core.models import ResolvedFile, DownloadStatus
from curseinstall.errors import PreconditionError
from curseinstall.utils import system_utils

from conftest import FakeResponse, FakeSession


def _downloader(session, **kwargs):
    downloader = ModDownloader(session=session, max_workers=kwargs.pop("max_workers", 4), **kwargs)
    downloader.RETRY_WAIT = 0
    return downloader


def test_routes_by_extension(target):
    session = FakeSession(files={
        "https://cdn/Foo.zip": FakeResponse(200, b"pack"),
        "https://cdn/bar.jar": FakeResponse(200, b"mod"),
    })
    report = _downloader(session).download_all([
        ResolvedFile("Foo", "Foo.zip", "https://cdn/Foo.zip"),
        ResolvedFile("Bar", "bar.jar", "https://cdn/bar.jar"),
    ], target)

    assert [o.status for o in report.outcomes] == [DownloadStatus.DOWNLOADED] * 2
    assert (target / "resourcepacks" / "Foo.zip").read_bytes() == b"pack"
    assert (target / "mods" / "bar.jar").read_bytes() == b"mod"
    assert not list(target.rglob("*.part"))


def test_illegal_characters_are_removed(target):
    session = FakeSession(files={"https://cdn/x": FakeResponse(200, b"data")})
    report = _downloader(session).download_all(
        [ResolvedFile("Weird", "we:ird?mod.jar", "https://cdn/x")], target
    )
    assert report.outcomes[0].destination == target / "mods" / "weirdmod.jar"
    assert (target / "mods" / "weirdmod.jar").exists()


def test_missing_url_fails_only_that_file(target):
    session = FakeSession(files={"https://cdn/ok.jar": FakeResponse(200, b"ok")})
    messages = []
    downloader = _downloader(session, log_callback=lambda m, t: messages.append((m, t)))

    report = downloader.download_all([
        ResolvedFile("Hidden Mod", "hidden.jar", None, file_id=77, mod_id=5),
        ResolvedFile("Ok Mod", "ok.jar", "https://cdn/ok.jar"),
    ], target)

    hidden, ok = report.outcomes
    assert hidden.status == DownloadStatus.NOT_FOUND
    assert hidden.error == "no download link"
    assert ok.status == DownloadStatus.DOWNLOADED
    assert not (target / "mods" / "hidden.jar").exists()
    assert any("Hidden Mod" in m and t == "warning" for m, t in messages)
    assert any("https://www.curseforge.com/projects/5" in m for m, _ in messages)


def test_http_error_is_isolated(target):
    session = FakeSession(files={
        "https://cdn/gone.jar": FakeResponse(404),
        "https://cdn/fine.jar": FakeResponse(200, b"fine"),
    })
    report = _downloader(session).download_all([
        ResolvedFile("Gone", "gone.jar", "https://cdn/gone.jar"),
        ResolvedFile("Fine", "fine.jar", "https://cdn/fine.jar"),
    ], target)

    assert report.outcomes[0].status == DownloadStatus.FAILED
    assert "404" in report.outcomes[0].error
    assert report.outcomes[1].succeeded
    assert not (target / "mods" / "gone.jar").exists()
    # Status errors are not retried
    assert [g["url"] for g in session.gets].count("https://cdn/gone.jar") == 1


def test_transient_errors_are_retried(target):
    session = FakeSession(files={"https://cdn/flaky.jar": [
        requests.ConnectionError("reset"),
        FakeResponse(200, b"finally"),
    ]})
    report = _downloader(session).download_all(
        [ResolvedFile("Flaky", "flaky.jar", "https://cdn/flaky.jar")], target
    )
    assert report.outcomes[0].status == DownloadStatus.DOWNLOADED
    assert (target / "mods" / "flaky.jar").read_bytes() == b"finally"
    assert len(session.gets) == 2


def test_retries_exhausted(target):
    session = FakeSession(files={"https://cdn/down.jar": requests.Timeout("slow")})
    downloader = _downloader(session)
    report = downloader.download_all([ResolvedFile("Down", "down.jar", "https://cdn/down.jar")], target)
    assert report.outcomes[0].status == DownloadStatus.FAILED
    assert len(session.gets) == downloader.MAX_RETRIES


def test_existing_file_is_not_downloaded_again(target):
    (target / "mods").mkdir()
    (target / "mods" / "have.jar").write_bytes(b"local")
    session = FakeSession()

    report = _downloader(session).download_all(
        [ResolvedFile("Have", "have.jar", "https://cdn/have.jar")], target
    )

    assert report.outcomes[0].status == DownloadStatus.SKIPPED
    assert session.gets == []
    assert (target / "mods" / "have.jar").read_bytes() == b"local"


def test_target_must_be_a_directory(tmp_path):
    session = FakeSession()
    not_a_dir = tmp_path / "file.txt"
    not_a_dir.write_text("x")

    for bad_target in (tmp_path / "missing", not_a_dir):
        with pytest.raises(PreconditionError):
            _downloader(session).download_all([ResolvedFile("A", "a.jar", "https://cdn/a.jar")], bad_target)
    assert session.gets == []


def test_concurrency_is_bounded(target):
    files = [ResolvedFile(f"M{i}", f"m{i}.jar", f"https://cdn/m{i}.jar") for i in range(8)]
    session = FakeSession(files={f.download_url: FakeResponse(200, b"x") for f in files}, delay=0.05)

    report = _downloader(session, max_workers=2).download_all(files, target)

    assert all(o.succeeded for o in report.outcomes)
    assert [o.file for o in report.outcomes] == files
    assert session.max_in_flight <= 2


def test_default_worker_count_follows_cpus(monkeypatch):
    monkeypatch.setattr(system_utils.psutil, "cpu_count", lambda logical=True: 3)
    assert ModDownloader(session=FakeSession()).max_workers == 3 * ModDownloader.WORKERS_PER_CPU


def test_api_key_only_sent_to_api_host(target):
    session = FakeSession(files={
        "https://edge.forgecdn.net/files/1/2/a.jar": FakeResponse(200, b"a"),
        "https://api.curseforge.com/v1/mods/1/files/2/download": FakeResponse(200, b"b"),
    })
    _downloader(session, api_key="secret").download_all([
        ResolvedFile("A", "a.jar", "https://edge.forgecdn.net/files/1/2/a.jar"),
        ResolvedFile("B", "b.jar", "https://api.curseforge.com/v1/mods/1/files/2/download"),
    ], target)

    headers = {g["url"]: g["headers"] for g in session.gets}
    assert "x-api-key" not in headers["https://edge.forgecdn.net/files/1/2/a.jar"]
    assert headers["https://api.curseforge.com/v1/mods/1/files/2/download"]["x-api-key"] == "secret"
