import json
import threading
import time
import zipfile

import pytest
import requests


class FakeResponse:
    def __init__(self, status_code=200, content=b"", json_data=None):
        self.status_code = status_code
        self.content = content
        self._json_data = json_data

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        if self._json_data is None:
            raise ValueError("No JSON body")
        return self._json_data

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i:i + chunk_size]

    def __enter__(self):
        return self

    def __exit__(self, *args):
        return False


class FakeSession:
    """Stands in for requests.Session; records every call"""

    def __init__(self, post_response=None, files=None, delay=0.0):
        self.headers = {}
        self.post_response = post_response
        # url -> FakeResponse, Exception instance, or list of those (one per call)
        self.files = files or {}
        self.delay = delay
        self.posts = []
        self.gets = []
        self._lock = threading.Lock()
        self.in_flight = 0
        self.max_in_flight = 0

    def post(self, url, headers=None, json=None, timeout=None):
        self.posts.append({"url": url, "headers": headers, "json": json})
        if isinstance(self.post_response, Exception):
            raise self.post_response
        return self.post_response

    def get(self, url, stream=False, timeout=None, allow_redirects=True, headers=None):
        with self._lock:
            self.gets.append({"url": url, "headers": headers})
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            result = self.files.get(url, FakeResponse(404))
            if isinstance(result, list):
                with self._lock:
                    result = result.pop(0) if len(result) > 1 else result[0]
            if isinstance(result, Exception):
                raise result
            return result
        finally:
            with self._lock:
                self.in_flight -= 1


def api_payload(*files):
    """Builds a /v1/mods/files response body"""
    return FakeResponse(200, json_data={"data": list(files)})


@pytest.fixture
def make_modpack(tmp_path):
    """Writes a modpack zip; entries maps names to bytes (None for a directory)"""

    def _make(manifest=None, entries=None, name="pack.zip", raw_manifest=None):
        path = tmp_path / name
        with zipfile.ZipFile(path, "w") as zf:
            if raw_manifest is not None:
                zf.writestr("manifest.json", raw_manifest)
            elif manifest is not None:
                zf.writestr("manifest.json", json.dumps(manifest))
            for entry_name, data in (entries or {}).items():
                if data is None:
                    zf.writestr(zipfile.ZipInfo(entry_name), b"")
                else:
                    zf.writestr(entry_name, data)
        return path

    return _make


@pytest.fixture
def target(tmp_path):
    path = tmp_path / "instance"
    path.mkdir()
    return path


def basic_manifest(*file_ids, overrides="overrides"):
    return {
        "minecraft": {"version": "1.20.1", "modLoaders": [{"id": "forge-47.2.0", "primary": True}]},
        "manifestType": "minecraftModpack",
        "manifestVersion": 1,
        "name": "Test Pack",
        "version": "1.0.0",
        "author": "tester",
        "files": [{"projectID": 100 + fid, "fileID": fid, "required": True} for fid in file_ids],
        "overrides": overrides
    }


def mark_encrypted(path, entry_name):
    """Sets the encryption flag of entry_name in the zip's central directory"""
    data = bytearray(path.read_bytes())
    name = entry_name.encode("utf-8")
    start = 0
    while True:
        offset = data.find(b"PK\x01\x02", start)
        assert offset != -1, f"{entry_name} not in central directory"
        name_len = int.from_bytes(data[offset + 28:offset + 30], "little")
        if bytes(data[offset + 46:offset + 46 + name_len]) == name:
            flags = int.from_bytes(data[offset + 8:offset + 10], "little") | 0x1
            data[offset + 8:offset + 10] = flags.to_bytes(2, "little")
            path.write_bytes(bytes(data))
            return
        start = offset + 4
