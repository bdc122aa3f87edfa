"""Tests for the source stores."""

import unittest
from unittest.mock import MagicMock

import pytest
import requests
from segment_editor.errors import StoreError
from segment_editor.stores.devhub import DevHubSourceStore
from segment_editor.stores.file_store import FileSourceStore
from segment_editor.stores.memory import MemorySourceStore


class TestFileSourceStore:
    def test_round_trip(self, tmp_path):
        store = FileSourceStore(str(tmp_path))
        store.save_source("src/app.js", "class App {}\n")

        assert (tmp_path / "src" / "app.js").read_text(encoding="utf-8") == "class App {}\n"
        assert store.load_source("src/app.js") == "class App {}\n"

    def test_missing_file(self, tmp_path):
        store = FileSourceStore(str(tmp_path))
        with pytest.raises(StoreError):
            store.load_source("missing.js")

    def test_path_outside_root(self, tmp_path):
        store = FileSourceStore(str(tmp_path / "root"))
        with pytest.raises(StoreError):
            store.load_source("../secret.js")


class TestMemorySourceStore:
    def test_records_saves(self):
        store = MemorySourceStore({"a.js": "x"})
        store.save_source("a.js", "y")

        assert store.load_source("a.js") == "y"
        assert store.saves == [("a.js", "y")]

    def test_missing(self):
        with pytest.raises(StoreError):
            MemorySourceStore().load_source("a.js")


class TestDevHubSourceStore(unittest.TestCase):
    def setUp(self):
        self.http = MagicMock(spec=requests.Session)
        self.store = DevHubSourceStore("http://hub:3000/", timeout=5, session=self.http)

    def _response(self, payload, error=None):
        response = MagicMock()
        response.json.return_value = payload
        if error is not None:
            response.raise_for_status.side_effect = error
        return response

    def test_load(self):
        self.http.get.return_value = self._response({"content": "class A {}"})

        self.assertEqual(self.store.load_source("src/a.js"), "class A {}")
        self.http.get.assert_called_once_with(
            "http://hub:3000/api/file-content", params={"path": "src/a.js"}, timeout=5,
        )

    def test_load_without_content(self):
        self.http.get.return_value = self._response({"error": "nope"})
        with self.assertRaises(StoreError):
            self.store.load_source("src/a.js")

    def test_load_connection_error(self):
        self.http.get.side_effect = requests.exceptions.ConnectionError("refused")
        with self.assertRaises(StoreError) as ctx:
            self.store.load_source("src/a.js")
        self.assertIn("refused", str(ctx.exception))

    def test_save(self):
        self.http.post.return_value = self._response({"success": True})
        self.store.save_source("src/a.js", "class A {}\n")

        self.http.post.assert_called_once_with(
            "http://hub:3000/api/save-file",
            json={"relativePath": "src/a.js", "content": "class A {}\n"},
            timeout=5,
        )

    def test_save_error_includes_server_detail(self):
        self.http.post.return_value = self._response(
            {"error": "read-only file"},
            error=requests.exceptions.HTTPError("500 Server Error"),
        )
        with self.assertRaises(StoreError) as ctx:
            self.store.save_source("src/a.js", "x")
        self.assertIn("read-only file", str(ctx.exception))

    def test_non_json_response(self):
        response = self._response(None)
        response.json.side_effect = ValueError("not json")
        self.http.get.return_value = response

        with self.assertRaises(StoreError):
            self.store.load_source("src/a.js")


if __name__ == "__main__":
    unittest.main()
