"""Tests for the background autosave timer."""

import json
import threading
import time

import pytest

from kiodb import Database, DatabaseConfig
from kiodb.autosave import Autosaver
from kiodb.errors import IOFailure


class TestAutosaver:
    """Tests for the Autosaver class."""

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            Autosaver(lambda: None, 0)

    def test_calls_save_periodically(self):
        calls = threading.Event()
        saver = Autosaver(calls.set, 0.01)
        saver.start()
        try:
            assert calls.wait(2)
            assert saver.running
        finally:
            saver.stop()
        assert not saver.running

    def test_failure_keeps_timer_running(self):
        attempts = []
        done = threading.Event()

        def save():
            attempts.append(1)
            if len(attempts) >= 3:
                done.set()
            raise IOFailure("disk full")

        with Autosaver(save, 0.01) as saver:
            assert done.wait(2)
            assert saver.running

    def test_start_twice(self):
        saver = Autosaver(lambda: None, 10)
        saver.start()
        thread = saver._thread
        saver.start()
        assert saver._thread is thread
        saver.stop()


class TestDatabaseAutosave:
    """Autosave writes in-memory edits without an explicit save()."""

    def test_background_save(self, tmp_path):
        path = tmp_path / "auto.kiod"
        db = Database(path, DatabaseConfig(write_through=False), autosave_interval=0.01)
        db.add_column("n", "number")
        db.insert({"n": 1})
        saved = threading.Event()

        def poll():
            while not saved.is_set():
                if json.loads(path.read_text())["data"] == [{"n": 1}]:
                    saved.set()
                saved.wait(0.01)

        poller = threading.Thread(target=poll, daemon=True)
        poller.start()
        try:
            assert saved.wait(2)
        finally:
            saved.set()
            db.close()

    def test_close_stops_timer(self, tmp_path):
        db = Database(tmp_path / "auto.kiod", autosave_interval=5)
        saver = db._autosaver
        assert saver.running
        db.close()
        assert not saver.running

    def test_clean_handle_does_not_overwrite_newer_snapshot(self, tmp_path):
        path = tmp_path / "shared.kiod"
        first = Database(path, autosave_interval=0.01)
        first.add_column("n", "number")
        second = Database(path)
        second.insert({"n": 1})
        saves = threading.Event()
        original_save = first.save

        def counting_save():
            original_save()
            saves.set()

        first.save = counting_save
        try:
            # give the timer several ticks
            time.sleep(0.2)
        finally:
            first.close()
        assert not saves.is_set()
        assert json.loads(path.read_text())["data"] == [{"n": 1}]
