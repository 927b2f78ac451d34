"""Tests for the user preference store."""

import orjson
import pytest
from pydantic import ValidationError

from signal_monitor.preferences import PreferenceStore, UserPreferences


class TestPreferenceStore:
    """Tests for loading, updating and persistence."""

    def test_defaults(self):
        prefs = PreferenceStore().value

        assert prefs.theme == "dark"
        assert prefs.left_panel_width == 300
        assert prefs.right_panel_width == 300
        assert prefs.favorites == ()
        assert prefs.selected_timeframe == "1h"
        assert prefs.selected_indicators == ("MA", "RSI")

    def test_update_persists(self, tmp_path):
        path = tmp_path / "preferences.json"
        store = PreferenceStore(path)

        store.update_preference("favorites", ["BTCUSDT", "ETHUSDT"])

        stored = orjson.loads(path.read_bytes())
        assert stored["favorites"] == ["BTCUSDT", "ETHUSDT"]
        assert PreferenceStore(path).value.favorites == ("BTCUSDT", "ETHUSDT")

    def test_stored_values_merged_over_defaults(self, tmp_path):
        path = tmp_path / "preferences.json"
        path.write_bytes(orjson.dumps({"theme": "light", "obsolete": 1}))

        prefs = PreferenceStore(path).value

        assert prefs.theme == "light"
        assert prefs.left_panel_width == 300

    def test_corrupt_file_uses_defaults(self, tmp_path):
        path = tmp_path / "preferences.json"
        path.write_text("{not json")

        assert PreferenceStore(path).value == UserPreferences()

    def test_unknown_key(self):
        with pytest.raises(KeyError):
            PreferenceStore().update_preference("font", "mono")

    def test_invalid_value(self):
        store = PreferenceStore()

        with pytest.raises(ValidationError):
            store.update_preference("theme", "sepia")
        assert store.value.theme == "dark"

    def test_update_several_fields(self, tmp_path):
        path = tmp_path / "preferences.json"
        store = PreferenceStore(path)
        received = []
        store.subscribe(received.append)

        store.update_preferences({"theme": "light", "favorites": ["BTCUSDT"]})

        assert store.value.theme == "light"
        assert store.value.favorites == ("BTCUSDT",)
        assert len(received) == 2
        assert orjson.loads(path.read_bytes())["theme"] == "light"

    def test_invalid_field_rejects_whole_update(self, tmp_path):
        path = tmp_path / "preferences.json"
        store = PreferenceStore(path)
        received = []
        store.subscribe(received.append)

        with pytest.raises(ValidationError):
            store.update_preferences({"theme": "light", "left_panel_width": "wide"})

        assert store.value == UserPreferences()
        assert received == [UserPreferences()]
        assert not path.exists()

    def test_unknown_field_rejects_whole_update(self):
        store = PreferenceStore()

        with pytest.raises(KeyError):
            store.update_preferences({"theme": "light", "font": "mono"})
        assert store.value.theme == "dark"

    def test_reset_removes_file(self, tmp_path):
        path = tmp_path / "preferences.json"
        store = PreferenceStore(path)
        store.update_preference("theme", "light")

        store.reset()

        assert store.value == UserPreferences()
        assert not path.exists()


class TestSubscriptions:
    """Tests for snapshot delivery to listeners."""

    def test_subscribe_emits_current_value(self):
        store = PreferenceStore()
        received = []

        store.subscribe(received.append)

        assert received == [UserPreferences()]

    def test_changes_are_pushed(self):
        store = PreferenceStore()
        received = []
        store.subscribe(received.append)

        store.update_preference("favorites", ["BTCUSDT"])
        store.reset()

        assert [p.favorites for p in received] == [(), ("BTCUSDT",), ()]

    def test_unsubscribe(self):
        store = PreferenceStore()
        received = []
        unsubscribe = store.subscribe(received.append)

        unsubscribe()
        store.update_preference("theme", "light")

        assert len(received) == 1

    def test_listener_error_does_not_block_others(self):
        store = PreferenceStore()
        received = []

        def failing(prefs):
            raise RuntimeError("listener down")

        store.subscribe(failing)
        store.subscribe(received.append)
        store.update_preference("theme", "light")

        assert received[-1].theme == "light"
