"""Tests for PluginManager — discovery, registration, and hook relay."""

from __future__ import annotations

from unittest.mock import patch

from keyctl.plugins.hookspecs import hookimpl
from keyctl.plugins.manager import PluginManager


class _PresencePlugin:
    """Plugin implementing only an informational hook."""

    def __init__(self) -> None:
        self.seen: list[str] = []

    @hookimpl
    def keyctl_broadcast_presence(self, state_tag: str) -> None:
        self.seen.append(state_tag)


class _NotifierPlugin:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []

    @hookimpl
    def keyctl_notify(self, channel_id: str, user_id: str, text: str) -> None:
        self.sent.append((channel_id, user_id, text))


class TestPluginManager:
    """Tests for the PluginManager class."""

    def test_hook_relay_accessible(self):
        pm = PluginManager()
        assert hasattr(pm.hook, "keyctl_notify")
        assert hasattr(pm.hook, "keyctl_broadcast_presence")
        assert hasattr(pm.hook, "keyctl_post_transition")

    def test_register_plugin(self):
        pm = PluginManager()
        pm.register_plugin(_PresencePlugin(), name="presence")
        assert "presence" in pm.list_plugin_names()

    def test_register_plugin_default_name(self):
        pm = PluginManager()
        pm.register_plugin(_PresencePlugin())
        assert "_PresencePlugin" in pm.list_plugin_names()

    def test_unregister_plugin(self):
        pm = PluginManager()
        plugin = _PresencePlugin()
        pm.register_plugin(plugin, name="presence")
        pm.unregister(plugin)
        assert "presence" not in pm.list_plugin_names()

    def test_is_loaded_false_before_discover(self):
        assert PluginManager().is_loaded is False

    def test_discover_marks_loaded(self):
        pm = PluginManager()
        names = pm.discover_and_load()
        assert pm.is_loaded is True
        assert isinstance(names, list)

    def test_get_plugins_returns_registered(self):
        pm = PluginManager()
        plugin = _PresencePlugin()
        pm.register_plugin(plugin, name="test")
        assert plugin in pm.get_plugins()

    def test_hook_dispatch(self):
        pm = PluginManager()
        notifier = _NotifierPlugin()
        pm.register_plugin(notifier, name="notifier")
        pm.hook.keyctl_notify(channel_id="key", user_id="1001", text="hi")
        assert notifier.sent == [("key", "1001", "hi")]


class TestHasNotifier:
    def test_empty(self):
        assert PluginManager().has_notifier() is False

    def test_presence_only_is_not_a_notifier(self):
        pm = PluginManager()
        pm.register_plugin(_PresencePlugin(), name="presence")
        assert pm.has_notifier() is False

    def test_with_notifier(self):
        pm = PluginManager()
        pm.register_plugin(_NotifierPlugin(), name="notifier")
        assert pm.has_notifier() is True


class TestEntryPointClasses:
    def test_registered_class_is_instantiated(self):
        pm = PluginManager()

        def _load(group: str) -> int:
            pm._pm.register(_NotifierPlugin, name="ep-notifier")
            return 1

        with patch.object(pm._pm, "load_setuptools_entrypoints", side_effect=_load):
            names = pm.discover_and_load()

        assert "ep-notifier" in names
        (plugin,) = pm.get_plugins()
        assert isinstance(plugin, _NotifierPlugin)
        pm.hook.keyctl_notify(channel_id="key", user_id="1", text="x")
        assert plugin.sent == [("key", "1", "x")]

    def test_uninstantiable_class_is_dropped(self):
        class _NeedsArgs:
            def __init__(self, required: str) -> None:
                self.required = required

            @hookimpl
            def keyctl_broadcast_presence(self, state_tag: str) -> None:
                pass

        pm = PluginManager()

        def _load(group: str) -> int:
            pm._pm.register(_NeedsArgs, name="broken")
            return 1

        with patch.object(pm._pm, "load_setuptools_entrypoints", side_effect=_load):
            names = pm.discover_and_load()

        assert "broken" not in names
        assert pm.get_plugins() == []
