"""Tests for probe definitions and the probe registry."""

import pytest

from core.errors import RegistryFrozenError
from probes import Probe, ProbeCategory, ProbeKind, ProbeRegistry, SCHEMA_VERSION, default_registry


def _sync_collector(caps):
    return "value"


async def _async_collector(caps):
    return "value"


def _probe(name, category=ProbeCategory.IDENTITY):
    return Probe(name, category, ProbeKind.SYNC, _sync_collector)


class TestProbe:
    """Test Probe validation."""

    def test_valid_probe(self):
        probe = Probe("audio", ProbeCategory.AUDIO, ProbeKind.ASYNC, _async_collector, option="audio")
        assert probe.is_async
        assert probe.fallback == ""

    @pytest.mark.parametrize("name", ["", "Nav", "na:v", "a|b", "1abc", "with space"])
    def test_invalid_names(self, name):
        with pytest.raises(ValueError):
            _probe(name)

    def test_async_kind_needs_coroutine(self):
        with pytest.raises(ValueError):
            Probe("x", ProbeCategory.AUDIO, ProbeKind.ASYNC, _sync_collector)

    def test_sync_kind_rejects_coroutine(self):
        with pytest.raises(ValueError):
            Probe("x", ProbeCategory.AUDIO, ProbeKind.SYNC, _async_collector)

    def test_fallback_must_be_string(self):
        with pytest.raises(TypeError):
            Probe("x", ProbeCategory.IDENTITY, ProbeKind.SYNC, _sync_collector, fallback=None)

    def test_immutable(self):
        probe = _probe("nav")
        with pytest.raises(AttributeError):
            probe.name = "other"


class TestProbeRegistry:
    """Test ProbeRegistry registration and lookup."""

    def test_keeps_registration_order(self):
        registry = ProbeRegistry()
        for name in ("c", "a", "b"):
            registry.register(_probe(name))
        assert registry.names() == ["c", "a", "b"]
        assert [p.name for p in registry.all()] == ["c", "a", "b"]
        assert [p.name for p in registry] == ["c", "a", "b"]

    def test_duplicate_name_rejected(self):
        registry = ProbeRegistry()
        registry.register(_probe("nav"))
        with pytest.raises(ValueError):
            registry.register(_probe("nav"))

    def test_register_after_freeze_rejected(self):
        registry = ProbeRegistry().freeze()
        with pytest.raises(RegistryFrozenError):
            registry.register(_probe("nav"))
        assert len(registry) == 0

    def test_all_returns_immutable_sequence(self):
        registry = ProbeRegistry()
        registry.register(_probe("nav"))
        assert isinstance(registry.all(), tuple)

    def test_get_and_contains(self):
        registry = ProbeRegistry()
        probe = _probe("nav")
        registry.register(probe)
        assert registry.get("nav") is probe
        assert registry.get("missing") is None
        assert "nav" in registry

    def test_registries_are_independent(self):
        first, second = ProbeRegistry(), ProbeRegistry()
        first.register(_probe("nav"))
        assert len(second) == 0

    def test_schema_id_tracks_order(self):
        def build(names):
            registry = ProbeRegistry(schema_version=1)
            for name in names:
                registry.register(_probe(name))
            return registry.freeze()

        assert build(["a", "b"]).schema_id == build(["a", "b"]).schema_id
        assert build(["a", "b"]).schema_id != build(["b", "a"]).schema_id
        assert build(["a", "b"]).schema_id != build(["a"]).schema_id

    def test_schema_id_tracks_version(self):
        v1, v2 = ProbeRegistry(schema_version=1), ProbeRegistry(schema_version=2)
        assert v1.schema_id != v2.schema_id


class TestDefaultRegistry:
    """Test the standard schema."""

    def test_order(self, registry):
        assert registry.names() == [
            "nav", "screen", "timezone", "canvas", "webgl", "audio",
            "fonts", "media_devices", "connection", "battery", "permissions",
        ]

    def test_frozen(self, registry):
        assert registry.frozen
        assert registry.schema_version == SCHEMA_VERSION

    def test_each_call_builds_a_new_registry(self):
        assert default_registry() is not default_registry()
        assert default_registry().schema_id == default_registry().schema_id

    def test_options(self, registry):
        options = {p.name: p.option for p in registry}
        assert options["audio"] == "audio"
        assert options["fonts"] == "fonts"
        assert options["battery"] == "battery"
        assert options["media_devices"] == "media_devices"
        assert options["permissions"] == "permissions"
        for always_on in ("nav", "screen", "timezone", "canvas", "webgl"):
            assert options[always_on] is None

    def test_async_probes(self, registry):
        async_names = [p.name for p in registry if p.is_async]
        assert async_names == ["audio", "media_devices", "battery", "permissions"]

    def test_info(self, registry):
        info = registry.info()
        assert info[0]["position"] == 1
        assert info[0]["name"] == "nav"
        assert info[0]["category"] == "identity"
