"""Tests for the fingerprint service (end-to-end pipeline)."""

import asyncio
import hashlib
import re
from dataclasses import replace

import pytest

from capabilities.base import HostCapabilities
from capabilities.local import HashlibDigest
from capabilities.snapshot import snapshot_capabilities
from config import Defaults, ProbeToggles, Settings
from core.errors import DigestUnavailable
from pipeline.serializer import parse
from pipeline.service import FingerprintService
from probes import Probe, ProbeCategory, ProbeKind, ProbeRegistry

from conftest import make_snapshot, snapshot_data

HEX64 = re.compile(r"^[0-9a-f]{64}$")
ALL_ON = ProbeToggles(fonts=True, audio=True, battery=True, media_devices=True, permissions=True)


def _service(capabilities, registry):
    return FingerprintService(registry, capabilities, probe_timeout=2.0)


class TestDeterminism:
    """Repeated calls on an unchanged environment give identical fingerprints."""

    @pytest.mark.asyncio
    async def test_repeated_calls_identical(self, capabilities, registry):
        service = _service(capabilities, registry)
        first = await service.generate(ALL_ON)
        second = await service.generate(ALL_ON)
        assert first == second
        assert HEX64.match(first)

    @pytest.mark.asyncio
    async def test_independent_services_agree(self, snapshot, registry):
        a = _service(snapshot_capabilities(snapshot), registry)
        b = _service(snapshot_capabilities(snapshot), registry)
        assert await a.generate() == await b.generate()

    @pytest.mark.asyncio
    async def test_canonical_string_matches_fingerprint(self, capabilities, registry):
        report = await _service(capabilities, registry).explain(ALL_ON)
        assert report.fingerprint == hashlib.sha256(report.canonical.encode("utf-8")).hexdigest()

    def test_generate_sync(self, capabilities, registry):
        service = _service(capabilities, registry)
        assert service.generate_sync() == service.generate_sync()


class TestIsolation:
    """A failing probe never aborts the pipeline."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("section", [
        "environment", "canvas", "gpu", "audio_samples", "installed_fonts",
        "media_devices", "permissions", "battery", "connection",
    ])
    async def test_missing_capability_still_yields_fingerprint(self, registry, section):
        caps = snapshot_capabilities(make_snapshot(**{section: None}))
        report = await _service(caps, registry).explain(ALL_ON)
        assert HEX64.match(report.fingerprint)
        assert len(report.results) == len(registry)
        assert report.failed_count >= 1

    @pytest.mark.asyncio
    async def test_failed_probe_leaves_empty_placeholder(self, registry):
        caps = snapshot_capabilities(make_snapshot(gpu=None))
        report = await _service(caps, registry).explain()
        pairs = dict(parse(report.canonical))
        assert pairs["webgl"] == ""
        assert "webgl:||" in report.canonical

    @pytest.mark.asyncio
    async def test_throwing_and_rejecting_probes(self, capabilities):
        def ok(caps):
            return "fine"

        def throws(caps):
            raise RuntimeError("sync failure")

        async def rejects(caps):
            raise RuntimeError("async failure")

        registry = ProbeRegistry()
        registry.register(Probe("ok", ProbeCategory.IDENTITY, ProbeKind.SYNC, ok))
        registry.register(Probe("throws", ProbeCategory.RENDERING, ProbeKind.SYNC, throws))
        registry.register(Probe("rejects", ProbeCategory.AUDIO, ProbeKind.ASYNC, rejects))
        registry.freeze()

        report = await _service(capabilities, registry).explain()
        assert report.canonical == "ok:fine||throws:||rejects:"
        assert set(report.errors()) == {"throws", "rejects"}


class TestSensitivity:
    """Changing one signal changes the fingerprint."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("section,value", [
        ("canvas", "data:image/png;base64,DIFFERENT"),
        ("installed_fonts", ["Arial"]),
        ("media_devices", {"videoinput": 2, "audioinput": 2, "audiooutput": 1}),
        ("permissions", {"geolocation": "granted"}),
        ("connection", {"effective_type": "3g", "downlink_max": 1.5, "rtt": 300}),
    ])
    async def test_single_section_perturbation(self, registry, section, value):
        baseline = await _service(snapshot_capabilities(make_snapshot()), registry).generate(ALL_ON)
        changed = await _service(snapshot_capabilities(make_snapshot(**{section: value})), registry).generate(ALL_ON)
        assert baseline != changed

    @pytest.mark.asyncio
    async def test_single_field_perturbation(self, registry):
        environment = dict(snapshot_data()["environment"], timezone_offset=0)
        baseline = await _service(snapshot_capabilities(make_snapshot()), registry).generate()
        changed = await _service(snapshot_capabilities(make_snapshot(environment=environment)), registry).generate()
        assert baseline != changed

    @pytest.mark.asyncio
    async def test_configuration_changes_fingerprint(self, capabilities, registry):
        service = _service(capabilities, registry)
        assert await service.generate(ProbeToggles(audio=True)) != await service.generate(ProbeToggles(audio=False))


class TestSchemaStability:
    """Disabling a probe keeps the segment count."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("option,probe_name", [
        ("fonts", "fonts"),
        ("audio", "audio"),
        ("battery", "battery"),
        ("media_devices", "media_devices"),
        ("permissions", "permissions"),
    ])
    async def test_disabling_keeps_segment(self, capabilities, registry, option, probe_name):
        service = _service(capabilities, registry)
        enabled = parse((await service.explain(ALL_ON)).canonical)
        disabled_config = ALL_ON.model_copy(update={option: False})
        disabled = parse((await service.explain(disabled_config)).canonical)

        assert len(enabled) == len(disabled) == len(registry)
        assert [n for n, _ in enabled] == [n for n, _ in disabled]
        for (name, on_value), (_, off_value) in zip(enabled, disabled):
            if name == probe_name:
                assert on_value != ""
                assert off_value == ""
            else:
                assert on_value == off_value

    @pytest.mark.asyncio
    async def test_battery_off_by_default(self, capabilities, registry):
        report = await _service(capabilities, registry).explain()
        battery = next(r for r in report.results if r.name == "battery")
        assert battery.skipped
        assert battery.value == ""


class TestConcurrency:
    """Parallel generate() calls do not interfere."""

    @pytest.mark.asyncio
    async def test_parallel_calls_identical(self, capabilities, registry):
        service = _service(capabilities, registry)
        results = await asyncio.gather(*(service.generate(ALL_ON) for _ in range(5)))
        assert len(set(results)) == 1

    @pytest.mark.asyncio
    async def test_parallel_calls_with_different_configurations(self, capabilities, registry):
        service = _service(capabilities, registry)
        expected_on = await service.generate(ALL_ON)
        expected_off = await service.generate(ProbeToggles(audio=False))
        on, off = await asyncio.gather(service.generate(ALL_ON), service.generate(ProbeToggles(audio=False)))
        assert on == expected_on
        assert off == expected_off


class TestWorkedExample:
    """The documented example hashes to the reference SHA-256."""

    @pytest.mark.asyncio
    async def test_worked_example(self):
        def value(v):
            def collector(caps):
                return v
            return collector

        def no_webgl(caps):
            return caps.require("gpu")

        async def no_audio(caps):
            return caps.require("audio")

        registry = ProbeRegistry()
        registry.register(Probe("nav", ProbeCategory.IDENTITY, ProbeKind.SYNC, value("UA1")))
        registry.register(Probe("screen", ProbeCategory.IDENTITY, ProbeKind.SYNC, value("1920x1080")))
        registry.register(Probe("canvas", ProbeCategory.RENDERING, ProbeKind.SYNC, value("data:abc")))
        registry.register(Probe("webgl", ProbeCategory.GPU, ProbeKind.SYNC, no_webgl))
        registry.register(Probe("audio", ProbeCategory.AUDIO, ProbeKind.ASYNC, no_audio, option="audio"))
        registry.freeze()

        service = FingerprintService(registry, HostCapabilities(digest=HashlibDigest()))
        report = await service.explain()

        expected_text = "nav:UA1||screen:1920x1080||canvas:data:abc||webgl:||audio:"
        assert report.canonical == expected_text
        assert report.fingerprint == hashlib.sha256(expected_text.encode("utf-8")).hexdigest()


class TestFatalPath:
    """Digest failures reach the caller with no identifier."""

    @pytest.mark.asyncio
    async def test_missing_digest_capability(self, capabilities, registry):
        caps = replace(capabilities, digest=None)
        with pytest.raises(DigestUnavailable):
            await _service(caps, registry).generate()

    @pytest.mark.asyncio
    async def test_unusable_algorithm(self, snapshot, registry):
        caps = snapshot_capabilities(snapshot, digest_algorithm="md5")
        with pytest.raises(DigestUnavailable):
            await _service(caps, registry).generate()

    def test_unfrozen_registry_rejected(self, capabilities):
        with pytest.raises(ValueError):
            FingerprintService(ProbeRegistry(), capabilities)


class TestDefaultTimeout:
    """A service built without a timeout still bounds async probes."""

    def test_default_matches_settings(self, capabilities, registry):
        service = FingerprintService(registry, capabilities)
        assert service.executor.probe_timeout == Defaults.PROBE_TIMEOUT

    @pytest.mark.asyncio
    async def test_hanging_async_probe_falls_back(self, capabilities):
        async def hang(caps):
            await asyncio.sleep(30)
            return "late"

        registry = ProbeRegistry()
        registry.register(Probe("nav", ProbeCategory.IDENTITY, ProbeKind.SYNC, lambda caps: "UA1"))
        registry.register(Probe("stuck", ProbeCategory.AUDIO, ProbeKind.ASYNC, hang, fallback="none"))
        registry.freeze()

        service = FingerprintService(registry, capabilities)
        report = await asyncio.wait_for(service.explain(), timeout=Defaults.PROBE_TIMEOUT + 5)
        assert report.canonical == "nav:UA1||stuck:none"
        assert "timed out" in report.errors()["stuck"]


class TestFromSettings:
    """Test FingerprintService.from_settings()."""

    @pytest.mark.asyncio
    async def test_uses_settings_toggles_and_timeout(self, capabilities):
        settings = Settings.model_validate({
            "probes": {"audio": False},
            "executor": {"probe_timeout": 1.5},
        })
        service = FingerprintService.from_settings(settings, capabilities=capabilities)
        assert service.executor.probe_timeout == 1.5

        report = await service.explain()
        audio = next(r for r in report.results if r.name == "audio")
        assert audio.skipped

    @pytest.mark.asyncio
    async def test_report_metadata(self, capabilities, registry):
        report = await _service(capabilities, registry).explain()
        assert report.schema_version == registry.schema_version
        assert report.schema_id == registry.schema_id
        assert report.algorithm == "sha256"
        data = report.model_dump()
        assert data["summary"]["skipped"] == report.skipped_count
        assert len(data["results"]) == len(registry)
