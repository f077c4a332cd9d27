"""Unit tests for header profiles, TLS context and delay randomization."""

import random
import ssl

from webfinder.fingerprint import (
    ACCEPT_LANGUAGE,
    CURATED_USER_AGENTS,
    IMPERSONATE_TARGETS,
    FingerprintRandomizer,
    HeaderProfile,
    build_tls_context,
)


class TestHeaderProfile:
    def test_chrome_profile_sends_client_hints(self):
        ua, hints, platform = CURATED_USER_AGENTS[0]
        headers = HeaderProfile(ua, hints, platform).headers()

        assert headers["User-Agent"] == ua
        assert headers["Sec-Ch-Ua"] == hints
        assert headers["Sec-Ch-Ua-Platform"] == platform
        assert headers["Sec-Ch-Ua-Mobile"] == "?0"
        assert headers["Accept-Language"] == ACCEPT_LANGUAGE

    def test_firefox_profile_omits_client_hints(self):
        firefox = next(entry for entry in CURATED_USER_AGENTS if entry[1] is None)
        headers = HeaderProfile(*firefox).headers()

        assert "Firefox" in headers["User-Agent"]
        assert "Sec-Ch-Ua" not in headers
        assert "Sec-Ch-Ua-Platform" not in headers

    def test_peruvian_spanish_preferred(self):
        assert ACCEPT_LANGUAGE.startswith("es-PE")


class TestFingerprintRandomizer:
    def test_generate_draws_from_curated_pool(self):
        randomizer = FingerprintRandomizer(rng=random.Random(7))
        agents = {entry[0] for entry in CURATED_USER_AGENTS}
        for _ in range(20):
            assert randomizer.generate().user_agent in agents

    def test_seeded_rng_is_reproducible(self):
        first = FingerprintRandomizer(rng=random.Random(42))
        second = FingerprintRandomizer(rng=random.Random(42))
        assert [first.generate() for _ in range(5)] == [second.generate() for _ in range(5)]

    def test_impersonate_target(self):
        randomizer = FingerprintRandomizer(rng=random.Random(1))
        assert randomizer.impersonate_target() in IMPERSONATE_TARGETS

    def test_action_delay_within_range(self):
        randomizer = FingerprintRandomizer(rng=random.Random(3))
        for _ in range(50):
            delay = randomizer.get_action_delay(1500, 3000)
            assert 1500 <= delay <= 3000

    def test_headers_shortcut(self):
        headers = FingerprintRandomizer().headers()
        assert "User-Agent" in headers


class TestTlsContext:
    def test_minimum_tls_version(self):
        context = build_tls_context()
        assert context.minimum_version == ssl.TLSVersion.TLSv1_2
        assert context.options & ssl.OP_NO_COMPRESSION

    def test_verification_enabled_by_default(self):
        context = build_tls_context()
        assert context.verify_mode == ssl.CERT_REQUIRED
        assert context.check_hostname is True

    def test_verification_can_be_disabled(self):
        context = build_tls_context(verify=False)
        assert context.verify_mode == ssl.CERT_NONE
        assert context.check_hostname is False

    def test_chrome_ciphers_first(self):
        names = [cipher["name"] for cipher in build_tls_context().get_ciphers()]
        tls12 = [name for name in names if name.startswith("ECDHE")]
        assert tls12[0] == "ECDHE-ECDSA-AES128-GCM-SHA256"
