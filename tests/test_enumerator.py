import logging
from urllib.parse import urlsplit, parse_qs

import pytest

from urlsweep.enumerator import UrlEnumerator, format_duration
from urlsweep.phases.passive import Source
from urlsweep.results import ResultStore
from urlsweep.utils.domain_utils import load_domains

from helpers import FakeSession


def fake_source(name, answers, calls=None):
    """Source answering from a {domain: urls-or-None} mapping."""
    def fetch(self, domain, key_index, channel):
        if calls is not None:
            calls.append((name, domain, key_index))
        channel.info(name.upper(), f"queried {domain}")
        return answers.get(domain)
    return Source(name, name.upper(), fetch)


@pytest.fixture
def store(tmp_path):
    return ResultStore(failed_domains_file=str(tmp_path / "failed_domains.txt"))


def test_enumerator_init():
    enum = UrlEnumerator(domains=["example.com"])
    assert enum.domains == ["example.com"]
    assert enum.key_index == 0
    assert [s.name for s in enum.enabled_sources()] == ['vt', 'otx', 'wayback', 'hr']


def test_exclude_is_case_and_space_insensitive():
    enum = UrlEnumerator(domains=[], exclude=[" VT", "hr ", ""])
    assert [s.name for s in enum.enabled_sources()] == ['otx', 'wayback']


def test_urls_from_all_sources_are_merged_without_duplicates(store):
    sources = [
        fake_source('a', {"example.com": ["https://example.com/1", "https://example.com/2"]}),
        fake_source('b', {"example.com": ["https://example.com/2", "https://example.com/3"]}),
    ]
    enum = UrlEnumerator(domains=["example.com"], sources=sources, store=store)

    outcome = enum.process_domain("example.com")
    enum.process_domain("example.com")

    assert outcome.dispatched == 2
    assert outcome.succeeded
    assert store.snapshot() == ["https://example.com/1", "https://example.com/2", "https://example.com/3"]
    assert store.failed_domains == []


def test_empty_result_counts_as_success(store):
    enum = UrlEnumerator(domains=[], sources=[fake_source('a', {"example.com": []})], store=store)

    outcome = enum.process_domain("example.com")

    assert outcome.succeeded
    assert store.failed_domains == []


def test_domain_fails_only_when_every_source_is_absent(store):
    sources = [fake_source('a', {"good.com": None}), fake_source('b', {"good.com": ["https://good.com/"]})]
    enum = UrlEnumerator(domains=[], sources=sources, store=store)

    assert enum.process_domain("good.com").succeeded
    assert not enum.process_domain("bad.com").succeeded
    assert store.failed_domains == ["bad.com"]


def test_domain_without_enabled_sources_is_never_failed(store, caplog):
    caplog.set_level(logging.INFO, logger="urlsweep")
    calls = []
    enum = UrlEnumerator(domains=[], sources=[fake_source('a', {}, calls)], exclude=['a'], store=store)

    outcome = enum.process_domain("example.com")

    assert outcome.dispatched == 0
    assert not outcome.succeeded
    assert calls == []
    assert store.failed_domains == []
    assert "No sources selected for domain: example.com" in caplog.text


def test_key_index_advances_once_per_domain(store):
    calls = []
    sources = [fake_source('a', {"one.com": None}, calls), fake_source('b', {}, calls)]
    enum = UrlEnumerator(domains=[], sources=sources, store=store)

    for domain in ("one.com", "two.com", "three.com"):
        enum.process_domain(domain)

    assert enum.key_index == 3
    assert sorted(index for name, _, index in calls if name == 'a') == [0, 1, 2]
    assert sorted(index for name, _, index in calls if name == 'b') == [0, 1, 2]


def test_crashing_source_is_counted_as_absent(store, caplog):
    caplog.set_level(logging.INFO, logger="urlsweep")

    def broken(self, domain, key_index, channel):
        raise KeyError("undetected_urls")

    sources = [Source('x', 'X', broken), fake_source('b', {"example.com": ["https://example.com/"]})]
    enum = UrlEnumerator(domains=[], sources=sources, store=store)

    outcome = enum.process_domain("example.com")

    assert outcome.succeeded
    assert store.snapshot() == ["https://example.com/"]
    assert "[X] Unexpected error" in caplog.text


def test_all_log_lines_are_written_before_the_domain_returns(store, caplog):
    caplog.set_level(logging.INFO, logger="urlsweep")
    sources = [fake_source(name, {"example.com": []}) for name in ('a', 'b', 'c', 'd')]
    enum = UrlEnumerator(domains=[], sources=sources, store=store)

    enum.process_domain("example.com")

    lines = [r.getMessage() for r in caplog.records]
    for name in ('A', 'B', 'C', 'D'):
        assert f"[{name}] queried example.com" in lines


def test_silent_mode_emits_no_source_logs(store, caplog):
    caplog.set_level(logging.DEBUG, logger="urlsweep")
    enum = UrlEnumerator(domains=[], sources=[fake_source('a', {"example.com": []})], store=store, silent=True)

    enum.process_domain("example.com")

    assert caplog.records == []


def test_run_sleeps_between_domains_and_writes_output(tmp_path, store, sleeps):
    output = tmp_path / "endpoints.txt"
    answers = {"one.com": ["https://one.com/a"], "two.com": None, "three.com": ["https://three.com/b"]}
    enum = UrlEnumerator(domains=["one.com", "two.com", "three.com"], sources=[fake_source('a', answers)],
                         output_file=str(output), store=store)

    urls = enum.run()

    assert sleeps == [20, 20]
    assert urls == ["https://one.com/a", "https://three.com/b"]
    assert output.read_text().splitlines() == ["https://one.com/a", "https://three.com/b"]
    assert (tmp_path / "failed_domains.txt").read_text().splitlines() == ["two.com"]


def test_silent_run_prints_urls_instead_of_writing_the_file(tmp_path, store, sleeps, capsys):
    output = tmp_path / "endpoints.txt"
    enum = UrlEnumerator(domains=["one.com"], sources=[fake_source('a', {"one.com": ["https://one.com/a"]})],
                         output_file=str(output), store=store, silent=True)

    enum.run()

    assert capsys.readouterr().out.splitlines() == ["https://one.com/a"]
    assert not output.exists()
    assert sleeps == []


def test_end_to_end_with_two_sources(tmp_path, store, sleeps, use_session, caplog):
    caplog.set_level(logging.INFO, logger="urlsweep")

    def handler(request):
        parts = urlsplit(request.url)
        params = parse_qs(parts.query)
        if parts.netloc == "otx.alienvault.com":
            if parts.path.endswith("/domain/example.com/url_list"):
                return 200, {"url_list": [{"url": "a.com/x"}], "has_next": False}
            return 200, {"url_list": [], "has_next": False}
        if parts.netloc == "web.archive.org":
            if params['url'] == ["*.example.com/*"]:
                return 200, "a.com/x\na.com/y\n"
            return 200, ""
        return 500, "unexpected host"

    session = use_session(FakeSession(handler))
    output = tmp_path / "endpoints.txt"

    domains = load_domains(["example.com", "not a domain!!", "sub.example.co"])
    enum = UrlEnumerator(domains=domains, output_file=str(output), exclude=['vt', 'hr'], store=store)
    enum.run()

    assert domains == ["example.com", "sub.example.co"]
    assert "Skipping invalid domain format: notadomain" in caplog.text
    assert sorted(output.read_text().splitlines()) == ["a.com/x", "a.com/y"]
    assert store.failed_domains == []
    assert not (tmp_path / "failed_domains.txt").exists()
    assert len(session.sent) == 4
    assert sleeps == [20]


@pytest.mark.parametrize("seconds, expected", [(0, "0s"), (20, "20s"), (100, "1m40s"), (3725, "1h2m5s")])
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


def test_proxies_are_loaded_from_file(tmp_path):
    proxies = tmp_path / "proxies.txt"
    proxies.write_text("http://10.0.0.1:3128\n\nhttp://10.0.0.2:3128\n")

    enum = UrlEnumerator(domains=[], proxy_list_path=str(proxies))

    assert enum.proxies == ["http://10.0.0.1:3128", "http://10.0.0.2:3128"]
    assert UrlEnumerator(domains=[], proxy_list_path=str(tmp_path / "missing.txt")).proxies == [None]


def test_non_string_urls_from_a_source_do_not_abort_the_run(tmp_path, store, sleeps, use_session):
    def handler(request):
        parts = urlsplit(request.url)
        if parts.netloc == "cavalier.hudsonrock.com":
            return 200, {"data": {"all_urls": [{"url": 12345}, {"url": "http://example.com/hr"}]}}
        if parts.netloc == "www.virustotal.com":
            return 200, {"response_code": 1, "undetected_urls": [[["nested"]]]}
        return 200, "http://example.com/wb\n"

    use_session(FakeSession(handler))
    output = tmp_path / "endpoints.txt"

    enum = UrlEnumerator(domains=["example.com"], api_keys={'virustotal': ["k"], 'alienvault': [], 'hudsonrock': ["k"]},
                         output_file=str(output), exclude=['otx'], store=store)
    enum.run()

    assert output.read_text().splitlines() == ["http://example.com/hr", "http://example.com/wb"]
    assert store.failed_domains == []
