import io
import json

import pytest
from click.testing import CliRunner

from mailposture.cli import main
from mailposture.console import console
from mailposture.resolver import DNSLookup

from conftest import FakeLookup


@pytest.fixture(autouse=True)
def quiet_console(monkeypatch):
    monkeypatch.setattr(console, 'stream', io.StringIO())
    monkeypatch.setattr(console, 'verbose', False)


def use_lookup(monkeypatch, lookup):
    monkeypatch.setattr(DNSLookup, 'from_config', lambda config: lookup)


def test_scan_json(monkeypatch, healthy_lookup):
    use_lookup(monkeypatch, healthy_lookup)
    result = CliRunner().invoke(main, ['scan', 'https://www.example.com', '--no-verify', '--json-output'])
    assert result.exit_code == 0
    body = json.loads(result.output)
    assert body['domain'] == 'example.com'
    assert body['overallScore']['value'] == 7.8


def test_scan_report(monkeypatch, healthy_lookup):
    use_lookup(monkeypatch, healthy_lookup)
    result = CliRunner().invoke(main, ['scan', 'example.com', '--no-verify'])
    assert result.exit_code == 0
    assert 'Overall Score:' in result.output
    assert 'DMARC STATUS:' in result.output
    assert 'mx.example.com (priority 10)' in result.output


def test_scan_weak_domain_exits_nonzero(monkeypatch):
    use_lookup(monkeypatch, FakeLookup())
    result = CliRunner().invoke(main, ['scan', 'example.com', '--no-verify', '-j'])
    assert result.exit_code == 1
    assert json.loads(result.output)['overallScore']['level'] == 'Poor'


def test_scan_selector_option(monkeypatch, healthy_lookup):
    use_lookup(monkeypatch, healthy_lookup)
    result = CliRunner().invoke(main, ['scan', 'example.com', '--no-verify', '-j', '-s', 'google'])
    assert json.loads(result.output)['dkim']['selector'] == 'google'


def test_scan_rejects_bad_domain(monkeypatch, healthy_lookup):
    use_lookup(monkeypatch, healthy_lookup)
    result = CliRunner().invoke(main, ['scan', 'localhost', '--no-verify'])
    assert result.exit_code == 1
