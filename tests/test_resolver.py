from types import SimpleNamespace

import dns.exception
import dns.resolver
import pytest

from mailposture.errors import RecordNotFound, ResolutionError
from mailposture.resolver import DNSLookup, flatten_txt


def answering(answer):
    def resolve(name, record_type):
        return answer
    return resolve


def raising(error):
    def resolve(name, record_type):
        raise error
    return resolve


@pytest.fixture
def lookup():
    return DNSLookup(dns_servers=['192.0.2.1', '192.0.2.2'], timeout=2)


def test_one_resolver_per_server(lookup):
    assert [r.nameservers for r in lookup.resolvers] == [['192.0.2.1'], ['192.0.2.2']]
    assert lookup.resolvers[0].lifetime == 2


def test_from_config():
    lookup = DNSLookup.from_config({'dns': {'servers': ['9.9.9.9'], 'timeout': 4}})
    assert lookup.dns_servers == ['9.9.9.9']
    assert lookup.timeout == 4


def test_txt_segments_are_decoded(lookup):
    lookup.resolvers[0].resolve = answering([
        SimpleNamespace(strings=(b'v=DMARC1; p=reject; ', b'rua=mailto:a@b.com')),
        SimpleNamespace(strings=(b'other',)),
    ])
    records = lookup.resolve_txt('_dmarc.example.com')
    assert records == [['v=DMARC1; p=reject; ', 'rua=mailto:a@b.com'], ['other']]
    assert flatten_txt(records) == ['v=DMARC1; p=reject; rua=mailto:a@b.com', 'other']


def test_mx_records(lookup):
    lookup.resolvers[0].resolve = answering([SimpleNamespace(exchange='mx.example.com.', preference=10)])
    assert lookup.resolve_mx('example.com') == [{'exchange': 'mx.example.com', 'priority': 10}]


@pytest.mark.parametrize('error', [dns.resolver.NXDOMAIN(), dns.resolver.NoAnswer()])
def test_negative_answer_is_not_retried(lookup, error):
    lookup.resolvers[0].resolve = raising(error)
    lookup.resolvers[1].resolve = answering([SimpleNamespace(strings=(b'unused',))])
    with pytest.raises(RecordNotFound):
        lookup.resolve_txt('example.com')


def test_falls_back_to_next_server(lookup):
    lookup.resolvers[0].resolve = raising(dns.exception.Timeout())
    lookup.resolvers[1].resolve = answering([SimpleNamespace(strings=(b'v=spf1 -all',))])
    assert lookup.resolve_txt('example.com') == [['v=spf1 -all']]


def test_all_servers_failing(lookup):
    for resolver in lookup.resolvers:
        resolver.resolve = raising(dns.resolver.NoNameservers())
    with pytest.raises(ResolutionError):
        lookup.resolve_mx('example.com')
