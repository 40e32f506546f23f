import pytest

from mailposture.errors import RecordNotFound, VerifierError


class FakeLookup:
    """In-memory stand-in for DNSLookup"""

    def __init__(self, txt=None, mx=None):
        self.txt = txt or {}
        self.mx = mx or {}
        self.queries = []

    @staticmethod
    def _answer(table, name, record_type):
        if name not in table:
            raise RecordNotFound(f"No {record_type} record found for {name}")
        answer = table[name]
        if isinstance(answer, Exception):
            raise answer
        return answer

    def resolve_txt(self, name):
        self.queries.append(('TXT', name))
        return [
            segments if isinstance(segments, list) else [segments]
            for segments in self._answer(self.txt, name, 'TXT')
        ]

    def resolve_mx(self, name):
        self.queries.append(('MX', name))
        return [dict(record) for record in self._answer(self.mx, name, 'MX')]


class FakeVerifier:
    def __init__(self, result='pass', info=None, fail=False):
        self.result = result
        self.info = info
        self.fail = fail
        self.calls = []

    def _verdict(self, kind, *args):
        self.calls.append((kind,) + args)
        if self.fail:
            raise VerifierError(f"{kind} verifier unavailable")
        verdict = {'status': {'result': self.result}}
        if self.info:
            verdict['info'] = self.info
        return verdict

    def verify_dmarc(self, domain):
        return self._verdict('dmarc', domain)

    def verify_spf(self, domain):
        return self._verdict('spf', domain)

    def verify_dkim(self, domain, selector='default'):
        return self._verdict('dkim', domain, selector)


STRONG_DMARC = 'v=DMARC1; p=reject; rua=mailto:a@b.com; ruf=mailto:c@d.com; sp=reject; pct=100; adkim=s; aspf=s'
GOOGLE_SPF = 'v=spf1 include:_spf.google.com ~all'
RSA_DKIM = 'v=DKIM1; k=rsa; h=sha256; p=MIGfMA0GCSqGSIb3DQEBAQUAA4GNADCBiQKBgQC'


@pytest.fixture
def healthy_lookup():
    return FakeLookup(
        txt={
            '_dmarc.example.com': [['v=DMARC1; p=reject; ', 'rua=mailto:a@b.com']],
            'example.com': ['google-site-verification=abc', GOOGLE_SPF],
            'default._domainkey.example.com': [RSA_DKIM],
        },
        mx={
            'example.com': [
                {'exchange': 'alt1.mx.example.com', 'priority': 20},
                {'exchange': 'mx.example.com', 'priority': 10},
            ],
        },
    )


@pytest.fixture
def fake_verifier():
    return FakeVerifier(result='pass', info='probe accepted')
