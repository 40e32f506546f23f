"""DNS lookups backed by dnspython, with per-nameserver fallback."""

from typing import Dict, List, Optional

import dns.exception
import dns.resolver

from mailposture.console import log_message
from mailposture.errors import RecordNotFound, ResolutionError

DEFAULT_SERVERS = ['8.8.8.8', '1.1.1.1']


class DNSLookup:
    """TXT and MX resolver; each configured nameserver is tried in order"""

    def __init__(self, dns_servers: Optional[List[str]] = None, timeout: float = 10):
        self.dns_servers = dns_servers or DEFAULT_SERVERS
        self.timeout = timeout
        self.resolvers = []

        for server in self.dns_servers:
            resolver = dns.resolver.Resolver(configure=False)
            resolver.nameservers = [server]
            resolver.timeout = timeout
            resolver.lifetime = timeout
            self.resolvers.append(resolver)

    @classmethod
    def from_config(cls, config: dict) -> 'DNSLookup':
        dns_cfg = config.get('dns', {})
        return cls(dns_servers=dns_cfg.get('servers'), timeout=dns_cfg.get('timeout', 10))

    def query(self, name: str, record_type: str):
        """Query DNS with multiple resolver fallback"""
        last_error = None
        for i, resolver in enumerate(self.resolvers):
            try:
                if i > 0:
                    log_message(f"Trying DNS resolver {resolver.nameservers[0]} for {name} {record_type}", "DEBUG")
                return resolver.resolve(name, record_type)
            except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer) as e:
                # Authoritative negative answers are not retried
                raise RecordNotFound(f"No {record_type} record found for {name}") from e
            except dns.exception.DNSException as e:
                last_error = e
                continue

        log_message(f"All DNS resolvers failed for {name} {record_type}: {last_error}", "ERROR")
        raise ResolutionError(f"DNS lookup failed for {name} {record_type}: {last_error}")

    def resolve_txt(self, name: str) -> List[List[str]]:
        """TXT records as lists of their character-string segments"""
        answers = self.query(name, 'TXT')
        return [
            [segment.decode('utf-8', errors='replace') for segment in rdata.strings]
            for rdata in answers
        ]

    def resolve_mx(self, name: str) -> List[Dict]:
        answers = self.query(name, 'MX')
        return [
            {'exchange': str(rdata.exchange).rstrip('.'), 'priority': rdata.preference}
            for rdata in answers
        ]


def flatten_txt(txt_records: List[List[str]]) -> List[str]:
    """Join each record's segments into one string"""
    return [''.join(segments) for segments in txt_records]
