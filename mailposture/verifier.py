"""
Authentication verifier

Advisory checks run against a synthetic sender context. SPF is evaluated
with pyspf for a probe IP, DKIM by loading the selector's public key with
dkimpy. Results have the shape {'status': {'result': ...}, 'info': ...} and
never affect scores.
"""

from typing import Dict

import dkim
import spf

from mailposture.errors import VerifierError


class AuthVerifier:
    """Runs SPF, DKIM and DMARC checks for `test@<domain>` sent from `probe_ip`"""

    def __init__(self, probe_ip: str = '8.8.8.8', timeout: int = 10):
        self.probe_ip = probe_ip
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: dict) -> 'AuthVerifier':
        return cls(
            probe_ip=config.get('verifier', {}).get('probe_ip', '8.8.8.8'),
            timeout=config.get('dns', {}).get('timeout', 10),
        )

    def _check_spf(self, domain: str):
        try:
            return spf.check2(i=self.probe_ip, s=f"test@{domain}", h=domain, timeout=self.timeout)
        except Exception as e:
            raise VerifierError(f"SPF verification failed: {e}") from e

    def verify_spf(self, domain: str) -> Dict:
        result, explanation = self._check_spf(domain)
        return {'status': {'result': result}, 'info': explanation}

    def verify_dmarc(self, domain: str) -> Dict:
        # The envelope sender and the From domain are identical, so an SPF
        # pass is always aligned.
        result, explanation = self._check_spf(domain)
        return {
            'status': {'result': 'pass' if result == 'pass' else 'fail'},
            'info': f"aligned SPF for {self.probe_ip}: {result} ({explanation})",
        }

    def verify_dkim(self, domain: str, selector: str = 'default') -> Dict:
        try:
            name = f"{selector}._domainkey.{domain}".encode('idna')
            key = dkim.load_pk_from_dns(name, timeout=self.timeout)
        except dkim.KeyFormatError as e:
            return {'status': {'result': 'fail'}, 'info': str(e)}
        except Exception as e:
            raise VerifierError(f"DKIM verification failed: {e}") from e

        keysize, ktag = key[1], key[2]
        if isinstance(ktag, bytes):
            ktag = ktag.decode('ascii', errors='replace')
        return {'status': {'result': 'pass'}, 'info': f"{ktag} key, {keysize} bits"}
