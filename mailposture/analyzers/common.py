"""Helpers shared by the protocol analyzers."""

from typing import Callable, List, Optional

from mailposture.console import log_message
from mailposture.resolver import flatten_txt


def matching_txt_records(lookup, name: str, predicate: Callable[[str], bool]) -> List[str]:
    """All TXT records at `name` for which `predicate` holds, in answer order"""
    return [txt for txt in flatten_txt(lookup.resolve_txt(name)) if predicate(txt)]


def run_verifier(label: str, call: Callable[[], dict]) -> Optional[dict]:
    """Run an advisory verifier call; any failure is logged and yields None"""
    try:
        return call()
    except Exception as e:
        log_message(f"{label} verification error (ignored): {e}", "WARNING")
        return None


def verification_details(label: str, verification: Optional[dict], include_info: bool = True) -> List[str]:
    """Non-scoring detail lines describing a verifier result"""
    if not verification:
        return []

    details = []
    status = verification.get('status') or {}
    if status.get('result'):
        details.append(f"Verifier {label} check: {status['result']}")
    if include_info and verification.get('info'):
        details.append(f"{label} info: {verification['info']}")
    return details
