"""Tag=value list parsing (RFC 6376 section 3.2) via dkimpy."""

from typing import Dict, Optional

from dkim.util import InvalidTagValueList, parse_tag_value


def try_parse_tag_list(record: str) -> Optional[Dict[str, str]]:
    """
    Parse `record` with the strict library parser.

    Returns None when the list is malformed (empty segment, segment without
    '=', duplicate tag) instead of raising. Keys are lower-cased; values are
    returned as found.
    """
    try:
        tags = parse_tag_value(record.encode('utf-8'))
    except InvalidTagValueList:
        return None

    return {
        key.decode('utf-8', errors='replace').lower(): value.decode('utf-8', errors='replace')
        for key, value in tags.items()
    }
