from typing import Dict


def parse_param_string(raw: str) -> Dict[str, str]:
    """Parse the ad-hoc ``key:value,key:value`` parameter syntax.

    Whitespace around keys and values is dropped and empty segments are
    skipped. A value may itself contain ``:``; only the first one splits.
    Raises ``ValueError`` for a segment with no ``:`` or an empty key.
    """
    params: Dict[str, str] = {}
    for segment in raw.split(","):
        segment = segment.strip()
        if not segment:
            continue
        key, sep, value = segment.partition(":")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"malformed parameter '{segment}', expected key:value")
        params[key] = value.strip()
    return params
