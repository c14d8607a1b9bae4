import re
from typing import List

_GLOB_CHARS = set("*?[]")


def matches(pattern: str, name: str) -> bool:
    """
    Case-insensitive repository name match.
    Plain text is a substring match; ``*`` and ``?`` make it an anchored glob
    where ``*`` also crosses ``/``.
    """
    pattern = pattern.lower()
    name = name.lower()

    if not _GLOB_CHARS.intersection(pattern):
        return pattern in name

    regex = re.escape(pattern).replace(r"\*", ".*").replace(r"\?", ".")
    try:
        compiled = re.compile(f"^{regex}$")
    except re.error:
        return pattern.replace("*", "").replace("?", "") in name
    return compiled.match(name) is not None


def filter_repos(repos: List[str], pattern: str) -> List[str]:
    if not pattern:
        return repos
    return [repo for repo in repos if matches(pattern, repo)]
