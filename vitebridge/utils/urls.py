from __future__ import annotations

import posixpath
from urllib.parse import urlsplit, urlunsplit


def join_url(base: str, *elements: str) -> str:
    """Join path elements onto ``base``, cleaning ``.``/``..`` and duplicate slashes.

    A trailing slash on the last element is preserved.
    """
    parts = urlsplit(base)
    segments = [parts.path or "/", *elements]
    # normpath keeps a leading "//" intact
    joined = posixpath.normpath("/".join(segments)).replace("//", "/")
    if not joined.startswith("/"):
        joined = "/" + joined
    if elements and elements[-1].endswith("/") and not joined.endswith("/"):
        joined += "/"
    return urlunsplit((parts.scheme, parts.netloc, joined, parts.query, parts.fragment))
