"""Fixed genre and streaming-service vocabularies used for preference matching.

Each entry maps a lowercase term that may appear in user text to the
canonical name TMDb uses. Order matters: mentioned names are reported in
table order.
"""

from __future__ import annotations

GENRE_TERMS: tuple[tuple[str, str], ...] = (
    ("action", "Action"),
    ("adventure", "Adventure"),
    ("animation", "Animation"),
    ("animated", "Animation"),
    ("anime", "Animation"),
    ("comedy", "Comedy"),
    ("comedies", "Comedy"),
    ("funny", "Comedy"),
    ("crime", "Crime"),
    ("documentary", "Documentary"),
    ("documentaries", "Documentary"),
    ("drama", "Drama"),
    ("family", "Family"),
    ("fantasy", "Fantasy"),
    ("history", "History"),
    ("historical", "History"),
    ("horror", "Horror"),
    ("scary", "Horror"),
    ("music", "Music"),
    ("mystery", "Mystery"),
    ("romance", "Romance"),
    ("romantic", "Romance"),
    ("science fiction", "Science Fiction"),
    ("sci-fi", "Science Fiction"),
    ("scifi", "Science Fiction"),
    ("thriller", "Thriller"),
    ("war", "War"),
    ("western", "Western"),
    ("tv movie", "TV Movie"),
)

STREAMING_TERMS: tuple[tuple[str, str], ...] = (
    ("netflix", "Netflix"),
    ("prime video", "Amazon Prime Video"),
    ("amazon prime", "Amazon Prime Video"),
    ("hulu", "Hulu"),
    ("disney+", "Disney Plus"),
    ("disney plus", "Disney Plus"),
    ("hbo", "HBO Max"),
    ("apple tv", "Apple TV Plus"),
    ("peacock", "Peacock"),
    ("paramount+", "Paramount Plus"),
    ("paramount plus", "Paramount Plus"),
    ("tubi", "Tubi TV"),
    ("crunchyroll", "Crunchyroll"),
    ("mubi", "MUBI"),
)

KNOWN_GENRES: frozenset[str] = frozenset(name for _, name in GENRE_TERMS)
KNOWN_SERVICES: frozenset[str] = frozenset(name for _, name in STREAMING_TERMS)
