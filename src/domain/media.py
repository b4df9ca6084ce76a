"""Closed set of media domains and the penalty compatibility rule between them."""

from __future__ import annotations

from enum import Enum


class MediaType(str, Enum):
    """Media family a penalty is scoped to."""

    CROSS_MEDIA = "cross_media"
    BOOKS = "books"
    MOVIES = "movies"
    GAMES = "games"
    MUSIC = "music"


class ItemType(str, Enum):
    """Concrete kind of item a list entry or ranked item points at."""

    ALBUM = "album"
    SONG = "song"
    MOVIE = "movie"
    GAME = "game"
    BOOK = "book"


class Domain(str, Enum):
    """Ranking domain shared by configurations, lists and their items."""

    MUSIC_ALBUMS = "music_albums"
    MUSIC_SONGS = "music_songs"
    MOVIES = "movies"
    GAMES = "games"
    BOOKS = "books"

    @property
    def media_type(self) -> MediaType:
        return _DOMAIN_MEDIA_TYPES[self]

    @property
    def item_type(self) -> ItemType:
        return _DOMAIN_ITEM_TYPES[self]

    @property
    def label(self) -> str:
        return _DOMAIN_LABELS[self]


_DOMAIN_MEDIA_TYPES: dict[Domain, MediaType] = {
    Domain.MUSIC_ALBUMS: MediaType.MUSIC,
    Domain.MUSIC_SONGS: MediaType.MUSIC,
    Domain.MOVIES: MediaType.MOVIES,
    Domain.GAMES: MediaType.GAMES,
    Domain.BOOKS: MediaType.BOOKS,
}

_DOMAIN_ITEM_TYPES: dict[Domain, ItemType] = {
    Domain.MUSIC_ALBUMS: ItemType.ALBUM,
    Domain.MUSIC_SONGS: ItemType.SONG,
    Domain.MOVIES: ItemType.MOVIE,
    Domain.GAMES: ItemType.GAME,
    Domain.BOOKS: ItemType.BOOK,
}

_DOMAIN_LABELS: dict[Domain, str] = {
    Domain.MUSIC_ALBUMS: "Music Albums",
    Domain.MUSIC_SONGS: "Music Songs",
    Domain.MOVIES: "Movies",
    Domain.GAMES: "Games",
    Domain.BOOKS: "Books",
}

# First year each medium produced rankable works; bounds the temporal coverage penalty.
EARLIEST_MEDIA_YEAR: dict[MediaType, int] = {
    MediaType.MUSIC: 1877,
    MediaType.MOVIES: 1888,
    MediaType.GAMES: 1958,
    MediaType.BOOKS: -3000,
}

DEFAULT_YEAR_RANGE = 100


def is_compatible(media_type: MediaType, domain: Domain) -> bool:
    """Return whether a penalty of ``media_type`` may affect lists/configs in ``domain``."""
    if media_type is MediaType.CROSS_MEDIA:
        return True
    return domain.media_type is media_type


def compatibility_error(media_type: MediaType, domain: Domain, target: str) -> str | None:
    """Human-readable reason a penalty cannot target ``domain``, or ``None`` if it can."""
    if is_compatible(media_type, domain):
        return None
    return f"{media_type.value} penalty cannot be applied to {domain.label} {target}"


def media_year_range(domain: Domain, current_year: int) -> int:
    """Number of calendar years a list in ``domain`` could possibly cover."""
    earliest = EARLIEST_MEDIA_YEAR.get(domain.media_type)
    if earliest is None:
        return DEFAULT_YEAR_RANGE
    return current_year - earliest + 1


__all__ = [
    "DEFAULT_YEAR_RANGE",
    "Domain",
    "EARLIEST_MEDIA_YEAR",
    "ItemType",
    "MediaType",
    "compatibility_error",
    "is_compatible",
    "media_year_range",
]
