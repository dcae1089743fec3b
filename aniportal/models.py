"""
Pydantic models for the Aniportal FastAPI application

Attributes are snake_case; JSON uses the camelCase names the front-end
consumes (pydantic aliases, FastAPI serialises by alias).
"""

from datetime import datetime
from typing import Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class _Shape(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class EpisodeSummary(_Shape):
    """Recently aired anime, rendered as an episode card"""
    episode_id: str = Field(alias="episodeId")
    anime_title: str = Field(alias="animeTitle")
    episode_num: str = Field(alias="episodeNum")
    sub_or_dub: str = Field(alias="subOrDub")
    anime_img: Optional[str] = Field(default=None, alias="animeImg")
    episode_url: str = Field(alias="episodeUrl")


class PopularAnimeSummary(_Shape):
    """Card for popular listings and search results"""
    anime_id: str = Field(alias="animeId")
    anime_title: str = Field(alias="animeTitle")
    anime_img: Optional[str] = Field(default=None, alias="animeImg")
    released_date: str = Field(alias="releasedDate")
    anime_url: str = Field(alias="animeUrl")


class TopAiringSummary(_Shape):
    """Card for currently airing listings"""
    anime_id: str = Field(alias="animeId")
    anime_title: str = Field(alias="animeTitle")
    anime_img: Optional[str] = Field(default=None, alias="animeImg")
    latest_ep: str = Field(alias="latestEp")
    anime_url: str = Field(alias="animeUrl")
    genres: List[str] = Field(default_factory=list)


class GenreAnimeSummary(_Shape):
    """Card for a genre listing"""
    anime_id: str = Field(alias="animeId")
    anime_title: str = Field(alias="animeTitle")
    anime_img: Optional[str] = Field(default=None, alias="animeImg")
    score: Optional[float] = None
    episodes: Optional[int] = None
    anime_url: str = Field(alias="animeUrl")


class AnimeDetail(_Shape):
    """Model for the anime detail view"""
    anime_title: str = Field(alias="animeTitle")
    synopsis: str = ""
    type: str = "Unknown"
    released_date: str = Field(default="Unknown", alias="releasedDate")
    status: str = "Unknown"
    genres: List[str] = Field(default_factory=list)
    total_episodes: int = Field(default=0, alias="totalEpisodes")
    anime_img: Optional[str] = Field(default=None, alias="animeImg")


class EpisodeLink(_Shape):
    """One playable entry in the detail view episode list"""
    episode_id: str = Field(alias="episodeId")
    episode_num: int = Field(alias="episodeNum")
    title: Optional[str] = None
    episode_url: str = Field(alias="episodeUrl")


class Genre(_Shape):
    """Model for an upstream genre"""
    genre_id: int = Field(alias="genreId")
    name: str
    count: int = 0


class SearchPage(_Shape):
    """One upstream page of search results"""
    query: str
    page: int
    total_pages: int = Field(alias="totalPages")
    has_next: bool = Field(alias="hasNext")
    results: List[PopularAnimeSummary]


class FetchResult(BaseModel, Generic[T]):
    """Tagged outcome of a list operation.

    ``status == "error"`` always comes with an empty ``data`` and a ``cause``;
    an empty ``data`` with ``status == "ok"`` means upstream had nothing.
    """
    status: Literal["ok", "error"] = "ok"
    data: List[T] = Field(default_factory=list)
    cause: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @classmethod
    def success(cls, data: List[T]) -> "FetchResult[T]":
        return cls(status="ok", data=data)

    @classmethod
    def failure(cls, cause: str) -> "FetchResult[T]":
        return cls(status="error", data=[], cause=cause)


class GridPage(BaseModel, Generic[T]):
    """Model for a grid page cut from an aggregated listing"""
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["ok", "error"] = "ok"
    cause: Optional[str] = None
    page: int
    per_page: int = Field(alias="perPage")
    total: int
    has_next: bool = Field(alias="hasNext")
    data: List[T]


class GenreListing(BaseModel):
    """Model for the genre page"""
    model_config = ConfigDict(populate_by_name=True)

    genre_id: int = Field(alias="genreId")
    name: str
    status: Literal["ok", "error"] = "ok"
    cause: Optional[str] = None
    data: List[GenreAnimeSummary]


class UserProfile(BaseModel):
    """Profile row owned by the auth/database backend"""
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    updated_at: Optional[datetime] = None


class ProfileUpdate(BaseModel):
    """Model for profile edit requests"""
    username: str = Field(..., min_length=1, max_length=64)


class Credentials(BaseModel):
    """Model for email/password auth requests"""
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)
    redirect_to: Optional[str] = None


class ConfirmationRequest(BaseModel):
    """Model for confirmation mail resend requests"""
    email: str = Field(..., min_length=3)
    redirect_to: Optional[str] = None


class AuthSession(BaseModel):
    """Session issued by the auth backend"""
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    user_id: str
    email: Optional[str] = None


class AuthUser(BaseModel):
    """Authenticated user as reported by the auth backend"""
    id: str
    email: Optional[str] = None
    email_confirmed: bool = False


class ErrorResponse(BaseModel):
    """Model for error responses"""
    detail: str
    error_type: str
