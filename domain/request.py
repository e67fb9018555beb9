# domain/request.py
"""
Request definition domain model (.rd file)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union


HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD")


class RequestType(str, Enum):
    REST = "REST"
    GRAPHQL = "GraphQL"


class BodyFormat(str, Enum):
    JSON = "json"
    FORM = "form"
    GRAPHQL = "graphql"
    RAW = "raw"
    MULTIPART = "multipart"


class ApiKeyPlacement(str, Enum):
    HEADER = "header"
    QUERY = "query"


@dataclass(frozen=True)
class RequestMeta:
    name: str
    type: RequestType = RequestType.REST
    version: int = 1


@dataclass(frozen=True)
class RequestBody:
    format: BodyFormat
    content: Any = None
    # graphql のみ
    query: Optional[str] = None
    variables: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class HttpRequestSpec:
    method: str
    url: str
    query: Dict[str, str] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[RequestBody] = None


@dataclass(frozen=True)
class NoAuth:
    pass


@dataclass(frozen=True)
class BearerAuth:
    token: str


@dataclass(frozen=True)
class BasicAuth:
    username: str
    password: str


@dataclass(frozen=True)
class ApiKeyAuth:
    key: str
    value: str
    placement: ApiKeyPlacement = ApiKeyPlacement.HEADER


AuthConfig = Union[NoAuth, BearerAuth, BasicAuth, ApiKeyAuth]


@dataclass(frozen=True)
class ScriptConfig:
    pre: Optional[str] = None
    post: Optional[str] = None
    language: str = "python"


@dataclass(frozen=True)
class RequestDefinition:
    """
    One parsed .rd file. Strings may still contain {{placeholders}};
    the resolver returns a new instance of the same shape (ResolvedRequest).
    """
    meta: RequestMeta
    request: HttpRequestSpec
    auth: Optional[AuthConfig] = None
    scripts: Optional[ScriptConfig] = None


# 解決済みリクエストは同じ構造（プレースホルダ解決後の新インスタンス）
ResolvedRequest = RequestDefinition
