# infrastructure/definition/rd_loader.py
"""
.rd（YAML）ファイルから RequestDefinition を生成
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from application.exceptions import DefinitionLoadError
from domain.request import (
    HTTP_METHODS,
    ApiKeyAuth,
    ApiKeyPlacement,
    AuthConfig,
    BasicAuth,
    BearerAuth,
    BodyFormat,
    HttpRequestSpec,
    NoAuth,
    RequestBody,
    RequestDefinition,
    RequestMeta,
    RequestType,
    ScriptConfig,
)

REQUEST_FILE_SUFFIX = ".rd"

TOP_LEVEL_KEYS = {"meta", "request", "auth", "scripts"}
META_KEYS = {"name", "type", "version", "description"}
REQUEST_KEYS = {"method", "url", "query", "headers", "body"}
BODY_KEYS = {"format", "content", "query", "variables"}
AUTH_KEYS = {"type", "token", "username", "password", "key", "value", "in"}
SCRIPT_KEYS = {"language", "pre", "post"}
AUTH_TYPES = ("none", "inherit", "bearer", "basic", "api-key")


def is_request_file(path: Union[str, Path]) -> bool:
    # Windows 形式のパスも拡張子だけで判定する
    name = str(path).replace("\\", "/").rsplit("/", 1)[-1]
    return name.lower().endswith(REQUEST_FILE_SUFFIX)


class RdDefinitionLoader:
    """Load and validate .rd request definitions."""

    is_request_file = staticmethod(is_request_file)

    def load_from_file(self, path: Union[str, Path]) -> RequestDefinition:
        p = Path(path)
        if not p.is_file():
            raise DefinitionLoadError(f"Request file not found: {path}")

        with p.open("r", encoding="utf-8") as f:
            text = f.read()

        return self.load_from_string(text, source_name=str(path))

    def load_from_string(self, text: str, source_name: str = "input") -> RequestDefinition:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise DefinitionLoadError(f"Invalid YAML in {source_name}: {e}") from e

        return self.load_from_dict(data, source_name=source_name)

    def load_from_dict(self, data: Any, source_name: str = "input") -> RequestDefinition:
        errors = self.validate(data)
        if errors:
            lines = "\n".join(f"  - {e}" for e in errors)
            raise DefinitionLoadError(f"Validation failed for {source_name}:\n{lines}")

        return RequestDefinition(
            meta=self._load_meta(data["meta"]),
            request=self._load_request(data["request"]),
            auth=self._load_auth(data.get("auth")),
            scripts=self._load_scripts(data.get("scripts")),
        )

    def validate(self, data: Any) -> List[str]:
        """
        Structural check of a parsed .rd document.

        Returns every problem found as "<path>: <message>"; an empty list
        means the document is valid.
        """
        errors: List[str] = []
        if not isinstance(data, dict):
            return ["/: must be a mapping"]

        _unknown_keys(data, TOP_LEVEL_KEYS, "", errors)

        meta = data.get("meta")
        if not isinstance(meta, dict):
            errors.append("/meta: required mapping")
        else:
            _unknown_keys(meta, META_KEYS, "/meta", errors)
            if not isinstance(meta.get("name"), str) or not meta.get("name"):
                errors.append("/meta/name: required string")
            if meta.get("type") not in [t.value for t in RequestType]:
                errors.append(f"/meta/type: must be one of {', '.join(t.value for t in RequestType)}")
            version = meta.get("version")
            if not isinstance(version, int) or isinstance(version, bool) or version < 1:
                errors.append("/meta/version: required integer >= 1")

        request = data.get("request")
        if not isinstance(request, dict):
            errors.append("/request: required mapping")
        else:
            _unknown_keys(request, REQUEST_KEYS, "/request", errors)
            if request.get("method") not in HTTP_METHODS:
                errors.append(f"/request/method: must be one of {', '.join(HTTP_METHODS)}")
            if not isinstance(request.get("url"), str) or not request.get("url"):
                errors.append("/request/url: required string")
            for key in ("query", "headers"):
                if key in request and not isinstance(request[key], dict):
                    errors.append(f"/request/{key}: must be a mapping")
            if "body" in request:
                self._validate_body(request["body"], errors)

        if data.get("auth") is not None:
            self._validate_auth(data["auth"], errors)

        scripts = data.get("scripts")
        if scripts is not None:
            if not isinstance(scripts, dict):
                errors.append("/scripts: must be a mapping")
            else:
                _unknown_keys(scripts, SCRIPT_KEYS, "/scripts", errors)
                for key in ("pre", "post", "language"):
                    if key in scripts and scripts[key] is not None and not isinstance(scripts[key], str):
                        errors.append(f"/scripts/{key}: must be a string")

        return errors

    def _validate_body(self, body: Any, errors: List[str]) -> None:
        if not isinstance(body, dict):
            errors.append("/request/body: must be a mapping")
            return
        _unknown_keys(body, BODY_KEYS, "/request/body", errors)
        if body.get("format") not in [f.value for f in BodyFormat]:
            errors.append(f"/request/body/format: must be one of {', '.join(f.value for f in BodyFormat)}")
        if "variables" in body and body["variables"] is not None and not isinstance(body["variables"], dict):
            errors.append("/request/body/variables: must be a mapping")

    def _validate_auth(self, auth: Any, errors: List[str]) -> None:
        if not isinstance(auth, dict):
            errors.append("/auth: must be a mapping")
            return
        _unknown_keys(auth, AUTH_KEYS, "/auth", errors)
        if auth.get("type") not in AUTH_TYPES:
            errors.append(f"/auth/type: must be one of {', '.join(AUTH_TYPES)}")
        if "in" in auth and auth["in"] not in [p.value for p in ApiKeyPlacement]:
            errors.append("/auth/in: must be header or query")

    def _load_meta(self, data: Dict[str, Any]) -> RequestMeta:
        return RequestMeta(
            name=data["name"],
            type=RequestType(data["type"]),
            version=data["version"],
        )

    def _load_request(self, data: Dict[str, Any]) -> HttpRequestSpec:
        return HttpRequestSpec(
            method=data["method"],
            url=data["url"],
            query=_string_map(data.get("query")),
            headers=_string_map(data.get("headers")),
            body=self._load_body(data.get("body")),
        )

    def _load_body(self, data: Optional[Dict[str, Any]]) -> Optional[RequestBody]:
        if not data:
            return None
        return RequestBody(
            format=BodyFormat(data["format"]),
            content=data.get("content"),
            query=data.get("query"),
            variables=data.get("variables"),
        )

    def _load_auth(self, data: Optional[Dict[str, Any]]) -> Optional[AuthConfig]:
        if not data:
            return None
        auth_type = data["type"]
        if auth_type == "bearer":
            return BearerAuth(token=str(data.get("token") or ""))
        if auth_type == "basic":
            return BasicAuth(
                username=str(data.get("username") or ""),
                password=str(data.get("password") or ""),
            )
        if auth_type == "api-key":
            return ApiKeyAuth(
                key=str(data.get("key") or ""),
                value=str(data.get("value") or ""),
                placement=ApiKeyPlacement(data.get("in", "header")),
            )
        # none / inherit
        return NoAuth()

    def _load_scripts(self, data: Optional[Dict[str, Any]]) -> Optional[ScriptConfig]:
        if not data:
            return None
        return ScriptConfig(
            pre=data.get("pre") or None,
            post=data.get("post") or None,
            language=data.get("language") or "python",
        )


def _unknown_keys(data: Dict[str, Any], allowed: set, path: str, errors: List[str]) -> None:
    for key in data:
        if key not in allowed:
            errors.append(f"{path or '/'}: unknown property '{key}'")


def _string_map(data: Optional[Dict[str, Any]]) -> Dict[str, str]:
    # YAML の数値/真偽値はヘッダ・クエリでは文字列として扱う
    if not data:
        return {}
    out: Dict[str, str] = {}
    for k, v in data.items():
        if v is None:
            continue
        if isinstance(v, bool):
            out[str(k)] = "true" if v else "false"
        else:
            out[str(k)] = str(v)
    return out
