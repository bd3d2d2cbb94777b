"""Response normalization, deduplication, and inline-response extraction.

Two services live here and share one notion of response identity:

* :class:`ResponseDeduplicator` -- renames the responses already declared in
  ``components.responses`` after their status code and collapses the ones
  that are structurally equivalent.
* :class:`ResponseExtractor` -- finds inline responses under every operation,
  collapses equivalent ones, and promotes each equivalence class to a single
  named component.

Identity is a *dedupe key*:

* ``simple:<status>`` -- nothing but an optional ``description``;
* ``<status>:<signature>`` -- typed ``content``, where the signature is the
  sorted JSON of ``media type -> {"schema": ...}``;
* ``unique:<name>`` / ``hash:<digest>`` -- anything else.

When several names compete for one class, :func:`score_response_name` picks
the canonical one. Without it a 200 response sharing a body-less shape with
an error response could end up named ``UnexpectedErrorResponse`` depending
on declaration order.
"""

from __future__ import annotations

import copy
import hashlib
import json
import re
from dataclasses import dataclass
from typing import Any, Optional

from specsplit.models import (
    HTTPMethod,
    OpenAPIDocument,
    ResponseExtractionResult,
    ResponseNamingConfig,
    ResponseNormalizationResult,
    StatusCode,
)
from specsplit.naming import NameNormalizer
from specsplit.output import debug, step
from specsplit.walk import rewrite_refs

RESPONSES_POINTER = "#/components/responses/"

_HTTP_METHODS = frozenset(m.value for m in HTTPMethod)
_RESPONSE_SUFFIX = "Response"
_TRAILING_SUFFIX = re.compile(r"Response$", re.IGNORECASE)
_TRAILING_STATUS = re.compile(r"\d{3}$")
_ANY_STATUS = re.compile(r"\d{3}")

GENERIC_DESCRIPTIONS: dict[str, str] = {
    "200": "Successful operation",
    "201": "Resource created successfully",
    "202": "Request accepted",
    "204": "No content",
    "400": "Bad request",
    "401": "Unauthorized",
    "403": "Forbidden",
    "404": "Resource not found",
    "405": "Method not allowed",
    "409": "Conflict",
    "422": "Unprocessable entity",
    "429": "Too many requests",
    "500": "Internal server error",
    "501": "Not implemented",
    "502": "Bad gateway",
    "503": "Service unavailable",
    "504": "Gateway timeout",
    "default": "Unexpected error",
}


# --- Shared identity and scoring helpers ---


def is_simple_response(response: Any) -> bool:
    """True when *response* carries nothing but an optional description."""
    if not isinstance(response, dict):
        return True
    return set(response) <= {"description"}


def content_signature(response: Any) -> Optional[str]:
    """Deterministic signature of a response's typed content, or ``None``."""
    if not isinstance(response, dict) or not isinstance(response.get("content"), dict):
        return None
    signature = {
        media_type: {"schema": (media or {}).get("schema") if isinstance(media, dict) else None}
        for media_type, media in response["content"].items()
    }
    return json.dumps(signature, sort_keys=True, ensure_ascii=False, default=str)


def content_hash(response: Any) -> str:
    """Short digest of the whole response, for shapes without a signature."""
    normalized = json.dumps(response, sort_keys=True, ensure_ascii=False, default=str)
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:12]


def is_error_like(name: str, patterns: list[str]) -> bool:
    lowered = (name or "").lower()
    return any(p.lower() in lowered for p in patterns)


def score_response_name(
    final_name: str,
    original_name: str,
    status: StatusCode,
    error_patterns: list[str],
) -> int:
    """Score a candidate canonical name; higher wins.

    * -50 when the name looks error-like, +20 otherwise;
    * +30 for 2xx, -10 for 4xx/5xx;
    * +5 when normalization left the name unchanged;
    * +2 when the name already ends in ``Response``;
    * minus one point per 20 characters, capped at 10.
    """
    name = final_name or original_name or ""
    score = 0
    if is_error_like(name, error_patterns) or is_error_like(original_name, error_patterns):
        score -= 50
    else:
        score += 20

    if status.is_success:
        score += 30
    elif status.is_error:
        score -= 10

    if final_name == original_name:
        score += 5
    if _TRAILING_SUFFIX.search(name):
        score += 2
    score -= min(10, len(name) // 20)
    return score


@dataclass
class ResponseCandidate:
    """One member of a response equivalence class (transient)."""

    original_name: str
    status: StatusCode
    dedupe_key: str
    final_name: str
    content: Any


def choose_canonical(
    candidates: list[ResponseCandidate], error_patterns: list[str]
) -> ResponseCandidate:
    """Pick the best-scoring candidate; ties go to the smaller lowercased name."""
    best: Optional[ResponseCandidate] = None
    best_score = 0
    for candidate in candidates:
        score = score_response_name(
            candidate.final_name, candidate.original_name, candidate.status, error_patterns
        )
        if (
            best is None
            or score > best_score
            or (score == best_score and candidate.final_name.lower() < best.final_name.lower())
        ):
            best, best_score = candidate, score
    assert best is not None
    return best


def numbered(name: str, counter: int) -> str:
    """Insert *counter* before a trailing ``Response`` suffix (``Ok2Response``)."""
    if name.endswith(_RESPONSE_SUFFIX) and len(name) > len(_RESPONSE_SUFFIX):
        return f"{name[: -len(_RESPONSE_SUFFIX)]}{counter}{_RESPONSE_SUFFIX}"
    return f"{name}{counter}"


def unique_name(name: str, used: set[str]) -> str:
    """Return *name*, or the first free numbered variant, and mark it used.

    Comparison is case-insensitive so that two names never map to files
    that collide on case-insensitive filesystems.
    """
    taken = {u.lower() for u in used}
    candidate = name
    counter = 2
    while candidate.lower() in taken:
        candidate = numbered(name, counter)
        counter += 1
    used.add(candidate)
    return candidate


def _dedupe_key(status: StatusCode, response: Any, fallback: str) -> str:
    if is_simple_response(response):
        return f"simple:{status}"
    signature = content_signature(response)
    if signature is not None:
        return f"{status}:{signature}"
    return fallback


# --- Existing responses ---


class ResponseDeduplicator:
    """Normalize and deduplicate the responses in ``components.responses``.

    Args:
        normalizer: Shared naming engine.
        config: The ``response_naming`` section of the modularize config.
    """

    def __init__(self, normalizer: NameNormalizer, config: ResponseNamingConfig) -> None:
        self._normalizer = normalizer
        self._config = config

    def normalize(self, responses: Optional[dict[str, Any]]) -> ResponseNormalizationResult:
        """Group equivalent responses and choose a canonical name per group.

        Returns an empty result when response naming is disabled or there is
        nothing to normalize; :meth:`apply` then leaves the document alone.
        """
        if not self._config.enabled or not responses:
            return ResponseNormalizationResult()

        groups: dict[str, list[ResponseCandidate]] = {}
        for original_name, content in responses.items():
            status = StatusCode.from_name(original_name)
            if status.is_default and is_simple_response(content):
                # A body-less response of unknown status only matches itself.
                key = f"unique:{original_name}"
            else:
                key = _dedupe_key(status, content, f"unique:{original_name}")
            description = content.get("description", "") if isinstance(content, dict) else ""
            candidate = ResponseCandidate(
                original_name=original_name,
                status=status,
                dedupe_key=key,
                final_name=self.normalize_response_name(original_name, status, description),
                content=self._normalize_content(content, status),
            )
            groups.setdefault(key, []).append(candidate)

        result = ResponseNormalizationResult()
        used: set[str] = set()
        for key, members in groups.items():
            canonical = choose_canonical(members, self._config.error_name_patterns)
            final_name = unique_name(canonical.final_name, used)
            result.normalized[final_name] = canonical.content
            if len(members) > 1:
                debug(
                    f"Collapsed {len(members)} equivalent responses into '{final_name}' ({key})"
                )
            for member in members:
                result.name_mapping[member.original_name] = final_name
                if member.original_name != final_name:
                    result.ref_mapping[RESPONSES_POINTER + member.original_name] = (
                        RESPONSES_POINTER + final_name
                    )
                    step(f"response {member.original_name} -> {final_name}")
        return result

    def normalize_response_name(
        self, original_name: str, status: StatusCode, description: str = ""
    ) -> str:
        """Compute the normalized name of one existing response.

        A name without an embedded status code keeps its own name (plus the
        suffix rules). It is never replaced by the ``default`` entry of the
        status table.
        """
        cfg = self._config
        if status.is_default:
            name = original_name
            if cfg.remove_status_code_from_name:
                name = _ANY_STATUS.sub("", name, count=1)
            name = self._with_suffix(name or original_name)
        elif any(status.matches(p) for p in cfg.preserve_custom_names):
            name = original_name
            if cfg.remove_status_code_from_name:
                name = _TRAILING_STATUS.sub("", name) or original_name
            name = self._with_suffix(name)
        else:
            base = ""
            if cfg.use_semantic_names:
                base = cfg.status_names.get(str(status), "")
                if not base:
                    base = self._normalizer.sanitize(description)
            if not base:
                base = original_name
                if cfg.remove_status_code_from_name:
                    base = _ANY_STATUS.sub("", base, count=1) or original_name
            if cfg.include_status_code_in_name:
                base = _TRAILING_SUFFIX.sub("", base) + str(status)
            name = self._with_suffix(base)
        return self._normalizer.apply_convention(name, cfg.naming_convention)

    def apply(
        self, document: OpenAPIDocument, result: ResponseNormalizationResult
    ) -> OpenAPIDocument:
        """Return a new document with normalized responses and rewritten pointers."""
        if not result.normalized:
            return document

        paths = copy.deepcopy(document.paths)
        components = copy.deepcopy(document.components)
        components["responses"] = copy.deepcopy(result.normalized)

        def _rewrite(ref: str, _location: tuple) -> Optional[str]:
            return result.ref_mapping.get(ref)

        count = rewrite_refs(paths, _rewrite) + rewrite_refs(components, _rewrite)
        debug(f"Rewrote {count} response reference(s) after normalization")
        return document.evolve(paths=paths, components=components)

    def _with_suffix(self, name: str) -> str:
        stripped = _TRAILING_SUFFIX.sub("", name)
        if not stripped:
            return name
        if self._config.ensure_response_suffix:
            return stripped + _RESPONSE_SUFFIX
        return stripped

    def _normalize_content(self, content: Any, status: StatusCode) -> Any:
        normalized = copy.deepcopy(content)
        if self._config.use_generic_descriptions and isinstance(normalized, dict):
            generic = GENERIC_DESCRIPTIONS.get(str(status))
            if generic:
                normalized["description"] = generic
        return normalized


# --- Inline responses ---


class ResponseExtractor:
    """Promote inline operation responses to shared components.

    Args:
        normalizer: Shared naming engine.
        config: The ``response_naming`` section of the modularize config.
    """

    def __init__(self, normalizer: NameNormalizer, config: ResponseNamingConfig) -> None:
        self._normalizer = normalizer
        self._config = config

    def should_extract(self, status_key: str) -> bool:
        """False when *status_key* is covered by ``preserve_custom_names``."""
        status = StatusCode.parse(status_key)
        for pattern in self._config.preserve_custom_names:
            if pattern == str(status_key) or status.matches(pattern):
                return False
        return True

    def extract(
        self, paths: dict[str, Any], existing: Optional[dict[str, Any]] = None
    ) -> ResponseExtractionResult:
        """Collect inline responses and assign each one a canonical component.

        Args:
            paths: The document's path map. It is not modified.
            existing: ``components.responses`` of the document. Existing
                responses with an explicit status code absorb equivalent
                inline ones instead of a new component being created.

        Returns:
            The new units plus ``route -> method -> status -> name``.
        """
        existing = existing or {}
        used: set[str] = set(existing)
        key_to_name = self._seed_existing(existing)
        result = ResponseExtractionResult()

        for route, path_item in (paths or {}).items():
            if not isinstance(path_item, dict):
                continue
            for method, operation in path_item.items():
                if method.lower() not in _HTTP_METHODS or not isinstance(operation, dict):
                    continue
                responses = operation.get("responses")
                if not isinstance(responses, dict):
                    continue
                for status_key, response in responses.items():
                    status_key = str(status_key)
                    if isinstance(response, dict) and "$ref" in response:
                        continue
                    if not self.should_extract(status_key):
                        continue
                    name = self._get_or_create(status_key, response, key_to_name, used, result)
                    result.reference_map.setdefault(route, {}).setdefault(method, {})[
                        status_key
                    ] = name

        if result.units:
            debug(f"Extracted {len(result.units)} inline response(s)")
        return result

    def apply(
        self, document: OpenAPIDocument, result: ResponseExtractionResult
    ) -> OpenAPIDocument:
        """Return a new document where inline responses point at their components."""
        if not result.reference_map:
            return document

        paths = copy.deepcopy(document.paths)
        for route, methods in result.reference_map.items():
            for method, statuses in methods.items():
                responses = paths[route][method]["responses"]
                for status_key, name in statuses.items():
                    responses[status_key] = {"$ref": RESPONSES_POINTER + name}

        components = copy.deepcopy(document.components)
        merged = dict(components.get("responses") or {})
        merged.update(copy.deepcopy(result.units))
        components["responses"] = merged
        return document.evolve(paths=paths, components=components)

    def generate_response_name(self, status_key: str, used: set[str]) -> str:
        """Name a new response after its status (``OkResponse``), uniquely."""
        cfg = self._config
        base = ""
        if cfg.enabled:
            base = cfg.status_names.get(status_key, "")
        if not base:
            base = f"Status{status_key}"
        if cfg.ensure_response_suffix and not base.endswith(_RESPONSE_SUFFIX):
            base += _RESPONSE_SUFFIX
        base = self._normalizer.apply_convention(base, cfg.naming_convention)
        return unique_name(base, used)

    def description_for(self, status_key: str) -> str:
        """Readable description derived from the status table (``Bad request``)."""
        if self._config.use_generic_descriptions and status_key in GENERIC_DESCRIPTIONS:
            return GENERIC_DESCRIPTIONS[status_key]
        names = self._config.status_names
        label = names.get(status_key) or names.get("default") or "UnexpectedError"
        words = " ".join(self._normalizer.to_words(label))
        return words[:1].upper() + words[1:]

    def _seed_existing(self, existing: dict[str, Any]) -> dict[str, str]:
        semantic = {
            label.lower(): code
            for code, label in self._config.status_names.items()
            if code != "default" and label
        }
        seeds: dict[str, list[ResponseCandidate]] = {}
        for name, content in existing.items():
            status = StatusCode.from_name(name)
            if status.is_default:
                # "NotFoundResponse" carries its status through the status table.
                base = _TRAILING_SUFFIX.sub("", name).lower()
                if base not in semantic:
                    continue
                status = StatusCode.parse(semantic[base])
            key = _dedupe_key(status, content, f"unique:{name}")
            seeds.setdefault(key, []).append(
                ResponseCandidate(name, status, key, name, content)
            )
        return {
            key: choose_canonical(members, self._config.error_name_patterns).final_name
            for key, members in seeds.items()
        }

    def _get_or_create(
        self,
        status_key: str,
        response: Any,
        key_to_name: dict[str, str],
        used: set[str],
        result: ResponseExtractionResult,
    ) -> str:
        # Keys use the status as written so that "2XX" never merges with "default".
        if is_simple_response(response):
            key = f"simple:{status_key}"
        else:
            signature = content_signature(response)
            if signature is not None:
                key = f"{status_key}:{signature}"
            else:
                key = f"hash:{content_hash(response)}"

        if key in key_to_name:
            return key_to_name[key]

        name = self.generate_response_name(status_key, used)
        content = copy.deepcopy(response) if isinstance(response, dict) else {}
        if not content.get("description"):
            content["description"] = self.description_for(status_key)
        elif self._config.use_generic_descriptions and status_key in GENERIC_DESCRIPTIONS:
            content["description"] = GENERIC_DESCRIPTIONS[status_key]
        # Keep description first in the written file.
        content = {"description": content.pop("description"), **content}

        key_to_name[key] = name
        result.units[name] = content
        step(f"inline {status_key} response -> {name}")
        return name
