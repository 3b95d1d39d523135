"""
Share links

A search (text + filter rules) travels as one URL parameter: base64 of the
URI-encoded JSON payload, the same layout the web client produces with
btoa(encodeURIComponent(JSON.stringify(...))).
"""
import base64
import binascii
import json
import logging
from typing import Any, Optional, Union
from urllib.parse import parse_qs, quote, unquote, urlencode, urlparse

from .conditions import RULE_KEYS, FilterRules
from .domain import SharedSearch
from .text import query_words

logger = logging.getLogger(__name__)

SHARE_PARAM = "search"

# Characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"

# Web-client condition operator -> (field, operator). Line-anchored
# operators read the title, the one line every ruling has.
WEB_OPERATORS = {
    "contains": ("text", "contains_all"),
    "not_contains": ("text", "not_contains"),
    "exact": ("title", "equals"),
    "starts_with": ("title", "starts_with"),
    "ends_with": ("title", "ends_with"),
}

# Word distance the web client uses when none is given
DEFAULT_PROXIMITY_DISTANCE = 5


def encode_search(
    text: Optional[str] = None,
    filter_rules: Union[FilterRules, dict, list, None] = None,
) -> str:
    """Encode a search as the share-link parameter value"""
    payload: dict[str, Any] = {}
    if text:
        payload["text"] = text
    if isinstance(filter_rules, FilterRules):
        filter_rules = filter_rules.to_dict()
    if filter_rules:
        payload["filterRules"] = filter_rules

    body = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    quoted = quote(body, safe=_URI_COMPONENT_SAFE)
    return base64.b64encode(quoted.encode("ascii")).decode("ascii")


def build_share_url(
    base_url: str,
    text: Optional[str] = None,
    filter_rules: Union[FilterRules, dict, list, None] = None,
) -> str:
    separator = "&" if "?" in base_url else "?"
    return base_url + separator + urlencode({SHARE_PARAM: encode_search(text, filter_rules)})


def _as_group(rules: Any) -> Any:
    if isinstance(rules, list):
        return {"combinator": "all", "conditions": rules}
    return rules


def _is_web_condition(item: Any) -> bool:
    return isinstance(item, dict) and "term" in item and "field" not in item


def _web_condition(item: dict[str, Any]) -> Optional[dict[str, Any]]:
    """One web-client condition as a text/title condition, or None when unsupported"""
    term = item.get("term")
    operator = item.get("operator", "contains")
    if not isinstance(term, str) or not query_words(term):
        return None

    if operator == "proximity":
        words = query_words(term)
        if len(words) < 2:
            return {"field": "text", "operator": "contains_all", "value": term}
        distance = item.get("proximityDistance") or DEFAULT_PROXIMITY_DISTANCE
        return {"field": "text", "operator": "proximity", "value": [words[0], words[1], distance]}

    mapped = WEB_OPERATORS.get(operator)
    if mapped is None:
        return None
    field, our_operator = mapped
    return {"field": field, "operator": our_operator, "value": term}


def _fold_web_conditions(items: list[Any], warnings: list[str]) -> Optional[dict[str, Any]]:
    """
    Fold web-client conditions left to right by their logicalOperator.

    AND keeps rulings matching both sides, OR either side, and NOT the left
    side without the right. Runs of the same operator share one group.
    """
    group: Optional[dict[str, Any]] = None
    for item in items:
        condition = _web_condition(item) if isinstance(item, dict) else None
        if condition is None:
            warnings.append(f"Ignoring shared condition: {json.dumps(item, ensure_ascii=False)}")
            continue

        if group is None:
            # The first condition's operator has nothing on its left
            group = {"combinator": "all", "conditions": [condition]}
            continue

        logical = str(item.get("logicalOperator") or "AND").upper()
        if logical == "NOT":
            condition = {"combinator": "not", "conditions": [condition]}
        combinator = "any" if logical == "OR" else "all"

        if group["combinator"] == combinator:
            group["conditions"].append(condition)
        else:
            group = {"combinator": combinator, "conditions": [group, condition]}
    return group


def _shared_conditions(conditions: Any, warnings: list[str]) -> Any:
    if isinstance(conditions, list) and any(_is_web_condition(c) for c in conditions):
        return _fold_web_conditions(conditions, warnings)
    return conditions


def _shared_filter_rules(filter_rules: Any, warnings: list[str]) -> Any:
    """Drop the web client's own filterRules (word and length limits)"""
    if isinstance(filter_rules, dict) and filter_rules and not RULE_KEYS & filter_rules.keys():
        warnings.append(
            f"Ignoring shared filter rules not supported here: {', '.join(sorted(filter_rules))}"
        )
        return None
    return filter_rules


def _merge_rules(conditions: Any, filter_rules: Any) -> Any:
    """Fold a conditions list and filterRules into one rules object"""
    parts = [_as_group(p) for p in (filter_rules, conditions) if p]
    if not parts:
        return None
    if len(parts) == 1:
        return parts[0]
    return {"combinator": "all", "conditions": parts}


def decode_shared_search(value: Optional[str]) -> Optional[SharedSearch]:
    """
    Decode a share link (full URL or bare parameter value).

    Returns None when the value cannot be decoded; callers treat that as
    "no query". Links made by the web client carry conditions as
    {term, operator, logicalOperator}; those are translated here. Filter
    rules are otherwise returned unparsed so that validation happens in
    one place (the search service).
    """
    if not value:
        return None

    param = value.strip()
    if "?" in param or "://" in param:
        params = parse_qs(urlparse(param).query)
        if SHARE_PARAM not in params:
            return None
        param = params[SHARE_PARAM][0]

    # parse_qs and browsers turn '+' into ' '
    param = param.replace(" ", "+")

    try:
        quoted = base64.b64decode(param, validate=True).decode("ascii")
        payload = json.loads(unquote(quoted))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        logger.warning(f"Could not decode shared search: {e}")
        return None

    if not isinstance(payload, dict):
        logger.warning("Could not decode shared search: payload is not an object")
        return None

    text = payload.get("text")
    if not isinstance(text, str):
        text = None

    warnings: list[str] = []
    conditions = _shared_conditions(payload.get("conditions"), warnings)
    filter_rules = _shared_filter_rules(payload.get("filterRules"), warnings)
    for warning in warnings:
        logger.warning(warning)

    return SharedSearch(
        text=text,
        filter_rules=_merge_rules(conditions, filter_rules),
        warnings=tuple(warnings),
    )
