"""Scraper utilities for browser sessions, selector chains and normalization."""

from .browser_manager import BrowserManager, SessionProfile, STEALTH_JS
from .user_agents import get_chrome_user_agent, USER_AGENTS
from .normalizer import (
    ARTICLE_UNKNOWN,
    BRAND_UNKNOWN,
    NAME_UNKNOWN,
    PLACEHOLDER_IMAGE,
    clean_text,
    parse_delivery_days,
    parse_price,
    resolve_image,
    resolve_link,
)
from .row_text import RowTextFields, find_price, split_row_text
from .selectors import (
    SelectorCandidate,
    chain,
    resolve_first,
    select_all,
    select_attr,
    select_first,
    select_text,
    wait_for_any,
)
from .retry import launch_retry, navigation_retry


__all__ = [
    # Browser
    "BrowserManager",
    "SessionProfile",
    "STEALTH_JS",
    # User agents
    "get_chrome_user_agent",
    "USER_AGENTS",
    # Normalization
    "ARTICLE_UNKNOWN",
    "BRAND_UNKNOWN",
    "NAME_UNKNOWN",
    "PLACEHOLDER_IMAGE",
    "clean_text",
    "parse_delivery_days",
    "parse_price",
    "resolve_image",
    "resolve_link",
    # Free-text rows
    "RowTextFields",
    "find_price",
    "split_row_text",
    # Selector chains
    "SelectorCandidate",
    "chain",
    "resolve_first",
    "select_all",
    "select_attr",
    "select_first",
    "select_text",
    "wait_for_any",
    # Retry decorators
    "launch_retry",
    "navigation_retry",
]
