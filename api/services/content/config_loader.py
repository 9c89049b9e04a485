# api/services/content/config_loader.py
"""
Content policy configuration loader.

Loads the privileged ("always offline") id sets, the divergent-numbering
rules and catalog normalization overrides from YAML, falling back to
built-in defaults when the file is missing.
"""

import os
import yaml
from typing import Any, Dict, List
from functools import lru_cache


CONFIG_PATH = os.getenv("SEEK_CONTENT_POLICY", os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    'config',
    'content_policy.yml'
))


@lru_cache(maxsize=1)
def load_policy() -> Dict[str, Any]:
    """Load content policy from YAML config."""
    if not os.path.exists(CONFIG_PATH):
        return get_default_policy()

    with open(CONFIG_PATH, 'r', encoding='utf-8') as f:
        loaded = yaml.safe_load(f) or {}

    policy = get_default_policy()
    policy.update(loaded)
    return policy


def get_default_policy() -> Dict[str, Any]:
    """Return built-in policy if config file missing."""
    return {
        'version': '1.0',
        'privileged_traditions': ['christianity', 'judaism', 'islam', 'hinduism', 'buddhism'],
        'privileged_scriptures': ['bible-kjv', 'quran', 'tanakh-jps', 'bhagavad-gita', 'dhammapada'],
        'divergent_numbering': {
            'quran': 'catalog_position',
            'bhagavad-gita': 'book_suffix',
            'dhammapada': 'none',
        },
        'tradition_icon_overrides': {
            'judaism': 'star.fill',
        },
    }


def reload_policy() -> Dict[str, Any]:
    """Clear cache and reload policy."""
    load_policy.cache_clear()
    return load_policy()


def get_privileged_scriptures() -> List[str]:
    return list(load_policy().get('privileged_scriptures', []))


def get_privileged_traditions() -> List[str]:
    return list(load_policy().get('privileged_traditions', []))


def get_divergent_numbering() -> Dict[str, str]:
    return dict(load_policy().get('divergent_numbering', {}))


def get_icon_overrides() -> Dict[str, str]:
    return dict(load_policy().get('tradition_icon_overrides', {}))
