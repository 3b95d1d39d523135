"""
MCP Tool Definitions

Single source of truth for tool schemas and descriptions.
Used by both stdio and HTTP/SSE servers.
"""

_FILTER_RULES_SCHEMA = {
    "type": "object",
    "description": (
        'Boolean filter over rulings: {"combinator": "all"|"any"|"not", "conditions": [...]} '
        '("not" keeps rulings matching none of its conditions). '
        'Condition: {"field": "title"|"court"|"summary", "operator": "contains"|"not_contains"|"equals"|"starts_with"|"ends_with", "value": "..."}, '
        '{"field": "year", "operator": "equals"|"at_least"|"at_most"|"between", "value": 2010 or [2000, 2010]}, '
        '{"field": "text", "operator": "contains_all"|"contains_any"|"not_contains"|"starts_with"|"ends_with", "value": "words"}, '
        '{"field": "text", "operator": "proximity", "value": ["word", "word", 5]} (within 5 words). '
        "Groups may be nested."
    )
}

# Tool schemas for MCP
TOOL_SCHEMAS = {
    "search_rulings": {
        "name": "search_rulings",
        "description": """Full-text search over rulings (psakei din). All query words must appear. Returns ranked rulings with matching lines, one line of context each side, <mark> highlights.

search_rulings("שור שנגח") → rulings containing both words
search_rulings(filter_rules={"conditions": [{"field": "year", "operator": "at_least", "value": 2015}]}) → metadata only
search_rulings(shared="https://.../advanced-search?search=...") → run a shared search link
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "text": {
                    "type": "string",
                    "description": "Free-text query (Hebrew nikud and final letters are ignored)"
                },
                "filter_rules": _FILTER_RULES_SCHEMA,
                "shared": {
                    "type": "string",
                    "description": "Share link (or its ?search= value) to run"
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum rulings to return",
                    "default": 20
                }
            },
            "required": []
        }
    },
    "list_rulings": {
        "name": "list_rulings",
        "description": """List indexed rulings, newest first (unscored).

list_rulings() → latest 50 rulings
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "limit": {
                    "type": "integer",
                    "description": "Maximum rulings to return",
                    "default": 50
                }
            },
            "required": []
        }
    },
    "index_status": {
        "name": "index_status",
        "description": """Show search index metadata: documents, unique words, last build, staleness.""",
        "inputSchema": {
            "type": "object",
            "properties": {},
            "required": []
        }
    },
    "rebuild_index": {
        "name": "rebuild_index",
        "description": """Rebuild the search index from the corpus.

rebuild_index() → always rebuild
rebuild_index(force=false) → rebuild only if stale
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "force": {
                    "type": "boolean",
                    "description": "Rebuild even when the index is fresh",
                    "default": True
                }
            },
            "required": []
        }
    },
    "suggest_words": {
        "name": "suggest_words",
        "description": """Complete a partly typed word from the indexed vocabulary, most widespread first.

suggest_words("שנ") → words starting with שנ and how many rulings hold each
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "prefix": {
                    "type": "string",
                    "description": "Start of a word (at least two letters)"
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum suggestions",
                    "default": 10
                }
            },
            "required": ["prefix"]
        }
    },
    "share_search": {
        "name": "share_search",
        "description": """Encode a search (text + filter rules) as a share link.""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "text": {
                    "type": "string",
                    "description": "Free-text query"
                },
                "filter_rules": _FILTER_RULES_SCHEMA
            },
            "required": []
        }
    },
    "get_source_text": {
        "name": "get_source_text",
        "description": """Fetch canonical source text from Sefaria.

get_source_text("Bava_Kamma.2b") → Hebrew and English text of the daf
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "ref": {
                    "type": "string",
                    "description": "Sefaria reference (e.g. Bava_Kamma.2b, Shulchan_Arukh,_Choshen_Mishpat.1)"
                }
            },
            "required": ["ref"]
        }
    },
    "lookup_word": {
        "name": "lookup_word",
        "description": """Look up a word in the Sefaria lexicons (Jastrow, BDB, ...).""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "word": {
                    "type": "string",
                    "description": "Word to look up"
                },
                "lookup_ref": {
                    "type": "string",
                    "description": "Reference the word appears in, to narrow the lookup"
                }
            },
            "required": ["word"]
        }
    }
}
