"""
String utility functions for prismate.

Model names arrive in whatever casing the data-model description or the
data client uses ("User", "user", "blog_post", "BlogPost"). Every lookup key
goes through ``to_model_key`` first so that all of them land on the same
lower camel case spelling.
"""

from __future__ import annotations

import re

# Acronym runs ("HTTP" in "HTTPRequest"), capitalised words, lowercase runs, digits
_WORD_PATTERN = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")


def split_words(value: str) -> list[str]:
    """
    Split an identifier into its words.

    Examples:
        >>> split_words("BlogPost")
        ['Blog', 'Post']
        >>> split_words("blog_post")
        ['blog', 'post']
        >>> split_words("HTTPRequest")
        ['HTTP', 'Request']
    """
    return _WORD_PATTERN.findall(value)


def camel_case(value: str) -> str:
    """
    Convert an identifier to lower camel case.

    Examples:
        >>> camel_case("User")
        'user'
        >>> camel_case("BlogPost")
        'blogPost'
        >>> camel_case("order_item")
        'orderItem'
        >>> camel_case("userID")
        'userId'
    """
    words = split_words(value)
    if not words:
        return ""
    head, *tail = words
    return head.lower() + "".join(word[:1].upper() + word[1:].lower() for word in tail)


def to_model_key(name: str) -> str:
    """
    Canonical registry/cache key for a model name.

    ``camel_case`` can still shift a collapsed acronym run on a second pass
    ("a_b_c" -> "aBC" -> "aBc"), so it is applied until the spelling settles.
    Each extra pass only lowers letters, which bounds the loop.

    Idempotent: ``to_model_key(to_model_key(n)) == to_model_key(n)``.
    """
    key = camel_case(name)
    while True:
        settled = camel_case(key)
        if settled == key:
            return key
        key = settled
