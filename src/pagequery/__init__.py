from .descriptor import ElementDescriptor
from .document import Document, load_document
from .errors import InvalidSelectorError, MalformedMarkupError
from .fetch import FetchError, FetchOpts, detect_origin, load, obtain_markup
from .node import ElementNode, TextNode
from .selector import SelectorList, compile_selector, match_all, match_first, matches, query
from .tokenizer import TokenizerOpts
from .tokens import ParseError

__all__ = [
    "Document",
    "ElementDescriptor",
    "ElementNode",
    "FetchError",
    "FetchOpts",
    "InvalidSelectorError",
    "MalformedMarkupError",
    "ParseError",
    "SelectorList",
    "TextNode",
    "TokenizerOpts",
    "compile_selector",
    "detect_origin",
    "load",
    "load_document",
    "match_all",
    "match_first",
    "matches",
    "obtain_markup",
    "query",
]
