"""
Move bytecode template patching.

This package provides:
- A reader/writer for compiled Move modules
- Identifier renaming with table re-sorting
- Constant pool replacement
- The embedded asset template module
"""

from kioskops.bytecode.template import (
    CompiledModule,
    Constant,
    SignatureToken,
    TableKind,
    TemplateError,
    TokenKind,
    get_constants,
    parse_constant_type,
    update_constants,
    update_identifiers,
)
from kioskops.bytecode.template_bytes import get_template_bytecode

__all__ = [
    "CompiledModule",
    "Constant",
    "SignatureToken",
    "TableKind",
    "TemplateError",
    "TokenKind",
    "get_constants",
    "get_template_bytecode",
    "parse_constant_type",
    "update_constants",
    "update_identifiers",
]
