"""
Constants and configuration values for xliff-merge.

Centralizes all magic numbers and configuration constants.
"""

# File size limits
MAX_FILE_SIZE = 50 * 1024 * 1024  # 50MB - XLIFF files are typically much smaller

# Allowed file extensions
ALLOWED_EXTENSIONS = frozenset({'.xlf', '.xliff', '.xlf2'})

# XLIFF namespaces by document version
XLIFF_NAMESPACES = {
    '1.2': 'urn:oasis:names:tc:xliff:document:1.2',
    '2.0': 'urn:oasis:names:tc:xliff:document:2.0',
}

# Fuzzy matching: candidates at or above this normalized edit distance never match
FUZZY_MATCH_THRESHOLD = 0.2

# Target language used for a blank destination when the file name carries no locale
DEFAULT_TARGET_LANGUAGE = 'en'

# Prolog written in front of a synthesized destination document
DEFAULT_XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'

# Value of --new-translation-targets-blank that suppresses target creation
OMIT_TARGET = 'omit'

# Environment variable that turns on debug logging for the CLI
DEBUG_ENV_VAR = 'XLIFF_MERGE_DEBUG'
