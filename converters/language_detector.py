"""Code block language inference restricted to a configured set of candidates."""

import logging
from typing import Dict, List, Optional, Sequence

from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name
from pygments.token import Error, Keyword, Name
from pygments.util import ClassNotFound

DEFAULT_LANGUAGES = [
    'html',
    'typescript',
    'javascript',
    'python',
    'c',
    'c++',
    'rust',
    'kotlin',
    'sh',
    'sql',
    'plaintext',
]

DEFAULT_MINIMUM_LENGTH = 25

# Configured names that differ from pygments aliases
LEXER_ALIASES = {
    'c++': 'cpp',
    'sh': 'bash',
    'shell': 'bash',
    'plaintext': 'text',
    'plain': 'text',
}

PLAIN_TEXT_NAMES = {'plaintext', 'plain', 'text'}

RECOGNISED_TOKENS = (Keyword, Name.Builtin, Name.Tag, Name.Attribute)


class LanguageDetector:
    """
    Picks the most plausible language for a code snippet.

    Each candidate lexer scores the snippet by its own ``analyse_text``
    heuristic plus the keywords, builtins and markup tags it recognises,
    minus the tokens it fails to lex. The first candidate wins ties, except
    that a lexer loses a tie to a candidate whose lexer it extends: code that
    reads equally well as TypeScript and JavaScript uses no TypeScript syntax.
    """

    def __init__(self, languages: Optional[Sequence[str]] = None, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger('notion_markdown_migrator.converters.language_detector')
        if languages is None:
            languages = DEFAULT_LANGUAGES
        self.languages: List[str] = [name.strip() for name in languages if name and name.strip()]
        self._lexers: Dict[str, Lexer] = {}

        for name in self.languages:
            alias = LEXER_ALIASES.get(name.lower(), name.lower())
            try:
                self._lexers[name] = get_lexer_by_name(alias, stripnl=False, ensurenl=False)
            except ClassNotFound:
                self.logger.warning(f"Unknown language '{name}' ignored for code block detection")

    def detect(self, code: str) -> Optional[str]:
        """
        Return the best candidate name for ``code``.

        Args:
            code: Code block text

        Returns:
            Configured language name, or None when nothing matches or the
            winner is plain text
        """
        best_name = None
        best_score = None

        for name, lexer in self._lexers.items():
            score = self._score(lexer, code)
            self.logger.debug(f"Language score {name}: {score:.2f}")
            if best_score is None or score > best_score or (
                    score == best_score and self._extends(self._lexers[best_name], lexer)):
                best_name, best_score = name, score

        if best_name is None or best_name.lower() in PLAIN_TEXT_NAMES:
            return None
        return best_name

    @staticmethod
    def _extends(lexer: Lexer, base: Lexer) -> bool:
        return type(lexer) is not type(base) and isinstance(lexer, type(base))

    @staticmethod
    def _score(lexer: Lexer, code: str) -> float:
        score = float(lexer.analyse_text(code)) * 10
        for token_type, _ in lexer.get_tokens(code):
            if token_type in Error:
                score -= 2
            elif any(token_type in kind for kind in RECOGNISED_TOKENS):
                score += 1
        return score


__all__ = ['LanguageDetector', 'DEFAULT_LANGUAGES', 'DEFAULT_MINIMUM_LENGTH']
