#!/usr/bin/env python3
"""
Text utilities for building frequency tables from a corpus.

Counts letters and bigrams over source files. Characters outside the
alphabet break the bigram chain, carriage returns are ignored, and leading
indentation after a newline is counted as tabs (one per `indent_width`
spaces), since an editor types it with the tab key.
"""

from collections import Counter
from pathlib import Path
from typing import Iterable, Optional, Tuple

from layout_framework.tables import FrequencyTable

DEFAULT_EXTENSIONS = ['.py', '.rs', '.glsl', '.wgsl', '.vert', '.frag', '.comp']
DEFAULT_IGNORE_DIRS = ['target', '.git', '__pycache__', 'node_modules', '.venv']


def count_text(text: str,
               alphabet: Optional[Iterable[str]] = None,
               indent_width: int = 4) -> Tuple[Counter, Counter]:
    """
    Count letters and bigrams in text.

    Args:
        text: Input text
        alphabet: Characters to count (all characters if None)
        indent_width: Number of leading spaces typed as one tab

    Returns:
        Tuple of (letter counts, bigram counts)
    """
    allowed = None if alphabet is None else set(alphabet)
    letters: Counter = Counter()
    bigrams: Counter = Counter()
    previous = None

    def feed(char: str) -> None:
        nonlocal previous
        if allowed is not None and char not in allowed:
            previous = None
            return
        letters[char] += 1
        if previous is not None:
            bigrams[previous + char] += 1
        previous = char

    i = 0
    while i < len(text):
        char = text[i]
        i += 1
        if char == '\r':
            continue

        feed(char)

        if char == '\n':
            start = i
            while i < len(text) and text[i] == ' ':
                i += 1
            tabs, spaces = divmod(i - start, indent_width)
            for _ in range(tabs):
                feed('\t')
            for _ in range(spaces):
                feed(' ')

    return letters, bigrams


def count_corpus(directory: str,
                 extensions: Iterable[str] = DEFAULT_EXTENSIONS,
                 alphabet: Optional[Iterable[str]] = None,
                 indent_width: int = 4,
                 ignore_dirs: Iterable[str] = DEFAULT_IGNORE_DIRS,
                 verbose: bool = False) -> Tuple[Counter, Counter]:
    """
    Count letters and bigrams over every matching file below a directory.

    Files that cannot be read as UTF-8 are skipped.

    Raises:
        FileNotFoundError: If directory doesn't exist
    """
    root = Path(directory)
    if not root.is_dir():
        raise FileNotFoundError(f"Corpus directory not found: {directory}")

    extensions = {ext if ext.startswith('.') else f'.{ext}' for ext in extensions}
    ignore_dirs = set(ignore_dirs)
    alphabet = None if alphabet is None else set(alphabet)

    letters: Counter = Counter()
    bigrams: Counter = Counter()
    files_counted = 0

    for path in sorted(root.rglob('*')):
        if not path.is_file() or path.suffix not in extensions:
            continue
        if any(part in ignore_dirs for part in path.relative_to(root).parts):
            continue

        try:
            text = path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            if verbose:
                print(f"Warning: Skipping {path}: {e}")
            continue

        if verbose:
            print(f"Counting {path}...")

        file_letters, file_bigrams = count_text(text, alphabet, indent_width)
        letters.update(file_letters)
        bigrams.update(file_bigrams)
        files_counted += 1

    if verbose:
        print(f"  Counted {files_counted} files: {sum(letters.values())} letters, "
              f"{sum(bigrams.values())} bigrams")

    return letters, bigrams


def frequencies_from_counts(letter_counts: Counter, bigram_counts: Counter) -> FrequencyTable:
    """Convert counts to a FrequencyTable of proportions (each part sums to 1)."""
    letter_total = sum(letter_counts.values())
    bigram_total = sum(bigram_counts.values())

    letters = {char: count / letter_total for char, count in letter_counts.items()} if letter_total else {}
    bigrams = {pair: count / bigram_total for pair, count in bigram_counts.items()} if bigram_total else {}
    return FrequencyTable(letters, bigrams)
