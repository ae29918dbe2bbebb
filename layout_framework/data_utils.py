#!/usr/bin/env python3
"""
Data utilities for loading keyboards and scoring tables.

CSV cells that hold characters use escapes so that whitespace survives
stripping: \\s is space, \\t is tab, \\n is newline and \\\\ is a backslash.
"""

from pathlib import Path
from typing import Dict, List, Mapping, Optional

import pandas as pd

from layout_framework.errors import MalformedTable
from layout_framework.keyboard import Keyboard, Position
from layout_framework.tables import FrequencyTable, WeightTable

ESCAPES = {'s': ' ', 't': '\t', 'n': '\n', '\\': '\\'}

LETTER_COLUMNS = ['letter', 'character', 'char', 'item']
BIGRAM_COLUMNS = ['bigram', 'letter_pair', 'pair', 'sequence', 'letters']
FREQUENCY_COLUMNS = ['frequency', 'freq', 'probability', 'prob', 'weight', 'count']
POSITION_COLUMNS = ['position', 'index', 'key']
EFFORT_COLUMNS = ['base_effort', 'effort', 'cost', 'score']

TRUE_VALUES = {'1', 'true', 'yes', 'y', 't'}


def decode_characters(token: str) -> str:
    """
    Decode an escaped character token.

    Raises:
        MalformedTable: If the token contains an unknown escape
    """
    chars = []
    i = 0
    while i < len(token):
        if token[i] == '\\':
            if i + 1 >= len(token) or token[i + 1] not in ESCAPES:
                raise MalformedTable(f"Invalid escape in token {token!r}")
            chars.append(ESCAPES[token[i + 1]])
            i += 2
        else:
            chars.append(token[i])
            i += 1
    return ''.join(chars)


def encode_characters(chars: str) -> str:
    reverse = {char: f'\\{code}' for code, char in ESCAPES.items()}
    return ''.join(reverse.get(char, char) for char in chars)


def load_csv_with_validation(filepath: str,
                             required_columns: List[str],
                             optional_columns: Optional[List[str]] = None,
                             verbose: bool = False) -> pd.DataFrame:
    """
    Load CSV file as strings with column validation.

    Args:
        filepath: Path to CSV file
        required_columns: List of column names that must be present
        optional_columns: List of optional column names
        verbose: If True, report missing optional columns

    Returns:
        Loaded DataFrame

    Raises:
        FileNotFoundError: If file doesn't exist
        MalformedTable: If required columns are missing or data is invalid
    """
    file_path = Path(filepath)

    if not file_path.exists():
        raise FileNotFoundError(f"Data file not found: {filepath}")

    if not file_path.suffix.lower() in ['.csv', '.tsv', '.txt']:
        raise MalformedTable(f"Unsupported file format: {file_path.suffix}")

    delimiter = '\t' if file_path.suffix.lower() == '.tsv' else ','

    try:
        df = pd.read_csv(filepath, delimiter=delimiter, dtype=str, keep_default_na=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise MalformedTable(f"Error reading CSV file {filepath}: {e}")

    if df.empty:
        raise MalformedTable(f"CSV file is empty: {filepath}")

    missing_columns = [col for col in required_columns if col not in df.columns]
    if missing_columns:
        available_columns = list(df.columns)
        raise MalformedTable(
            f"Missing required columns in {filepath}: {missing_columns}. "
            f"Available columns: {available_columns}"
        )

    if optional_columns and verbose:
        missing_optional = [col for col in optional_columns if col not in df.columns]
        if missing_optional:
            print(f"Note: Optional columns not found in {filepath}: {missing_optional}")

    return df


def detect_column(df: pd.DataFrame, candidates: List[str], filepath: str, label: str) -> str:
    """
    Find the first candidate column present in a DataFrame.

    Raises:
        MalformedTable: If none of the candidates is present
    """
    columns = list(df.columns)
    for candidate in candidates:
        if candidate in columns:
            return candidate
    raise MalformedTable(
        f"Could not find {label} column in {filepath}. "
        f"Available columns: {columns}. "
        f"Expected one of: {candidates}"
    )


def _parse_float(value: str, filepath: str, row: int, column: str) -> float:
    try:
        return float(value.strip())
    except ValueError:
        raise MalformedTable(f"{filepath}, row {row}: could not parse {column} value {value!r}")


def load_char_frequencies(filepath: str,
                          length: int,
                          key_candidates: List[str],
                          verbose: bool = False) -> Dict[str, float]:
    """
    Load character n-gram frequencies with automatic column detection.

    Args:
        filepath: Path to CSV file
        length: Number of characters per entry (1 for letters, 2 for bigrams)
        key_candidates: Possible names of the character column
        verbose: If True, print loading information

    Returns:
        Dictionary mapping decoded character strings to frequencies

    Raises:
        MalformedTable: If an entry has the wrong length, a frequency cannot
            be parsed, or an entry is duplicated
    """
    df = load_csv_with_validation(filepath, [])
    key_col = detect_column(df, key_candidates, filepath, 'character')
    freq_col = detect_column(df, FREQUENCY_COLUMNS, filepath, 'frequency')

    if verbose:
        print(f"Loading frequencies from {filepath}")

    frequencies: Dict[str, float] = {}
    for row_number, row in enumerate(df.to_dict('records'), start=2):
        token = str(row[key_col]).strip()
        freq_str = str(row[freq_col]).strip()

        # Skip empty rows
        if not token and not freq_str:
            continue

        chars = decode_characters(token)
        if len(chars) != length:
            raise MalformedTable(f"{filepath}, row {row_number}: {token!r} is not {length} character(s)")
        if chars in frequencies:
            raise MalformedTable(f"{filepath}, row {row_number}: duplicate entry {token!r}")

        frequencies[chars] = _parse_float(freq_str, filepath, row_number, freq_col)

    if not frequencies:
        raise MalformedTable(f"No valid frequency entries found in {filepath}")

    if verbose:
        print(f"  Loaded {len(frequencies)} entries")

    return frequencies


def load_frequency_table(letters_csv: str,
                         bigrams_csv: Optional[str] = None,
                         verbose: bool = False) -> FrequencyTable:
    """
    Load letter and bigram frequencies into a FrequencyTable.

    Raises:
        FileNotFoundError: If a file doesn't exist
        MalformedTable: If data is invalid
    """
    letters = load_char_frequencies(letters_csv, 1, LETTER_COLUMNS, verbose)
    bigrams = load_char_frequencies(bigrams_csv, 2, BIGRAM_COLUMNS, verbose) if bigrams_csv else {}
    return FrequencyTable(letters, bigrams)


def save_frequency_table(table: FrequencyTable, letters_csv: str, bigrams_csv: Optional[str] = None) -> None:
    """Write a FrequencyTable as CSV files, most frequent first."""
    letters = pd.DataFrame(
        [(encode_characters(char), freq) for char, freq in table.letters.items()],
        columns=['letter', 'frequency'],
    ).sort_values('frequency', ascending=False)
    Path(letters_csv).parent.mkdir(parents=True, exist_ok=True)
    letters.to_csv(letters_csv, index=False)

    if bigrams_csv:
        bigrams = pd.DataFrame(
            [(encode_characters(pair), freq) for pair, freq in table.bigrams.items()],
            columns=['bigram', 'frequency'],
        ).sort_values('frequency', ascending=False)
        Path(bigrams_csv).parent.mkdir(parents=True, exist_ok=True)
        bigrams.to_csv(bigrams_csv, index=False)


def load_keyboard(filepath: str, verbose: bool = False) -> Keyboard:
    """
    Load a keyboard from CSV.

    Required columns: index, x, y, hand, finger. Optional column: home.

    Raises:
        FileNotFoundError: If file doesn't exist
        MalformedTable: If data is invalid
    """
    df = load_csv_with_validation(filepath, ['index', 'x', 'y', 'hand', 'finger'], ['home'], verbose)

    positions = []
    for row_number, row in enumerate(df.to_dict('records'), start=2):
        index = _parse_float(row['index'], filepath, row_number, 'index')
        finger = _parse_float(row['finger'], filepath, row_number, 'finger')
        if not index.is_integer() or not finger.is_integer():
            raise MalformedTable(f"{filepath}, row {row_number}: index and finger must be integers")

        home = str(row.get('home', '')).strip().lower() in TRUE_VALUES
        positions.append(Position(
            index=int(index),
            x=_parse_float(row['x'], filepath, row_number, 'x'),
            y=_parse_float(row['y'], filepath, row_number, 'y'),
            hand=row['hand'].strip().upper(),
            finger=int(finger),
            is_home=home,
        ))

    positions.sort(key=lambda pos: pos.index)

    if verbose:
        print(f"Loaded keyboard with {len(positions)} positions from {filepath}")

    return Keyboard(positions)


def load_weight_table(filepath: str,
                      keyboard: Keyboard,
                      finger_movement: Optional[Mapping[str, float]] = None,
                      staccato_cost: Optional[Mapping[str, float]] = None,
                      verbose: bool = False) -> WeightTable:
    """
    Load per-position base effort from CSV into a WeightTable.

    Args:
        filepath: CSV with a position column and an effort column
        keyboard: Keyboard the weights belong to (provides stretch distances)
        finger_movement: Finger id -> movement factor (1.0 each if None)
        staccato_cost: Costs with keys 'layer' and 'modifier' (1.0 each if None)
        verbose: If True, print loading information

    Raises:
        FileNotFoundError: If file doesn't exist
        MalformedTable: If a position is missing, duplicated or unknown
    """
    df = load_csv_with_validation(filepath, [])
    position_col = detect_column(df, POSITION_COLUMNS, filepath, 'position')
    effort_col = detect_column(df, EFFORT_COLUMNS, filepath, 'effort')

    efforts: Dict[int, float] = {}
    for row_number, row in enumerate(df.to_dict('records'), start=2):
        position = _parse_float(str(row[position_col]), filepath, row_number, position_col)
        if not position.is_integer() or not 0 <= position < len(keyboard):
            raise MalformedTable(f"{filepath}, row {row_number}: unknown position {position}")
        if int(position) in efforts:
            raise MalformedTable(f"{filepath}, row {row_number}: duplicate position {int(position)}")
        efforts[int(position)] = _parse_float(str(row[effort_col]), filepath, row_number, effort_col)

    missing = [index for index in range(len(keyboard)) if index not in efforts]
    if missing:
        raise MalformedTable(f"{filepath}: no base effort for positions {missing}")

    if verbose:
        print(f"Loaded base effort for {len(efforts)} positions from {filepath}")

    return WeightTable.from_keyboard(
        keyboard,
        base_effort=[efforts[index] for index in range(len(keyboard))],
        finger_movement=finger_movement,
        staccato_cost=staccato_cost,
    )
