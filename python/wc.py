#!/usr/bin/env python3
"""
Name: wc
Description: line, word, character, bad-sequence, and byte counter
Author: Peter Prymmer, pvhp@best.com (Original Perl Author)
License: perl

Input is read as raw bytes and assumed to be UTF-8 text. Characters are
counted by decoding sequence boundaries one byte at a time, so the input is
never held in memory all at once and malformed sequences are counted
instead of rejected. Words are maximal runs of characters separated by
space, tab, and newline.
"""

import sys
import os
import argparse
from enum import Enum

__version__ = "1.1"

NBUF = 8 * 1024

# Counter names, in report order.
FIELDS = ('lines', 'words', 'chars', 'errors', 'bytes')

class State(Enum):
    AT_WORD_BOUNDARY = 0  # after whitespace, or at the start of input
    IN_WORD = 1
    EXPECT_CONT2 = 2      # one continuation byte still owed
    EXPECT_CONT3 = 3      # two continuation bytes still owed

# Count effects of a transition, OR'd together.
WORD = 0x01
LINE = 0x02
BAD = 0x04
RETRACT = 0x08  # continuation byte absorbed into a multi-byte character

# Byte roles
BLANK = 'blank'
NEWLINE = 'newline'
VISIBLE = 'visible'
CONTINUATION = 'continuation'
LEAD2 = 'lead2'
LEAD3 = 'lead3'
INVALID_LEAD = 'invalid-lead'

# role: (transition from whitespace, transition from inside a word)
RULES = {
    BLANK:        ((State.AT_WORD_BOUNDARY, 0),    (State.AT_WORD_BOUNDARY, 0)),
    NEWLINE:      ((State.AT_WORD_BOUNDARY, LINE), (State.AT_WORD_BOUNDARY, LINE)),
    VISIBLE:      ((State.IN_WORD, WORD),          (State.IN_WORD, 0)),
    CONTINUATION: ((State.IN_WORD, WORD | BAD),    (State.IN_WORD, BAD)),
    LEAD2:        ((State.EXPECT_CONT2, WORD),     (State.EXPECT_CONT2, 0)),
    LEAD3:        ((State.EXPECT_CONT3, WORD),     (State.EXPECT_CONT3, 0)),
    INVALID_LEAD: ((State.IN_WORD, WORD | BAD),    (State.IN_WORD, BAD)),
}

# Where a continuation byte takes a pending sequence.
CONTINUES = {
    State.EXPECT_CONT3: State.EXPECT_CONT2,
    State.EXPECT_CONT2: State.IN_WORD,
}

def byte_role(byte: int) -> str:
    """Classifies a byte value by its high bits."""
    if byte in (0x09, 0x20):
        return BLANK
    if byte == 0x0A:
        return NEWLINE
    if byte < 0x80:
        return VISIBLE
    if byte < 0xC0:
        return CONTINUATION
    if byte < 0xE0:
        return LEAD2
    if byte < 0xF0:
        return LEAD3
    # 4-byte and longer forms are not supported.
    return INVALID_LEAD

def _transition(state, role):
    if state is State.AT_WORD_BOUNDARY:
        return RULES[role][0]
    if state is State.IN_WORD:
        return RULES[role][1]
    if role == CONTINUATION:
        return CONTINUES[state], RETRACT
    # The pending sequence is broken; the byte itself is still classified
    # as if it arrived inside a word.
    next_state, effects = RULES[role][1]
    return next_state, effects | BAD

def build_transitions():
    """
    Expands the rule mapping into one 256-entry row per state. Each entry
    is a (next state, effects) pair.
    """
    return {
        state: tuple(_transition(state, byte_role(b)) for b in range(256))
        for state in State
    }

TRANSITIONS = build_transitions()

def step(state, byte):
    """Returns the (next state, effects) pair for one input byte."""
    return TRANSITIONS[state][byte]

def reset_counters():
    """Returns a fresh set of counts, all zero."""
    return dict.fromkeys(FIELDS, 0)

def process_chunk(state, counts, chunk):
    """
    Feeds every byte of `chunk` through the state machine, updating `counts`
    in place. Returns the state to carry into the next chunk of the same
    source.
    """
    # Every byte is provisionally a character; continuation bytes that
    # complete a multi-byte character take theirs back below.
    counts['bytes'] += len(chunk)
    counts['chars'] += len(chunk)

    lines = words = errors = retracted = 0
    for byte in chunk:
        state, effects = TRANSITIONS[state][byte]
        if effects:
            if effects & WORD:
                words += 1
            if effects & LINE:
                lines += 1
            if effects & BAD:
                errors += 1
            if effects & RETRACT:
                retracted += 1

    counts['lines'] += lines
    counts['words'] += words
    counts['errors'] += errors
    counts['chars'] -= retracted
    return state

def count_stream(stream, bufsize=NBUF):
    """
    Reads a binary stream chunk by chunk and returns its counts.

    A sequence left unfinished at end of input is not flagged as an error;
    its lead byte stays counted as one character.
    """
    if bufsize < 1:
        raise ValueError(f"buffer size must be positive, got {bufsize}")
    counts = reset_counters()
    state = State.AT_WORD_BOUNDARY
    while True:
        chunk = stream.read(bufsize)
        if not chunk:
            break
        state = process_chunk(state, counts, chunk)
    return counts

def add_counts(total, counts):
    """Adds one source's counts into a running total."""
    for key in FIELDS:
        total[key] += counts[key]
    return total

def format_counts(counts, fields, filename=""):
    """
    Formats the selected counts into a single report line, always in
    FIELDS order.
    """
    output_parts = [f"{counts[key]:7d}" for key in FIELDS if key in fields]
    output_parts.append(f" {filename}")
    return "".join(output_parts)

def positive_int(value):
    """argparse type for the --bufsize option."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid size: '{value}'")
    if number < 1:
        raise argparse.ArgumentTypeError(f"size must be at least 1: '{value}'")
    return number

def selected_fields(args):
    """Turns the parsed flags into the tuple of counts to print."""
    if args.a:
        return FIELDS
    flags = dict(zip(FIELDS, (args.l, args.w, args.c, args.e, args.b)))
    # Default is -lwc if no flags are specified.
    if not any(flags.values()):
        return ('lines', 'words', 'chars')
    return tuple(key for key in FIELDS if flags[key])

def main():
    """Parses arguments and orchestrates the counting process."""
    parser = argparse.ArgumentParser(
        description="Count lines, words, UTF-8 characters, badly encoded sequences, and bytes.",
        usage="%(prog)s [-a | [-l] [-w] [-c] [-e] [-b] ] [-k] [--bufsize N] [file ...]"
    )
    parser.add_argument('-a', action='store_true', help='Equivalent to -lwceb.')
    parser.add_argument('-l', action='store_true', help='Count lines.')
    parser.add_argument('-w', action='store_true', help='Count words.')
    parser.add_argument('-c', action='store_true', help='Count UTF-8 characters.')
    parser.add_argument('-e', action='store_true', help='Count erroneously-encoded sequences.')
    parser.add_argument('-b', action='store_true', help='Count bytes.')
    parser.add_argument('-k', '--keep-going', action='store_true',
                        help='Skip files that cannot be read instead of stopping.')
    parser.add_argument('--bufsize', type=positive_int, default=NBUF,
                        help=f'Read size in bytes (default: {NBUF}).')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    parser.add_argument('files', nargs='*', help='Files to process. Reads from stdin if none are given.')

    args = parser.parse_args()
    program_name = os.path.basename(sys.argv[0])
    fields = selected_fields(args)

    if not args.files:
        try:
            counts = count_stream(sys.stdin.buffer, args.bufsize)
        except OSError as e:
            print(f"{program_name}: error reading from standard input: {e.strerror}", file=sys.stderr)
            sys.exit(1)
        print(format_counts(counts, fields))
        sys.exit(0)

    total_counts = reset_counters()
    exit_status = 0

    for filepath in args.files:
        message = None
        try:
            if filepath == '-':
                file_counts = count_stream(sys.stdin.buffer, args.bufsize)
            elif os.path.isdir(filepath):
                message = f"can't open '{filepath}': Is a directory"
            else:
                with open(filepath, 'rb') as f:
                    file_counts = count_stream(f, args.bufsize)
        except (FileNotFoundError, PermissionError) as e:
            message = f"can't open '{filepath}': {e.strerror}"
        except OSError as e:
            message = f"error reading from '{filepath}': {e.strerror}"

        if message:
            print(f"{program_name}: {message}", file=sys.stderr)
            exit_status = 1
            if not args.keep_going:
                sys.exit(exit_status)
            continue

        print(format_counts(file_counts, fields, filepath))
        add_counts(total_counts, file_counts)

    # If more than one file was given, print the total.
    if len(args.files) > 1:
        print(format_counts(total_counts, fields, "total"))

    sys.exit(exit_status)

if __name__ == "__main__":
    main()
