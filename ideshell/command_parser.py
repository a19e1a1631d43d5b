"""
Command parser for the virtual shell.

Splits a single command line into a structured Command. Tokens are
separated by whitespace only; there is no quoting, piping or redirection.
Parsing never fails and never touches the file store.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class Command:
    """
    A parsed command line.

    `raw_args` keeps every token after the command name, `args` only the
    operands, and `flags` the recognised switches by long name.
    """
    name: str
    args: List[str] = field(default_factory=list)
    flags: Dict[str, bool] = field(default_factory=dict)
    raw_args: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return ' '.join([self.name] + self.raw_args)


class CommandParser:
    """Whitespace tokenizer with per-command short flag names."""

    # Short flags each command understands. Other dash tokens are kept
    # under their own letter.
    FLAG_MAPPINGS = {
        'rm': {
            'r': 'recursive',
            'R': 'recursive',
            'f': 'force',
        },
        'mkdir': {
            'p': 'parents',
        },
    }

    # Commands whose dash-prefixed tokens are plain text.
    LITERAL_COMMANDS = {'echo'}

    def tokenize(self, command_line: str) -> List[str]:
        return command_line.split()

    def parse_simple(self, command_line: str) -> Optional[Command]:
        """Parse a command line; None for a blank line."""
        tokens = self.tokenize(command_line)
        if not tokens:
            return None

        name, raw_args = tokens[0], tokens[1:]
        command = Command(name=name, raw_args=list(raw_args))

        if name in self.LITERAL_COMMANDS:
            command.args = list(raw_args)
            return command

        mapping = self.FLAG_MAPPINGS.get(name, {})
        for token in raw_args:
            if token.startswith('-') and len(token) > 1:
                for letter in token[1:]:
                    command.flags[mapping.get(letter, letter)] = True
            else:
                command.args.append(token)
        return command
