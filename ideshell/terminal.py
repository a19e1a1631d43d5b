#!/usr/bin/env python3
"""
Local terminal and command-line entry point.

`ideshell shell` drives the same ShellInterpreter the HTTP API uses, from a
prompt in the current terminal. `ideshell serve` runs the HTTP API.
"""

import sys
from typing import List, Optional

from .config import AppConfig
from .filestore import FileStore, open_store
from .interpreter import ShellInterpreter
from .log import configure_logging


class TerminalSession:
    """
    Interactive shell over one virtual-shell session.

    Holds a single session id in the interpreter's registry, so `cd`
    persists between lines exactly as it does for a browser terminal.
    """

    EXIT_COMMANDS = ('exit', 'quit')

    def __init__(self, store: FileStore, enable_colors: bool = True):
        self.shell = ShellInterpreter(store)
        self.session_id = self.shell.sessions.create()
        self.enable_colors = enable_colors
        self.running = False

    @property
    def cwd(self) -> str:
        return self.shell.sessions.get(self.session_id)

    def get_prompt(self) -> str:
        name = self.shell.store.project_name
        if self.enable_colors:
            return f'\033[32m{name}\033[0m:\033[34m{self.cwd}\033[0m$ '
        return f'{name}:{self.cwd}$ '

    def execute_command(self, command_line: str) -> Optional[str]:
        """
        Execute a command line and return what should be printed.

        Returns None for exit commands.
        """
        if command_line.strip() in self.EXIT_COMMANDS:
            return None

        result = self.shell.run(self.session_id, command_line)
        return result.stdout + result.stderr

    def run_command(self, command_line: str) -> str:
        """Run a single command and return its output."""
        output = self.execute_command(command_line)
        return output if output is not None else ''

    def run_script(self, script_lines: List[str]) -> List[str]:
        """Run several command lines, skipping blanks and # comments."""
        outputs = []
        for line in script_lines:
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            output = self.execute_command(line)
            if output is None:
                break
            outputs.append(output)
        return outputs

    def run_interactive(self):
        """Run the interactive REPL loop."""
        self.running = True
        print(f"ideshell - project '{self.shell.store.project_name}' "
              f"({self.shell.store.backend_name} storage)")
        print("Type 'help' for commands, 'exit' to quit")
        print()

        while self.running:
            try:
                output = self.execute_command(input(self.get_prompt()))
                if output is None:
                    break
                if output:
                    sys.stdout.write(output)
                    sys.stdout.flush()
            except KeyboardInterrupt:
                print("^C")
                continue
            except EOFError:
                print()
                break

        self.running = False


def serve(config: AppConfig) -> None:
    import uvicorn

    from .server import create_app

    uvicorn.run(create_app(config), host=config.host, port=config.port,
                log_level=config.log_level.lower())


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the ideshell command."""
    import argparse

    config = AppConfig.from_env()

    parser = argparse.ArgumentParser(
        prog='ideshell',
        description='Virtual project tree and shell for a browser code editor')
    parser.add_argument('--database-url', default=config.database_url,
                        help='SQLAlchemy URL of the durable store (default: in-memory)')
    parser.add_argument('--no-seed', action='store_true',
                        help='Start an empty project instead of the sample one')
    parser.add_argument('--log-level', default=config.log_level,
                        help='Log level (default: %(default)s)')
    commands = parser.add_subparsers(dest='mode')

    serve_parser = commands.add_parser('serve', help='Run the HTTP API')
    serve_parser.add_argument('--host', default=config.host)
    serve_parser.add_argument('--port', type=int, default=config.port)

    shell_parser = commands.add_parser('shell', help='Open a local terminal')
    shell_parser.add_argument('-c', '--command', help='Execute command and exit')
    shell_parser.add_argument('--no-color', action='store_true',
                              help='Plain prompt without ANSI colors')

    args = parser.parse_args(argv)

    config.database_url = args.database_url
    config.log_level = args.log_level.upper()
    if args.no_seed:
        config.seed = False
    configure_logging(config.log_level)

    if args.mode == 'serve':
        config.host, config.port = args.host, args.port
        serve(config)
        return 0

    store = open_store(config.database_url, project_name=config.project_name,
                       seed=config.seed)
    try:
        command = getattr(args, 'command', None)
        session = TerminalSession(store, enable_colors=not getattr(args, 'no_color', False))
        if command:
            result = session.shell.run(session.session_id, command)
            sys.stdout.write(result.stdout)
            sys.stderr.write(result.stderr)
            return result.exit_code
        session.run_interactive()
        return 0
    finally:
        store.close()


if __name__ == '__main__':
    sys.exit(main())
