"""
Virtual shell for the project tree.

ShellInterpreter turns one command line plus a working directory into a
stdout/stderr/exit-code triple, reading and changing the tree through a
FileStore. It keeps no state of its own: the cwd comes in with every call
and a successful `cd` hands the new one back in `new_cwd`. The session
aware `run` wrapper stores that cwd in a SessionRegistry.

Supported commands: pwd, ls, cd, cat, touch, mkdir, rm, mv, echo, clear,
help. Anything else exits 127.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from loguru import logger

from . import paths
from .command_parser import Command, CommandParser
from .errors import Conflict, IdeShellError, InvalidInput, MissingParent
from .filestore import FileStore
from .sessions import SessionRegistry

CLEAR_SCREEN = '\x1b[2J\x1b[H'


@dataclass
class CommandResult:
    """Outcome of one command line."""
    command: str
    stdout: str = ''
    stderr: str = ''
    exit_code: int = 0
    new_cwd: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def to_dict(self) -> dict:
        return {
            'command': self.command,
            'stdout': self.stdout,
            'stderr': self.stderr,
            'exitCode': self.exit_code,
        }


def _fail(name: str, message: str, exit_code: int = 1) -> CommandResult:
    return CommandResult(command=name, stderr=f"{message}\n", exit_code=exit_code)


def _ok(name: str, stdout: str = '', new_cwd: Optional[str] = None) -> CommandResult:
    return CommandResult(command=name, stdout=stdout, new_cwd=new_cwd)


class ShellInterpreter:
    """Executes virtual shell commands against a FileStore."""

    USAGE = {
        'pwd': 'pwd - show current directory',
        'ls': 'ls [dir] - list directory contents',
        'cd': 'cd <dir> - change directory',
        'cat': 'cat <file> - display file contents',
        'touch': 'touch <file> - create empty file',
        'mkdir': 'mkdir [-p] <dir> - create directory',
        'rm': 'rm [-rf] <file> - remove file or directory',
        'mv': 'mv <old> <new> - move/rename file or directory',
        'echo': 'echo <text> - display text',
        'clear': 'clear - clear terminal',
        'help': 'help - show this help',
    }

    def __init__(self, store: FileStore,
                 sessions: Optional[SessionRegistry] = None):
        self.store = store
        self.sessions = sessions if sessions is not None else SessionRegistry()
        self.parser = CommandParser()

        # Order here is the order `help` lists them in.
        self.commands: Dict[str, Callable[[str, Command], CommandResult]] = {
            'pwd': self._pwd,
            'ls': self._ls,
            'cd': self._cd,
            'cat': self._cat,
            'touch': self._touch,
            'mkdir': self._mkdir,
            'rm': self._rm,
            'mv': self._mv,
            'echo': self._echo,
            'clear': self._clear,
            'help': self._help,
        }

    def execute(self, cwd: str, command_line: str) -> CommandResult:
        """Run one command line with `cwd` as the working directory."""
        command = self.parser.parse_simple(command_line)
        if command is None:
            return CommandResult(command='')

        handler = self.commands.get(command.name)
        if handler is None:
            return _fail(command.name, f"{command.name}: command not found", 127)

        try:
            return handler(cwd, command)
        except IdeShellError as exc:
            return _fail(command.name, f"{command.name}: {exc.message}")
        except Exception as exc:
            logger.exception(f"command failed: {command_line!r}")
            return _fail(command.name, f"Error: {exc}")

    def run(self, session_id: str, command_line: str) -> CommandResult:
        """Execute in a session's cwd and remember where `cd` leaves it."""
        cwd = self.sessions.get(session_id)
        result = self.execute(cwd, command_line)
        if result.ok and result.new_cwd is not None:
            self.sessions.set_cwd(session_id, result.new_cwd)
        return result

    # Navigation

    def _pwd(self, cwd: str, command: Command) -> CommandResult:
        return _ok('pwd', cwd + '\n')

    def _ls(self, cwd: str, command: Command) -> CommandResult:
        target = cwd
        if command.args:
            target = paths.resolve(cwd, command.args[0])
            if not self.store.is_dir(target):
                return _fail('ls', f"ls: cannot access '{command.args[0]}': "
                                   f"No such file or directory", 2)

        names = [r.name + '/' if r.is_directory else r.name
                 for r in self.store.children(target)]
        return _ok('ls', '  '.join(names) + '\n')

    def _cd(self, cwd: str, command: Command) -> CommandResult:
        target = command.args[0] if command.args else paths.ROOT
        new_cwd = paths.resolve(cwd, target)
        if not self.store.is_dir(new_cwd):
            return _fail('cd', f"cd: {target}: No such directory")
        return _ok('cd', new_cwd=new_cwd)

    # Reading

    def _cat(self, cwd: str, command: Command) -> CommandResult:
        if not command.args:
            return _fail('cat', 'cat: missing file operand')

        operand = command.args[0]
        record = self.store.get(paths.resolve(cwd, operand))
        if record is None:
            return _fail('cat', f"cat: {operand}: No such file or directory")
        if record.is_directory:
            return _fail('cat', f"cat: {operand}: Is a directory")
        return _ok('cat', (record.content or '') + '\n')

    # Writing

    def _touch(self, cwd: str, command: Command) -> CommandResult:
        if not command.args:
            return _fail('touch', 'touch: missing file operand')

        operand = command.args[0]
        path = paths.resolve(cwd, operand)
        if self.store.exists(path):
            return _ok('touch')
        try:
            self.store.create(path, content='', is_directory=False,
                              parent_path=paths.parent_of(path))
        except MissingParent:
            return _fail('touch', f"touch: cannot touch '{operand}': "
                                  f"No such file or directory")
        except Conflict:
            # Lost a race with another session; the file is there either way.
            pass
        return _ok('touch')

    def _mkdir(self, cwd: str, command: Command) -> CommandResult:
        if not command.args:
            return _fail('mkdir', 'mkdir: missing operand')

        operand = command.args[0]
        path = paths.resolve(cwd, operand)

        if command.flags.get('parents'):
            return self._mkdir_parents(operand, path)

        try:
            self.store.create(path, is_directory=True,
                              parent_path=paths.parent_of(path))
        except Conflict:
            return _fail('mkdir', f"mkdir: cannot create directory '{operand}': "
                                  f"File exists")
        except MissingParent:
            return _fail('mkdir', f"mkdir: cannot create directory '{operand}': "
                                  f"No such file or directory")
        except InvalidInput:
            # Only '/' itself lands here.
            return _fail('mkdir', f"mkdir: cannot create directory '{operand}': "
                                  f"File exists")
        return _ok('mkdir')

    def _mkdir_parents(self, operand: str, path: str) -> CommandResult:
        current = paths.ROOT
        for part in path.split(paths.SEP)[1:]:
            if not part:
                continue
            current = paths.join(current, part)
            record = self.store.get(current)
            if record is None:
                try:
                    self.store.create(current, is_directory=True,
                                      parent_path=paths.parent_of(current))
                except Conflict:
                    pass
            elif not record.is_directory:
                return _fail('mkdir', f"mkdir: cannot create directory "
                                      f"'{operand}': Not a directory")
        return _ok('mkdir')

    def _rm(self, cwd: str, command: Command) -> CommandResult:
        if not command.args:
            return _fail('rm', 'rm: missing operand')

        operand = command.args[0]
        path = paths.resolve(cwd, operand)
        if path == paths.ROOT:
            return _fail('rm', "rm: refusing to remove '/'")

        record = self.store.get(path)
        if record is None:
            return _fail('rm', f"rm: cannot remove '{operand}': "
                               f"No such file or directory")
        if record.is_directory and not command.flags.get('recursive'):
            return _fail('rm', f"rm: cannot remove '{operand}': Is a directory")

        self.store.delete(path)
        return _ok('rm')

    def _mv(self, cwd: str, command: Command) -> CommandResult:
        if not command.args:
            return _fail('mv', 'mv: missing file operand')
        if len(command.args) < 2:
            return _fail('mv', f"mv: missing destination file operand "
                               f"after '{command.args[0]}'")

        src, dst = command.args[0], command.args[1]
        src_path = paths.resolve(cwd, src)
        dst_path = paths.resolve(cwd, dst)

        if src_path == paths.ROOT:
            return _fail('mv', f"mv: cannot move '{src}': Device or resource busy")
        if not self.store.exists(src_path):
            return _fail('mv', f"mv: cannot stat '{src}': No such file or directory")

        # Moving onto an existing directory moves inside it.
        if dst_path != src_path and self.store.is_dir(dst_path):
            dst_path = paths.join(dst_path, paths.basename(src_path))

        if dst_path == src_path:
            return _ok('mv')
        if paths.is_within(dst_path, src_path):
            return _fail('mv', f"mv: cannot move '{src}' to a subdirectory "
                               f"of itself, '{dst}'")
        try:
            self.store.rename(src_path, dst_path)
        except Conflict:
            return _fail('mv', f"mv: cannot move '{src}' to '{dst}': File exists")
        except MissingParent:
            return _fail('mv', f"mv: cannot move '{src}' to '{dst}': "
                               f"No such file or directory")
        return _ok('mv')

    # Terminal

    def _echo(self, cwd: str, command: Command) -> CommandResult:
        return _ok('echo', ' '.join(command.args) + '\n')

    def _clear(self, cwd: str, command: Command) -> CommandResult:
        return _ok('clear', CLEAR_SCREEN)

    def _help(self, cwd: str, command: Command) -> CommandResult:
        lines = ['Available commands:']
        for name in self.commands:
            lines.append('  ' + self.USAGE.get(name, name))
        return _ok('help', '\n'.join(lines) + '\n')
