#!/usr/bin/env python3
"""
Tests for the virtual shell.

Covers each built-in command, path resolution against the working
directory, and session tracking through `run`.
"""

import pytest

from ideshell.errors import InvalidInput
from ideshell.interpreter import CLEAR_SCREEN, CommandResult, ShellInterpreter


def run(shell, line, cwd='/'):
    return shell.execute(cwd, line)


@pytest.fixture
def project(shell):
    """
    /src/
    /src/app.js      "console.log('hi')"
    /src/lib/
    /notes.txt       "remember"
    """
    store = shell.store
    store.create('/src', is_directory=True)
    store.create('/src/app.js', content="console.log('hi')")
    store.create('/src/lib', is_directory=True)
    store.create('/notes.txt', content='remember')
    return shell


class TestDispatch:

    def test_unknown_command(self, shell):
        result = run(shell, 'frobnicate now')
        assert result.stderr == 'frobnicate: command not found\n'
        assert result.stdout == ''
        assert result.exit_code == 127

    def test_blank_line(self, shell):
        result = run(shell, '   ')
        assert result.exit_code == 0
        assert result.stdout == ''
        assert result.stderr == ''

    def test_result_dict(self, shell):
        assert run(shell, 'pwd').to_dict() == {
            'command': 'pwd', 'stdout': '/\n', 'stderr': '', 'exitCode': 0,
        }

    def test_store_errors_become_command_errors(self, project, monkeypatch):
        def refuse(path):
            raise InvalidInput('storage refused')
        monkeypatch.setattr(project.store, 'delete', refuse)

        result = run(project, 'rm /notes.txt')
        assert result.stderr == 'rm: storage refused\n'
        assert result.exit_code == 1

    def test_unexpected_errors_are_contained(self, shell, monkeypatch):
        def boom(path):
            raise RuntimeError('boom')
        monkeypatch.setattr(shell.store, 'get', boom)

        result = run(shell, 'cat anything')
        assert result.stderr == 'Error: boom\n'
        assert result.exit_code == 1


class TestNavigation:

    def test_pwd(self, shell):
        assert run(shell, 'pwd').stdout == '/\n'
        assert run(shell, 'pwd', cwd='/src').stdout == '/src\n'

    def test_ls_empty_root(self, shell):
        result = run(shell, 'ls')
        assert result.exit_code == 0
        assert result.stdout == '\n'

    def test_ls_cwd(self, project):
        assert run(project, 'ls').stdout == 'src/  notes.txt\n'
        assert run(project, 'ls', cwd='/src').stdout == 'lib/  app.js\n'

    def test_ls_directory_argument(self, project):
        assert run(project, 'ls src').stdout == 'lib/  app.js\n'
        assert run(project, 'ls ..', cwd='/src/lib').stdout == 'lib/  app.js\n'

    def test_ls_missing_directory(self, project):
        result = run(project, 'ls nope')
        assert result.stderr == "ls: cannot access 'nope': No such file or directory\n"
        assert result.exit_code == 2

    def test_ls_root_matches_both_parent_spellings(self, shell):
        shell.store.create('/legacy.txt')
        shell.store.create('/explicit.txt', parent_path='/')
        assert run(shell, 'ls').stdout == 'explicit.txt  legacy.txt\n'

    def test_cd_relative(self, project):
        result = run(project, 'cd src')
        assert result.exit_code == 0
        assert result.new_cwd == '/src'
        assert run(project, 'cd lib', cwd='/src').new_cwd == '/src/lib'

    def test_cd_absolute(self, project):
        assert run(project, 'cd /src/lib', cwd='/src').new_cwd == '/src/lib'

    def test_cd_bare_and_slash_go_to_root(self, project):
        assert run(project, 'cd', cwd='/src/lib').new_cwd == '/'
        assert run(project, 'cd /', cwd='/src/lib').new_cwd == '/'

    def test_cd_up(self, project):
        assert run(project, 'cd ..', cwd='/src/lib').new_cwd == '/src'

    def test_cd_up_at_root(self, shell):
        result = run(shell, 'cd ..')
        assert result.exit_code == 0
        assert result.stderr == ''
        assert result.new_cwd == '/'

    def test_cd_missing(self, project):
        result = run(project, 'cd nope')
        assert result.stderr == 'cd: nope: No such directory\n'
        assert result.exit_code == 1
        assert result.new_cwd is None

    def test_cd_into_file(self, project):
        result = run(project, 'cd notes.txt')
        assert result.stderr == 'cd: notes.txt: No such directory\n'
        assert result.exit_code == 1


class TestReading:

    def test_cat(self, project):
        result = run(project, 'cat /notes.txt')
        assert result.stdout == 'remember\n'
        assert result.exit_code == 0

    def test_cat_relative(self, project):
        assert run(project, 'cat app.js', cwd='/src').stdout == "console.log('hi')\n"
        assert run(project, 'cat ../notes.txt', cwd='/src').stdout == 'remember\n'

    def test_cat_missing_operand(self, shell):
        result = run(shell, 'cat')
        assert result.stderr == 'cat: missing file operand\n'
        assert result.exit_code == 1

    def test_cat_missing_file(self, shell):
        result = run(shell, 'cat ghost.txt')
        assert result.stderr == 'cat: ghost.txt: No such file or directory\n'
        assert result.exit_code == 1

    def test_cat_directory(self, project):
        result = run(project, 'cat src')
        assert result.stderr == 'cat: src: Is a directory\n'
        assert result.exit_code == 1


class TestTouch:

    def test_creates_empty_file(self, project):
        result = run(project, 'touch new.js', cwd='/src')
        assert result.exit_code == 0
        record = project.store.get('/src/new.js')
        assert record.content == ''
        assert record.parent_path == '/src'

    def test_existing_file_untouched(self, project):
        before = project.store.get('/notes.txt')
        result = run(project, 'touch notes.txt')
        assert result.exit_code == 0
        assert result.stderr == ''
        assert project.store.get('/notes.txt').content == before.content

    def test_missing_operand(self, shell):
        result = run(shell, 'touch')
        assert result.stderr == 'touch: missing file operand\n'
        assert result.exit_code == 1

    def test_missing_parent(self, shell):
        result = run(shell, 'touch nope/a.txt')
        assert result.stderr == ("touch: cannot touch 'nope/a.txt': "
                                 "No such file or directory\n")
        assert result.exit_code == 1


class TestMkdir:

    def test_creates_directory(self, shell):
        result = run(shell, 'mkdir src')
        assert result.exit_code == 0
        assert shell.store.is_dir('/src')

    def test_existing_path(self, project):
        result = run(project, 'mkdir src')
        assert result.stderr == "mkdir: cannot create directory 'src': File exists\n"
        assert result.exit_code == 1

    def test_root(self, shell):
        result = run(shell, 'mkdir /')
        assert result.stderr == "mkdir: cannot create directory '/': File exists\n"
        assert result.exit_code == 1

    def test_missing_operand(self, shell):
        result = run(shell, 'mkdir')
        assert result.stderr == 'mkdir: missing operand\n'
        assert result.exit_code == 1

    def test_missing_parent(self, shell):
        result = run(shell, 'mkdir a/b')
        assert result.stderr == ("mkdir: cannot create directory 'a/b': "
                                 "No such file or directory\n")
        assert result.exit_code == 1

    def test_parents(self, project):
        result = run(project, 'mkdir -p src/lib/deep/er')
        assert result.exit_code == 0
        assert project.store.is_dir('/src/lib/deep')
        assert project.store.get('/src/lib/deep/er').parent_path == '/src/lib/deep'

    def test_parents_existing_is_fine(self, project):
        assert run(project, 'mkdir -p src').exit_code == 0

    def test_parents_through_a_file(self, project):
        result = run(project, 'mkdir -p notes.txt/x')
        assert result.stderr == ("mkdir: cannot create directory 'notes.txt/x': "
                                 "Not a directory\n")
        assert result.exit_code == 1


class TestRm:

    def test_remove_file(self, project):
        result = run(project, 'rm notes.txt')
        assert result.exit_code == 0
        assert not project.store.exists('/notes.txt')

    def test_directory_needs_recursive(self, project):
        before = project.store.list()
        result = run(project, 'rm src')
        assert result.stderr == "rm: cannot remove 'src': Is a directory\n"
        assert result.exit_code == 1
        assert project.store.list() == before

    @pytest.mark.parametrize('line', ['rm -r src', 'rm -rf src', 'rm src -r',
                                      'rm -R src', 'rm -fr src'])
    def test_recursive(self, project, line):
        assert run(project, line).exit_code == 0
        for path in ('/src', '/src/app.js', '/src/lib'):
            assert not project.store.exists(path)
        assert project.store.exists('/notes.txt')

    def test_missing_target(self, shell):
        result = run(shell, 'rm ghost')
        assert result.stderr == "rm: cannot remove 'ghost': No such file or directory\n"
        assert result.exit_code == 1

    def test_missing_operand(self, shell):
        result = run(shell, 'rm -rf')
        assert result.stderr == 'rm: missing operand\n'
        assert result.exit_code == 1

    def test_refuses_root(self, project):
        result = run(project, 'rm -rf /')
        assert result.stderr == "rm: refusing to remove '/'\n"
        assert result.exit_code == 1
        assert project.store.exists('/src/app.js')


class TestMv:

    def test_move_directory_then_read(self, shell):
        """mkdir /a, touch /a/b.txt, mv /a /c, cat /c/b.txt."""
        assert run(shell, 'mkdir /a').exit_code == 0
        assert run(shell, 'touch /a/b.txt').exit_code == 0
        assert run(shell, 'mv /a /c').exit_code == 0

        result = run(shell, 'cat /c/b.txt')
        assert result.stdout == '\n'
        assert result.exit_code == 0

        store = shell.store
        assert store.get('/a') is None
        assert store.get('/a/b.txt') is None
        assert store.get('/c/b.txt').parent_path == '/c'

    def test_rename_relative(self, project):
        assert run(project, 'mv app.js main.js', cwd='/src').exit_code == 0
        assert project.store.get('/src/main.js').content == "console.log('hi')"
        assert not project.store.exists('/src/app.js')

    def test_move_into_existing_directory(self, project):
        assert run(project, 'mv notes.txt src').exit_code == 0
        assert project.store.get('/src/notes.txt').parent_path == '/src'
        assert not project.store.exists('/notes.txt')

    def test_missing_operands(self, shell):
        result = run(shell, 'mv')
        assert result.stderr == 'mv: missing file operand\n'
        assert result.exit_code == 1

        result = run(shell, 'mv a.txt')
        assert result.stderr == "mv: missing destination file operand after 'a.txt'\n"
        assert result.exit_code == 1

    def test_missing_source(self, shell):
        result = run(shell, 'mv ghost other')
        assert result.stderr == "mv: cannot stat 'ghost': No such file or directory\n"
        assert result.exit_code == 1

    def test_destination_exists(self, project):
        project.store.create('/other.txt')
        result = run(project, 'mv notes.txt other.txt')
        assert result.stderr == "mv: cannot move 'notes.txt' to 'other.txt': File exists\n"
        assert result.exit_code == 1
        assert project.store.exists('/notes.txt')

    def test_into_own_subtree(self, project):
        result = run(project, 'mv src src/lib/inner')
        assert result.stderr == ("mv: cannot move 'src' to a subdirectory "
                                 "of itself, 'src/lib/inner'\n")
        assert result.exit_code == 1

    def test_missing_destination_parent(self, project):
        result = run(project, 'mv notes.txt nope/notes.txt')
        assert result.stderr == ("mv: cannot move 'notes.txt' to 'nope/notes.txt': "
                                 "No such file or directory\n")
        assert result.exit_code == 1

    def test_root(self, project):
        result = run(project, 'mv / /elsewhere')
        assert result.stderr == "mv: cannot move '/': Device or resource busy\n"
        assert result.exit_code == 1

    def test_same_path(self, project):
        assert run(project, 'mv notes.txt /notes.txt').exit_code == 0
        assert project.store.exists('/notes.txt')


class TestTerminalCommands:

    def test_echo(self, shell):
        assert run(shell, 'echo hello   world').stdout == 'hello world\n'

    def test_echo_nothing(self, shell):
        assert run(shell, 'echo').stdout == '\n'

    def test_clear(self, shell):
        result = run(shell, 'clear')
        assert result.stdout == CLEAR_SCREEN
        assert result.exit_code == 0

    def test_help_lists_every_command(self, shell):
        result = run(shell, 'help')
        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert lines[0] == 'Available commands:'
        listed = [line.split()[0] for line in lines[1:]]
        assert listed == ['pwd', 'ls', 'cd', 'cat', 'touch', 'mkdir',
                          'rm', 'mv', 'echo', 'clear', 'help']


    def test_help_usage_lines(self, shell):
        lines = run(shell, 'help').stdout.splitlines()
        assert '  mkdir [-p] <dir> - create directory' in lines
        assert '  mv <old> <new> - move/rename file or directory' in lines

    def test_help_lists_commands_without_usage(self, shell):
        shell.commands['true'] = lambda cwd, command: CommandResult(command='true')
        lines = run(shell, 'help').stdout.splitlines()
        assert lines[-1] == '  true'
        assert run(shell, 'true').exit_code == 0


class TestSessions:

    def test_cd_persists_in_session(self, project):
        session = project.sessions.create()
        project.run(session, 'cd src')
        assert project.sessions.get(session) == '/src'
        assert project.run(session, 'pwd').stdout == '/src\n'
        assert project.run(session, 'cat app.js').exit_code == 0

    def test_failed_cd_keeps_cwd(self, project):
        session = project.sessions.create()
        project.run(session, 'cd src')
        project.run(session, 'cd nope')
        assert project.sessions.get(session) == '/src'

    def test_sessions_share_the_tree(self, project):
        first = project.sessions.create()
        second = project.sessions.create()
        project.run(first, 'cd src')
        project.run(first, 'touch shared.js')

        assert project.sessions.get(second) == '/'
        assert project.run(second, 'cat src/shared.js').stdout == '\n'

    def test_unknown_session_starts_at_root(self, project):
        assert project.run('fresh-id', 'pwd').stdout == '/\n'

    def test_default_registry(self, memory_store):
        shell = ShellInterpreter(memory_store)
        assert len(shell.sessions) == 0
        assert isinstance(shell.execute('/', 'pwd'), CommandResult)
