"""
Mutation classifier tests - SQL keywords, Python side-effect patterns, unknown languages.
"""

import pytest

from querypilot.core.mutation import describe_mutation, is_mutating, is_mutating_python, is_mutating_sql


class TestSqlClassification:

    @pytest.mark.parametrize("sql", [
        "SELECT * FROM main_table LIMIT 50;",
        "select count(*) from main_table where region = 'north'",
        "WITH t AS (SELECT 1) SELECT * FROM t",
        "select 1",
    ])
    def test_read_only_sql(self, sql):
        assert is_mutating_sql(sql) is False

    @pytest.mark.parametrize("sql", [
        "DELETE FROM main_table",
        "insert into t values (1)",
        "UPDATE t SET x = 1",
        "DROP TABLE t",
        "ALTER TABLE t ADD COLUMN y",
        "CREATE TABLE x (a INT)",
        "  \n  replace into t values (1)",
        "TRUNCATE TABLE main_table",
        "MERGE INTO t USING s ON t.id = s.id WHEN MATCHED THEN DELETE",
        "COPY main_table FROM '/tmp/rows.csv'",
    ])
    def test_mutating_sql(self, sql):
        assert is_mutating_sql(sql) is True

    def test_keywords_match_whole_words_only(self):
        """Column names that contain a keyword are not mutations."""
        assert is_mutating_sql("SELECT created_at, updated_by FROM t") is False

    def test_keyword_inside_string_literal_is_flagged(self):
        """False positives are acceptable."""
        assert is_mutating_sql("SELECT * FROM t WHERE note = 'please delete me'") is True

    def test_describe_lists_keywords(self):
        assert describe_mutation("DELETE FROM t; DROP TABLE t", "sql") == ["delete", "drop"]


class TestPythonClassification:

    def test_read_only_script(self):
        script = "import sqlite3\ncon = sqlite3.connect('x.db')\nprint(con.execute('SELECT 1').fetchall())"
        assert is_mutating_python(script) is False

    def test_read_mode_open_is_not_mutating(self):
        assert is_mutating_python("open('data.csv', 'r').read()") is False

    @pytest.mark.parametrize("script", [
        "from os import path, environ\nprint(environ.get('HOME'))",
        "import os\nimport sqlite3",
        "Path('data.csv').open('r')",
    ])
    def test_read_only_imports_and_handles(self, script):
        assert is_mutating_python(script) is False

    @pytest.mark.parametrize("script,label", [
        ("open('out.txt', 'w').write('x')", "file_write"),
        ("open('out.txt', mode='a')", "file_write"),
        ("Path('x').write_text('y')", "file_write"),
        ("import os\nos.remove('x')", "filesystem_delete_rename"),
        ("shutil.rmtree('dir')", "filesystem_delete_rename"),
        ("subprocess.run(['ls'])", "process_spawn"),
        ("os.system('ls')", "process_spawn"),
        ("requests.get('http://example.com')", "network_call"),
        ("from subprocess import run\nrun(['rm', '-rf', 'data'])", "process_spawn"),
        ("import subprocess as sp\nsp.run(['ls'])", "process_spawn"),
        ("import os, subprocess", "process_spawn"),
        ("from os import system\nsystem('ls')", "process_spawn"),
        ("from os import remove\nremove('dataset.db')", "filesystem_delete_rename"),
        ("from os import (\n    path,\n    unlink,\n)", "filesystem_delete_rename"),
        ("from shutil import rmtree", "filesystem_delete_rename"),
        ("Path('a.db').rename('b.db')", "filesystem_delete_rename"),
        ("Path('tmp').rmdir()", "filesystem_delete_rename"),
        ("Path('out.txt').open('w')", "file_write"),
        ("Path('out.txt').open(mode='a')", "file_write"),
        ("import socket", "network_call"),
        ("import requests", "network_call"),
        ("from httpx import Client", "network_call"),
        ("from urllib.request import urlopen", "network_call"),
        ("from http.client import HTTPConnection", "network_call"),
    ])
    def test_mutating_scripts(self, script, label):
        assert is_mutating_python(script) is True
        assert label in describe_mutation(script, "python")


class TestDispatch:

    def test_is_mutating_routes_by_language(self):
        assert is_mutating("DELETE FROM t", "sql") is True
        assert is_mutating("print('delete')", "python") is False

    def test_unknown_language_is_mutating(self):
        assert is_mutating("SELECT 1", "ruby") is True
        assert describe_mutation("SELECT 1", "ruby") == ["unknown_language"]

    def test_empty_command_is_not_mutating(self):
        assert is_mutating("", "sql") is False
        assert is_mutating("", "python") is False
