"""Command-line entry point: dry runs, exit codes, JSON summaries."""

from __future__ import annotations

import json
import logging

import pytest

from bot_provisioning import cli
from bot_provisioning.logging import _reset_for_tests


@pytest.fixture(autouse=True)
def _isolated_logging(monkeypatch):
    for name in ('BOT_DEPLOY_RETRY_TIMES', 'BOT_DEPLOY_BACKOFF_TIME_S', 'BOT_PUBLISHING_PASSWORD'):
        monkeypatch.delenv(name, raising=False)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    _reset_for_tests()
    yield
    _reset_for_tests()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def bot_folder(tmp_path):
    folder = tmp_path / 'bot'
    folder.mkdir()
    (folder / 'index.js').write_text('module.exports = {};\n')
    return folder


class TestParser:
    def test_deploy_requires_site_and_folder(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(['deploy', '--site', 'echo'])

    def test_ignore_is_repeatable(self, tmp_path):
        args = cli.build_parser().parse_args([
            'deploy', '--site', 'echo', '--folder', str(tmp_path),
            '--ignore', '*.md', '--ignore', 'tests',
        ])
        assert args.ignore == ['*.md', 'tests']
        assert args.password_env == 'BOT_PUBLISHING_PASSWORD'


class TestMain:
    def test_dry_run_prints_summary(self, bot_folder, capsys):
        code = cli.main([
            'deploy', '--site', 'echo-bot', '--folder', str(bot_folder), '--dry-run',
        ])

        assert code == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary['state'] == 'succeeded'
        assert summary['attempts'] == 2
        assert summary['completed_steps'][0] == 'update_registration'
        assert summary['completed_steps'][-1] == 'restart'
        assert summary['endpoint'] == 'https://echo-bot.azurewebsites.net'

    def test_missing_folder_is_provisioning_failure(self, tmp_path, capsys):
        code = cli.main([
            'deploy', '--site', 'echo-bot', '--folder', str(tmp_path / 'nope'), '--dry-run',
        ])

        assert code == 1
        payload = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert payload['code'] == 'PackagingError'

    def test_missing_password_is_configuration_error(self, bot_folder, capsys):
        code = cli.main([
            'deploy', '--site', 'echo-bot', '--folder', str(bot_folder), '--username', '$echo',
        ])

        assert code == 2
        err = capsys.readouterr().err.strip().splitlines()[-1]
        assert 'BOT_PUBLISHING_PASSWORD' in json.loads(err)['message']

    def test_invalid_site_name(self, bot_folder, capsys):
        code = cli.main(['deploy', '--site', 'Echo_Bot', '--folder', str(bot_folder), '--dry-run'])

        assert code == 2

    def test_invalid_retry_override(self, bot_folder):
        code = cli.main([
            'deploy', '--site', 'echo-bot', '--folder', str(bot_folder),
            '--retry-times', '0', '--dry-run',
        ])

        assert code == 2
