"""Tests for config_loader.py"""

import logging

import pytest

from bootkit.config_loader import load_tools_config, parse_tools_config
from bootkit.errors import ConfigurationError
from bootkit.models import (
    ConfigureItem,
    CustomCommand,
    InstallMethod,
    PackageInstall,
    SourceURL,
    ToolItem,
)


SAMPLE_CONFIG = """
tools:
  - name: wget
  - name: iterm2
    method: cask
  - name: curl
    install_command: brew install curl
    post_install:
      - echo done
configure:
  - name: zsh
    config_url: https://github.com/user/dotfiles/blob/main/.zshrc
    install_path: ~/.zshrc
  - name: vim
    configure_command: setup-vim
    install_path: ~/.vimrc
"""


class TestLoadToolsConfig:
    """Test cases for loading configuration files"""

    def test_load_sample(self, tools_config_file):
        """Test a full document is parsed into work items"""
        config = load_tools_config(tools_config_file(SAMPLE_CONFIG))

        assert config.tools == [
            ToolItem('wget', PackageInstall(InstallMethod.DEFAULT)),
            ToolItem('iterm2', PackageInstall(InstallMethod.CASK)),
            ToolItem('curl', CustomCommand('brew install curl'), ('echo done',)),
        ]
        assert config.configure == [
            ConfigureItem('zsh', SourceURL('https://github.com/user/dotfiles/blob/main/.zshrc'), '~/.zshrc'),
            ConfigureItem('vim', CustomCommand('setup-vim'), '~/.vimrc'),
        ]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match='does not exist'):
            load_tools_config(tmp_path / 'nope.yaml')

    def test_invalid_yaml(self, tools_config_file):
        with pytest.raises(ConfigurationError, match='Invalid YAML'):
            load_tools_config(tools_config_file('tools: [unclosed'))

    def test_invalid_encoding(self, tmp_path):
        """Test bytes that are not UTF-8 are reported as a configuration error"""
        path = tmp_path / 'config.yaml'
        path.write_bytes(b'tools:\n  - name: w\xffget\n')
        with pytest.raises(ConfigurationError, match='not valid UTF-8'):
            load_tools_config(path)

    def test_empty_file(self, tools_config_file):
        config = load_tools_config(tools_config_file(''))
        assert config.tools == []
        assert config.configure == []

    def test_get_configure_item(self, tools_config_file):
        config = load_tools_config(tools_config_file(SAMPLE_CONFIG))
        assert config.get_configure_item('vim').target_path == '~/.vimrc'
        with pytest.raises(ConfigurationError, match='configuration for emacs not found'):
            config.get_configure_item('emacs')


class TestParseToolsConfig:
    """Test cases for document validation"""

    def test_install_command_wins_over_method(self, caplog):
        """Test a custom command overrides the method and warns"""
        with caplog.at_level(logging.WARNING, logger='bootkit'):
            config = parse_tools_config({'tools': [
                {'name': 'curl', 'method': 'cask', 'install_command': 'brew install curl'},
            ]})
        assert config.tools[0].source == CustomCommand('brew install curl')
        assert 'ignoring method' in caplog.text

    def test_configure_command_wins_over_url(self):
        config = parse_tools_config({'configure': [
            {'name': 'vim', 'configure_command': 'setup-vim',
             'config_url': 'https://example.com/vimrc', 'install_path': '~/.vimrc'},
        ]})
        assert config.configure[0].source == CustomCommand('setup-vim')

    @pytest.mark.parametrize('method,expected', [
        ('brew', InstallMethod.DEFAULT),
        ('formula', InstallMethod.DEFAULT),
        ('CASK', InstallMethod.CASK),
    ])
    def test_method_aliases(self, method, expected):
        config = parse_tools_config({'tools': [{'name': 'x', 'method': method}]})
        assert config.tools[0].source == PackageInstall(expected)

    def test_single_post_install_string(self):
        config = parse_tools_config({'tools': [{'name': 'x', 'post_install': 'echo hi'}]})
        assert config.tools[0].post_actions == ('echo hi',)

    @pytest.mark.parametrize('document,message', [
        ({'tools': [{'method': 'cask'}]}, "'name' is required"),
        ({'tools': [{'name': 'x', 'method': 'snap'}]}, 'unknown install method'),
        ({'tools': ['wget']}, 'expected a mapping'),
        ({'tools': {'name': 'x'}}, "'tools' must be a list"),
        ({'tools': [{'name': 'x', 'post_install': [1]}]}, 'post_install'),
        ({'configure': [{'name': 'zsh', 'config_url': 'https://x'}]}, "'install_path' is required"),
        ({'configure': [{'name': 'zsh', 'install_path': '~/.zshrc'}]}, 'either'),
        (['tools'], 'must be a mapping'),
    ])
    def test_invalid_documents(self, document, message):
        with pytest.raises(ConfigurationError, match=message):
            parse_tools_config(document)
