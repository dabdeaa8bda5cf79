import argparse

import pytest

from promcommon import logflags
from promcommon.promlog import Config


def _setup():
    parser = argparse.ArgumentParser(prog="prog")
    config = Config()
    logflags.add_flags(parser, config)
    return parser, config


def test_defaults_are_applied():
    parser, config = _setup()
    logflags.apply_args(parser.parse_args([]), config)
    assert str(config.level) == "info"
    assert str(config.format) == "logfmt"


def test_explicit_values_are_applied():
    parser, config = _setup()
    logflags.apply_args(parser.parse_args(["--log.level=debug", "--log.format", "json"]), config)
    assert str(config.level) == "debug"
    assert str(config.format) == "json"


def test_add_flags_installs_unset_values():
    _, config = _setup()
    assert str(config.level) == ""
    assert str(config.format) == ""


def test_bad_level_is_rejected(capsys):
    parser, _ = _setup()
    with pytest.raises(SystemExit):
        parser.parse_args(["--log.level=loud"])
    assert 'unrecognized log level "loud"' in capsys.readouterr().err


def test_bad_format_is_rejected(capsys):
    parser, _ = _setup()
    with pytest.raises(SystemExit):
        parser.parse_args(["--log.format=xml"])
    assert 'unrecognized log format "xml"' in capsys.readouterr().err


def test_help_lists_options():
    parser, _ = _setup()
    text = parser.format_help()
    assert "One of: [debug, info, warn, error]" in text
    assert "One of: [logfmt, json]" in text


def test_apply_args_rejects_bad_namespace():
    config = Config()
    with pytest.raises(ValueError):
        logflags.apply_args(argparse.Namespace(log_level="loud", log_format="json"), config)